from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import RateLimitError
from models.usage import ToolType, UsageLog
from services.usage import UsageService

NOW = datetime(2026, 7, 1, 10, 0, tzinfo=timezone.utc)


async def test_usage_is_recorded_until_limit(make_user):
    user = await make_user()

    remaining = [
        await UsageService.check_and_record_usage(user.id, ToolType.PLANT_IDENTIFY, limit=3, now=NOW)
        for _ in range(3)
    ]
    assert remaining == [2, 1, 0]

    with pytest.raises(RateLimitError) as exc:
        await UsageService.check_and_record_usage(user.id, ToolType.PLANT_IDENTIFY, limit=3, now=NOW)
    assert exc.value.retry_after == 3600
    assert await UsageLog.filter(user_id=user.id).count() == 3


async def test_window_is_rolling(make_user):
    user = await make_user()
    await UsageLog.create(user=user, tool_type=ToolType.PLANT_IDENTIFY, created_at=NOW - timedelta(minutes=61))
    await UsageLog.create(user=user, tool_type=ToolType.PLANT_IDENTIFY, created_at=NOW - timedelta(minutes=50))

    with pytest.raises(RateLimitError) as exc:
        await UsageService.check_and_record_usage(user.id, ToolType.PLANT_IDENTIFY, limit=1, now=NOW)
    assert exc.value.retry_after == 600


async def test_tools_are_metered_separately(make_user):
    user = await make_user()
    await UsageService.check_and_record_usage(user.id, ToolType.PLANT_IDENTIFY, limit=1, now=NOW)

    remaining = await UsageService.check_and_record_usage(user.id, ToolType.HEALTH_ASSESSMENT, limit=1, now=NOW)
    assert remaining == 0
