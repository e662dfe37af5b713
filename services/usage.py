import math
from datetime import datetime, timedelta
from typing import Optional

from core.config import settings
from core.exceptions import RateLimitError
from core.logger import db_logger
from models.usage import ToolType, UsageLog
from services.reminders import utcnow

USAGE_WINDOW = timedelta(hours=1)


class UsageService:

    @staticmethod
    async def check_and_record_usage(
            user_id: int,
            tool_type: ToolType,
            limit: Optional[int] = None,
            now: Optional[datetime] = None,
    ) -> int:
        """
        Meter one AI call for the user over a rolling one-hour window.

        Raises RateLimitError once ``limit`` calls of this tool were already
        recorded in the window; otherwise records the call and returns how
        many remain.
        """
        if limit is None:
            limit = settings.IDENTIFY_HOURLY_LIMIT
        now = now or utcnow()
        window_start = now - USAGE_WINDOW

        recent = UsageLog.filter(
            user_id=user_id,
            tool_type=tool_type,
            created_at__gte=window_start
        )
        usage_count = await recent.count()

        if usage_count >= limit:
            oldest = await recent.order_by("created_at").first()
            retry_after = 0
            if oldest is not None:
                retry_after = max(0, math.ceil((oldest.created_at + USAGE_WINDOW - now).total_seconds()))
            db_logger.logger.warning(f"User {user_id} hit the {tool_type.value} limit ({limit}/hour)")
            raise RateLimitError(
                f"Rate limit exceeded. You can use this tool {limit} times per hour. "
                f"Try again in {retry_after} seconds.",
                retry_after=retry_after,
            )

        await UsageLog.create(
            user_id=user_id,
            tool_type=tool_type,
            created_at=now
        )

        return limit - usage_count - 1
