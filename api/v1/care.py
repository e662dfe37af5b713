from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_current_user
from core.exceptions import ValidationError
from models.care import CareType
from models.user import User
from schemas.care import CareLogCreate, CareScheduleUpdate
from services.care_service import CareService
from services.reminders import CARE_TYPE_LABELS, format_interval, suggested_intervals
from services.validation import FieldError, validate_care_type

router = APIRouter(prefix="/api/v1", tags=["Care"])


@router.get("/care-schedules")
async def list_due_schedules(
        due_within: Optional[int] = Query(None, ge=0),
        status: Optional[str] = None,
        current_user: User = Depends(get_current_user)
):
    return await CareService.list_due_schedules(current_user, due_within=due_within, status=status)


@router.get("/care-schedules/suggestions/{care_type}")
async def get_interval_suggestions(care_type: str, current_user: User = Depends(get_current_user)):
    message = validate_care_type(care_type)
    if message:
        raise ValidationError(errors=[FieldError("care_type", message)])

    care_type = CareType(care_type)
    return {
        "care_type": care_type.value,
        "label": CARE_TYPE_LABELS[care_type],
        "intervals": [
            {"days": days, "label": format_interval(days)}
            for days in suggested_intervals(care_type)
        ],
    }


@router.get("/care-schedules/{schedule_id}")
async def get_schedule(schedule_id: int, current_user: User = Depends(get_current_user)):
    return await CareService.get_schedule(current_user, schedule_id)


@router.put("/care-schedules/{schedule_id}")
async def update_schedule(
        schedule_id: int,
        data: CareScheduleUpdate,
        current_user: User = Depends(get_current_user)
):
    return await CareService.update_schedule(current_user, schedule_id, data.model_dump(exclude_unset=True))


@router.delete("/care-schedules/{schedule_id}")
async def delete_schedule(schedule_id: int, current_user: User = Depends(get_current_user)):
    return await CareService.delete_schedule(current_user, schedule_id)


@router.post("/care-logs", status_code=201)
async def log_care(data: CareLogCreate, current_user: User = Depends(get_current_user)):
    return await CareService.log_care(
        current_user,
        data.plant_id,
        data.type,
        amount=data.amount,
        notes=data.notes,
    )
