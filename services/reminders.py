"""
Care reminder calculations.

Due status is always computed when a schedule is read; nothing here is
persisted. Comparisons are made on calendar days in the timezone of ``now``,
so anything due at 00:01 or at 23:59 today is "due today". Callers shift
``now`` into the user's zone with ``in_timezone`` before classifying.
"""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.config import settings
from models.care import CareType


class DueStatus(str, Enum):
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_SOON = "due-soon"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class DueStatusInfo:
    status: DueStatus
    days_until_due: int
    label: str

    def to_dict(self):
        data = asdict(self)
        data["status"] = self.status.value
        return data


SUGGESTED_INTERVALS = {
    CareType.WATERING: [3, 7, 14],
    CareType.FERTILIZING: [14, 30, 60],
    CareType.PRUNING: [30, 90, 180],
    CareType.REPOTTING: [180, 365],
    CareType.PEST_TREATMENT: [7, 14, 30],
    CareType.OTHER: [7, 14, 30],
}

CARE_TYPE_LABELS = {
    CareType.WATERING: "Watering",
    CareType.FERTILIZING: "Fertilizing",
    CareType.REPOTTING: "Repotting",
    CareType.PRUNING: "Pruning",
    CareType.PEST_TREATMENT: "Pest Treatment",
    CareType.OTHER: "Other Care",
}

DEFAULT_WATERING_INTERVAL = 7

# Checked in order: "bi-weekly" has to win over "weekly", "2-3 weeks" over "weeks".
_FREQUENCY_PATTERNS = (
    (("daily", "every day"), 1),
    (("every other day", "every 2 days"), 2),
    (("2-3 times per week", "twice a week"), 3),
    (("every 3-4 days",), 4),
    (("every 2 weeks", "bi-weekly", "biweekly", "bi weekly"), 14),
    (("every 1-2 weeks", "1-2 weeks"), 10),
    (("weekly", "once a week", "every week"), 7),
    (("every 2-3 weeks", "2-3 weeks"), 18),
    (("every 2-4 weeks", "2-4 weeks"), 21),
    (("every 3 weeks",), 21),
    (("monthly", "once a month", "every month"), 30),
    (("every 4-6 weeks",), 35),
    (("every 6 weeks",), 42),
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def in_timezone(now: datetime, tz_name: Optional[str]) -> datetime:
    """``now`` expressed in ``tz_name``; unknown or missing zones leave it unchanged."""
    if not tz_name:
        return now
    try:
        return now.astimezone(ZoneInfo(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        return now


def _to_calendar_day(value: Union[date, datetime], tz) -> date:
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def classify_due_status(
        next_due_date: Union[date, datetime],
        now: Optional[datetime] = None,
        due_soon_days: Optional[int] = None,
) -> DueStatusInfo:
    """
    Classify a due date relative to ``now``.

    overdue   -- before today
    due-today -- any time today
    due-soon  -- within ``due_soon_days`` calendar days after today
    upcoming  -- later than that
    """
    now = now or utcnow()
    if due_soon_days is None:
        due_soon_days = settings.DUE_SOON_DAYS

    today = _to_calendar_day(now, now.tzinfo)
    due_day = _to_calendar_day(next_due_date, now.tzinfo)
    days = (due_day - today).days

    if days < 0:
        overdue = abs(days)
        status = DueStatus.OVERDUE
        label = "1 day overdue" if overdue == 1 else f"{overdue} days overdue"
    elif days == 0:
        status = DueStatus.DUE_TODAY
        label = "Due today"
    elif days <= due_soon_days:
        status = DueStatus.DUE_SOON
        label = "Due tomorrow" if days == 1 else f"Due in {days} days"
    else:
        status = DueStatus.UPCOMING
        label = f"Due in {days} days"

    return DueStatusInfo(status=status, days_until_due=days, label=label)


def calculate_next_due_date(care_date: datetime, interval_days: int) -> datetime:
    """Due date after care on ``care_date``, normalised to the start of that day."""
    return start_of_day(care_date + timedelta(days=interval_days))


def default_next_due_date(interval_days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(days=interval_days)


def suggested_intervals(care_type: Union[CareType, str]) -> List[int]:
    return list(SUGGESTED_INTERVALS[CareType(care_type)])


def suggest_interval_from_species(water_frequency: Optional[str]) -> int:
    """Turn a species' free-text watering frequency into a day count."""
    if not water_frequency:
        return DEFAULT_WATERING_INTERVAL

    lower = water_frequency.lower()
    for needles, days in _FREQUENCY_PATTERNS:
        if any(needle in lower for needle in needles):
            return days

    return DEFAULT_WATERING_INTERVAL


def format_interval(days: int) -> str:
    named = {
        1: "Daily",
        7: "Weekly",
        14: "Every 2 weeks",
        21: "Every 3 weeks",
        30: "Monthly",
    }
    return named.get(days, f"Every {days} days")
