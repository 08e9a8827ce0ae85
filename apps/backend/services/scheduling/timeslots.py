from datetime import date, datetime, time
from typing import Optional

from services.scheduling.errors import ScheduleValidationError

DEFAULT_START_TIME = time(9, 0)
DEFAULT_END_TIME = time(18, 0)


def check_time_range(start_time: Optional[time], end_time: Optional[time]):
    """Shifts are same-day wall-clock intervals; overnight ranges are rejected."""
    if start_time is None or end_time is None:
        raise ScheduleValidationError("Both start and end time are required")
    if start_time >= end_time:
        raise ScheduleValidationError(
            f"Start time {format_hhmm(start_time)} must be before end time {format_hhmm(end_time)}"
        )


def shift_hours(start_time: time, end_time: time) -> float:
    anchor = date.min
    delta = datetime.combine(anchor, end_time) - datetime.combine(anchor, start_time)
    return delta.total_seconds() / 3600


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def parse_hhmm(value, fallback: time) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        return fallback
