"""Schedule package."""

from .evaluator import (
    Daily,
    Weekdays,
    Weekends,
    DaysOfWeek,
    Schedule,
    parse_schedule,
    matches,
    is_due,
    normalize_schedule,
    day_index,
    DAY_NAMES,
)

__all__ = [
    "Daily",
    "Weekdays",
    "Weekends",
    "DaysOfWeek",
    "Schedule",
    "parse_schedule",
    "matches",
    "is_due",
    "normalize_schedule",
    "day_index",
    "DAY_NAMES",
]
