"""Timer package."""

from .engine import (
    TimerStateMachine,
    TimerStatus,
    format_minutes,
    to_epoch_ms,
)

__all__ = [
    "TimerStateMachine",
    "TimerStatus",
    "format_minutes",
    "to_epoch_ms",
]
