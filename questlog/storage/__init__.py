"""Storage package."""

from .models import (
    Quest,
    Completion,
    PlayerState,
    TimerState,
    QuestLog,
    MalformedLogError,
    DEFAULT_CATEGORY,
    DEFAULT_SCHEDULE,
)
from .store import JsonQuestLogStore, APP_SUPPORT_DIR

__all__ = [
    "Quest",
    "Completion",
    "PlayerState",
    "TimerState",
    "QuestLog",
    "MalformedLogError",
    "DEFAULT_CATEGORY",
    "DEFAULT_SCHEDULE",
    "JsonQuestLogStore",
    "APP_SUPPORT_DIR",
]
