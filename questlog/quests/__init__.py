"""Quests package."""

from .registry import QuestRegistry
from .completions import CompletionStore

__all__ = ["QuestRegistry", "CompletionStore"]
