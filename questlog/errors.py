"""Exception types raised by the quest engine components.

Components raise these; :class:`questlog.engine.QuestEngine` catches them
at the user-action boundary and turns them into notices.
"""


class QuestLogError(Exception):
    """Base class for every error the engine reports to the user."""


class QuestNotFoundError(QuestLogError):
    def __init__(self, quest_id: str) -> None:
        super().__init__(f"Quest not found: {quest_id}")
        self.quest_id = quest_id


class InvalidQuestStateError(QuestLogError):
    """The quest exists but the action is not allowed right now
    (archived, already completed today, not completed today)."""


class StorageError(QuestLogError):
    """Reading or writing the quest log failed."""
