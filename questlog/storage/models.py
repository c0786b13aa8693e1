"""Dataclasses for the persisted quest log record.

The whole log is one JSON document::

    {
      "quests":      [{id, name, category, schedule, estimateMinutes,
                       order, createdAt, archived}],
      "completions": [{questId, date, minutesSpent, xpEarned}],
      "player":      {level, xp},
      "timerState":  {activeQuestId, startTime, pausedSessions},
      "day":         "YYYY-MM-DD"
    }

``to_dict`` / ``from_dict`` keep the camelCase wire names so files written
by older versions load unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

DEFAULT_CATEGORY = "uncategorized"
DEFAULT_SCHEDULE = "daily"


class MalformedLogError(ValueError):
    """The stored document does not have the quest log shape."""


def _expect(value, kind: type, what: str):
    if not isinstance(value, kind):
        raise MalformedLogError(f"{what} must be {kind.__name__}")
    return value


def _field(data: dict, key: str, default):
    value = data.get(key)
    return default if value is None else value


@dataclass
class Quest:
    """A recurring task definition."""

    id: str
    name: str
    category: str = DEFAULT_CATEGORY
    schedule: str = DEFAULT_SCHEDULE
    estimate_minutes: int | None = None
    order: int = 0
    created_at: int = 0        # epoch ms
    archived: bool = False

    @property
    def is_flat_xp(self) -> bool:
        return not self.estimate_minutes

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "schedule": self.schedule,
            "estimateMinutes": self.estimate_minutes,
            "order": self.order,
            "createdAt": self.created_at,
            "archived": self.archived,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Quest:
        _expect(data, dict, "quest")
        if "id" not in data:
            raise MalformedLogError("quest without id")
        estimate = data.get("estimateMinutes")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            category=data.get("category") or DEFAULT_CATEGORY,
            schedule=data.get("schedule") or DEFAULT_SCHEDULE,
            estimate_minutes=int(estimate) if estimate and int(estimate) > 0 else None,
            order=int(data.get("order", 0)),
            created_at=int(data.get("createdAt", 0)),
            archived=bool(data.get("archived", False)),
        )


@dataclass
class Completion:
    """One finished quest on one logical day."""

    quest_id: str
    date: str
    minutes_spent: int = 0
    xp_earned: int = 0

    def to_dict(self) -> dict:
        return {
            "questId": self.quest_id,
            "date": self.date,
            "minutesSpent": self.minutes_spent,
            "xpEarned": self.xp_earned,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Completion:
        _expect(data, dict, "completion")
        try:
            return cls(
                quest_id=str(data["questId"]),
                date=str(data["date"]),
                minutes_spent=int(data.get("minutesSpent") or 0),
                xp_earned=int(data.get("xpEarned") or 0),
            )
        except KeyError as exc:
            raise MalformedLogError(f"completion missing {exc}") from exc


@dataclass
class PlayerState:
    level: int = 1
    xp: int = 0

    def to_dict(self) -> dict:
        return {"level": self.level, "xp": self.xp}

    @classmethod
    def from_dict(cls, data: dict) -> PlayerState:
        _expect(data, dict, "player")
        return cls(
            level=max(1, int(data.get("level", 1))),
            xp=max(0, int(data.get("xp", 0))),
        )


@dataclass
class TimerState:
    """The single global timer slot plus banked minutes per quest."""

    active_quest_id: str | None = None
    start_time: int | None = None  # epoch ms
    paused_sessions: dict[str, float] = field(default_factory=dict)

    def clear(self) -> None:
        self.active_quest_id = None
        self.start_time = None
        self.paused_sessions.clear()

    def to_dict(self) -> dict:
        return {
            "activeQuestId": self.active_quest_id,
            "startTime": self.start_time,
            "pausedSessions": dict(self.paused_sessions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> TimerState:
        _expect(data, dict, "timerState")
        paused = _expect(_field(data, "pausedSessions", {}), dict, "pausedSessions")
        start = data.get("startTime")
        sessions = {str(k): float(v) for k, v in paused.items()}
        if not all(math.isfinite(v) for v in sessions.values()):
            raise MalformedLogError("pausedSessions must be finite")
        return cls(
            active_quest_id=data.get("activeQuestId") or None,
            start_time=int(start) if start is not None else None,
            paused_sessions=sessions,
        )


@dataclass
class QuestLog:
    """Everything the engine owns, persisted wholesale."""

    quests: list[Quest] = field(default_factory=list)
    completions: list[Completion] = field(default_factory=list)
    player: PlayerState = field(default_factory=PlayerState)
    timer_state: TimerState = field(default_factory=TimerState)
    day: str = ""

    def to_dict(self) -> dict:
        return {
            "quests": [q.to_dict() for q in self.quests],
            "completions": [c.to_dict() for c in self.completions],
            "player": self.player.to_dict(),
            "timerState": self.timer_state.to_dict(),
            "day": self.day,
        }

    @classmethod
    def from_dict(cls, data) -> QuestLog:
        """Build a log from decoded JSON.

        Missing top-level keys get defaults; values of the wrong type raise
        :class:`MalformedLogError`.
        """
        _expect(data, dict, "quest log")
        quests = _expect(_field(data, "quests", []), list, "quests")
        completions = _expect(_field(data, "completions", []), list, "completions")
        try:
            return cls(
                quests=[Quest.from_dict(q) for q in quests],
                completions=[Completion.from_dict(c) for c in completions],
                player=PlayerState.from_dict(_field(data, "player", {})),
                timer_state=TimerState.from_dict(_field(data, "timerState", {})),
                day=str(data.get("day") or ""),
            )
        except MalformedLogError:
            raise
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedLogError(str(exc)) from exc
