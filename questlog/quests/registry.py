"""Quest definitions: create, edit, archive, delete and reorder.

Every active quest carries an ``order`` integer.  After any change that
can disturb ordering (create, unarchive, archive, delete, reorder) the
whole active list is re-sorted and renumbered ``0..N-1`` so no duplicate
or gapped values are ever persisted.  Archived quests keep their last
``order`` but take no part in the numbering.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from ..errors import QuestLogError, QuestNotFoundError
from ..schedule.evaluator import is_due, normalize_schedule
from ..storage.models import DEFAULT_CATEGORY, Quest, QuestLog
from ..timer.engine import TimerStateMachine

logger = logging.getLogger(__name__)

_EDITABLE = ("name", "category", "schedule", "estimate_minutes")


def _clean_estimate(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise QuestLogError(f"Estimate must be a whole number of minutes, not {value!r}") from None
    return minutes if minutes > 0 else None


def _clean_category(value: str | None) -> str:
    value = (value or "").strip()
    return value or DEFAULT_CATEGORY


class QuestRegistry:
    """CRUD and ordering over ``log.quests``."""

    def __init__(self, log: QuestLog, timer: TimerStateMachine) -> None:
        self.log = log
        self._timer = timer

    # ── lookups ──────────────────────────────────────────────────────────

    def get(self, quest_id: str) -> Quest:
        for quest in self.log.quests:
            if quest.id == quest_id:
                return quest
        raise QuestNotFoundError(quest_id)

    def find(self, quest_id: str) -> Quest | None:
        try:
            return self.get(quest_id)
        except QuestNotFoundError:
            return None

    def active_quests(self) -> list[Quest]:
        return sorted(
            (q for q in self.log.quests if not q.archived),
            key=lambda q: q.order,
        )

    def archived_quests(self) -> list[Quest]:
        return [q for q in self.log.quests if q.archived]

    def categories(self) -> list[str]:
        seen: list[str] = []
        for quest in self.active_quests():
            if quest.category not in seen:
                seen.append(quest.category)
        return seen

    def quests_due(self, day: date) -> list[Quest]:
        """Active quests whose schedule is due on *day*, in display order."""
        return [q for q in self.active_quests() if is_due(q.schedule, day)]

    # ── mutations ────────────────────────────────────────────────────────

    def create(
        self,
        name: str,
        *,
        category: str | None = None,
        schedule: str | None = None,
        estimate_minutes: int | None = None,
    ) -> Quest:
        name = (name or "").strip()
        if not name:
            raise QuestLogError("Quest name is required")

        quest = Quest(
            id=self._new_id(),
            name=name,
            category=_clean_category(category),
            schedule=normalize_schedule(schedule),
            estimate_minutes=_clean_estimate(estimate_minutes),
            order=len(self.active_quests()),
            created_at=self._timer.now_ms(),
        )
        self.log.quests.append(quest)
        logger.info("created quest %s (%s)", quest.id, quest.name)
        return quest

    def update(self, quest_id: str, **changes) -> Quest:
        """Edit *quest_id* in place.  Only name/category/schedule/estimate."""
        quest = self.get(quest_id)
        unknown = set(changes) - set(_EDITABLE)
        if unknown:
            raise QuestLogError(f"Cannot edit {', '.join(sorted(unknown))}")

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise QuestLogError("Quest name is required")
            quest.name = name
        if "category" in changes:
            quest.category = _clean_category(changes["category"])
        if "schedule" in changes:
            quest.schedule = normalize_schedule(changes["schedule"])
        if "estimate_minutes" in changes:
            quest.estimate_minutes = _clean_estimate(changes["estimate_minutes"])
        return quest

    def archive(self, quest_id: str) -> Quest:
        """Soft delete: hide the quest and drop its timer state."""
        quest = self.get(quest_id)
        quest.archived = True
        self._timer.discard(quest_id)
        self.renumber()
        return quest

    def unarchive(self, quest_id: str) -> Quest:
        quest = self.get(quest_id)
        if not quest.archived:
            return quest
        quest.order = len(self.active_quests())
        quest.archived = False
        self.renumber()
        return quest

    def delete(self, quest_id: str) -> Quest:
        """Hard delete: remove the quest and its whole completion history."""
        quest = self.get(quest_id)
        self.log.quests.remove(quest)
        self.log.completions = [
            c for c in self.log.completions if c.quest_id != quest_id
        ]
        self._timer.discard(quest_id)
        self.renumber()
        logger.info("deleted quest %s (%s)", quest.id, quest.name)
        return quest

    def reorder(self, category: str, quest_ids: list[str]) -> None:
        """Place *quest_ids* (in that order) into *category*.

        The moved quests take sequential orders starting at the lowest
        order already used in the category; the full active list is then
        renumbered.  Moved quests win ties against the ones they land on.
        """
        category = _clean_category(category)
        moved = [q for q in (self.get(qid) for qid in quest_ids) if not q.archived]
        moved_ids = {q.id for q in moved}

        in_category = [
            q.order for q in self.active_quests() if q.category == category
        ]
        base = min(in_category, default=min((q.order for q in moved), default=0))
        for offset, quest in enumerate(moved):
            quest.category = category
            quest.order = base + offset

        ranked = sorted(
            enumerate(self.active_quests()),
            key=lambda pair: (pair[1].order, pair[1].id not in moved_ids, pair[0]),
        )
        for order, (_, quest) in enumerate(ranked):
            quest.order = order

    def renumber(self) -> None:
        """Rewrite active orders as ``0..N-1`` keeping their relative order."""
        for order, quest in enumerate(self.active_quests()):
            quest.order = order

    # ── internal ─────────────────────────────────────────────────────────

    def _new_id(self) -> str:
        existing = {q.id for q in self.log.quests}
        while True:
            candidate = uuid.uuid4().hex[:12]
            if candidate not in existing:
                return candidate
