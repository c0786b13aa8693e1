"""Completion ledger: one record per (quest, logical day).

``complete`` finalises a quest for the day: it reads the timer, converts
minutes into XP, awards it, appends a :class:`Completion` and throws the
quest's timer memory away.  ``uncomplete`` takes the XP back and removes
the record but does not bring the timer time back.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..errors import InvalidQuestStateError
from ..gamification.xp import XPLedger, round_half_up
from ..storage.models import Completion, Quest, QuestLog
from ..timer.engine import TimerStateMachine

logger = logging.getLogger(__name__)


class CompletionStore:
    """Reads and writes ``log.completions``.

    *today* returns the current logical day string; it is called on every
    operation so a rollover is picked up immediately.
    """

    def __init__(
        self,
        log: QuestLog,
        timer: TimerStateMachine,
        ledger: XPLedger,
        today: Callable[[], str],
    ) -> None:
        self.log = log
        self._timer = timer
        self._ledger = ledger
        self._today = today

    # ── queries ──────────────────────────────────────────────────────────

    def for_day(self, quest_id: str, day: str) -> Completion | None:
        for completion in self.log.completions:
            if completion.quest_id == quest_id and completion.date == day:
                return completion
        return None

    def is_completed_today(self, quest_id: str) -> bool:
        return self.for_day(quest_id, self._today()) is not None

    def completed_ids(self, day: str | None = None) -> set[str]:
        day = day or self._today()
        return {c.quest_id for c in self.log.completions if c.date == day}

    # ── mutations ────────────────────────────────────────────────────────

    def complete(self, quest: Quest) -> Completion:
        """Record *quest* as done today and award its XP.

        Raises :class:`InvalidQuestStateError` for archived quests and for
        quests already completed today.
        """
        if quest.archived:
            raise InvalidQuestStateError(f"{quest.name} is archived")
        today = self._today()
        if self.for_day(quest.id, today) is not None:
            raise InvalidQuestStateError(f"{quest.name} is already completed today")

        minutes = self._timer.total_minutes(quest.id)
        xp = self._ledger.calculate_xp(quest.estimate_minutes, minutes)
        self._ledger.award(self.log.player, xp)

        completion = Completion(
            quest_id=quest.id,
            date=today,
            minutes_spent=round_half_up(minutes),
            xp_earned=xp,
        )
        self.log.completions.append(completion)
        self._timer.discard(quest.id)
        logger.info(
            "completed %s on %s: %dm, +%d XP",
            quest.id, today, completion.minutes_spent, xp,
        )
        return completion

    def uncomplete(self, quest_id: str) -> Completion | None:
        """Undo today's completion of *quest_id*.  ``None`` if there is none."""
        completion = self.for_day(quest_id, self._today())
        if completion is None:
            return None
        self._ledger.revert(self.log.player, completion.xp_earned)
        self.log.completions.remove(completion)
        logger.info("uncompleted %s on %s: -%d XP", quest_id, completion.date, completion.xp_earned)
        return completion
