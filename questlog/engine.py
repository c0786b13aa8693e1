"""Quest engine: the one object a host application talks to.

The engine owns the quest log and wires the components together:

    QuestRegistry        quest definitions and ordering
    TimerStateMachine    the single running timer
    XPLedger             XP awards, reverts and levels
    CompletionStore      per-day completion records
    RolloverController   logical "today" and day changes

Every user action mutates the log in memory, then :meth:`commit` saves
the whole log and emits ``refreshed``.  Errors never escape an action:
they become a ``notice`` and the action returns ``False`` / ``None``.

Lifecycle hooks for the host:

    on_init()       load, recover a timer left running, roll over, start ticks
    on_tick()       rollover check (also driven by the 60 s QTimer)
    on_shutdown()   stop ticks, bank the running timer, save
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .errors import InvalidQuestStateError, QuestLogError, StorageError
from .gamification.xp import XPLedger, rank_for_level
from .quests.completions import CompletionStore
from .quests.registry import QuestRegistry
from .rollover import RolloverController
from .settings import Settings
from .stats import QuestStats, calculate_stats
from .storage.models import Quest, QuestLog
from .storage.store import JsonQuestLogStore
from .timer.engine import Clock, TimerStateMachine, format_minutes

logger = logging.getLogger(__name__)

# ── tick intervals / notice durations ─────────────────────────────────────

DISPLAY_TICK_MS = 1000
ROLLOVER_TICK_MS = 60_000
NOTICE_MS = 4000
RANK_UP_NOTICE_MS = 6000


@dataclass
class TodayQuest:
    """One row of the "today" list."""

    quest: Quest
    completed: bool
    running: bool
    minutes: float


def _user_action(failed=False):
    """Turn :class:`QuestLogError` into a notice and return *failed*."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except QuestLogError as exc:
                logger.info("%s rejected: %s", method.__name__, exc)
                self.notice.emit(str(exc), NOTICE_MS)
                return failed
        return wrapper

    return decorator


class QuestEngine(QObject):
    """Coordinates the quest log and its components.

    Signals
    -------
    notice(message: str, duration_ms: int)
        User-visible message.  Fire-and-forget.
    refreshed()
        Emitted after every committed mutation.
    timer_tick(data: dict)
        Every second while a quest runs.  Keys: ``quest_id``,
        ``minutes``, ``display``.
    day_rolled_over(day: str)
        The logical day changed and timer state was cleared.
    """

    notice = pyqtSignal(str, int)
    refreshed = pyqtSignal()
    timer_tick = pyqtSignal(object)
    day_rolled_over = pyqtSignal(str)

    def __init__(
        self,
        settings: Settings | None = None,
        store: JsonQuestLogStore | None = None,
        clock: Clock = datetime.now,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or Settings()
        self._store = store or JsonQuestLogStore()

        # ── components ───────────────────────────────────────────────
        self.log = QuestLog()
        self.timer = TimerStateMachine(self.log.timer_state, clock, parent=self)
        self.ledger = XPLedger(self._settings, parent=self)
        self.registry = QuestRegistry(self.log, self.timer)
        self.rollover = RolloverController(self.log, self.timer, self._settings, clock)
        self.completions = CompletionStore(
            self.log, self.timer, self.ledger, self.rollover.today,
        )
        self.ledger.level_changed.connect(self._on_level_changed)

        # ── periodic ticks ───────────────────────────────────────────
        self._display_timer = QTimer(self)
        self._display_timer.setInterval(DISPLAY_TICK_MS)
        self._display_timer.timeout.connect(self._on_display_tick)

        self._rollover_timer = QTimer(self)
        self._rollover_timer.setInterval(ROLLOVER_TICK_MS)
        self._rollover_timer.timeout.connect(self.on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def on_init(self, start_ticks: bool = True) -> None:
        """Load the log and bring it up to date with the wall clock."""
        log = self._store.load(self._settings.quest_log_path)
        if log is None:
            logger.info("starting with a fresh quest log")
            log = QuestLog()
        self._attach(log)

        self.timer.prune(q.id for q in log.quests)
        self.timer.recover_on_load()
        rolled = self.rollover.check()
        self.commit()
        if rolled:
            self.day_rolled_over.emit(log.day)

        if start_ticks:
            self._display_timer.start()
            self._rollover_timer.start()

    def on_shutdown(self) -> None:
        """Stop ticking and bank the running timer so no time is lost."""
        self._display_timer.stop()
        self._rollover_timer.stop()
        if self.timer.auto_pause_active():
            self.commit()

    def on_tick(self) -> bool:
        """Periodic rollover check.  Returns True if the day changed."""
        if not self.rollover.check():
            return False
        self.commit()
        self.day_rolled_over.emit(self.log.day)
        return True

    def commit(self) -> bool:
        """Save the whole log, then ask views to refresh."""
        try:
            self._store.save(self._settings.quest_log_path, self.log)
            ok = True
        except StorageError as exc:
            logger.exception("saving quest log failed")
            self.notice.emit(str(exc), NOTICE_MS)
            ok = False
        self.refreshed.emit()
        return ok

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS
    # ══════════════════════════════════════════════════════════════════

    @property
    def settings(self) -> Settings:
        return self._settings

    def apply_settings(self, settings: Settings) -> None:
        """Swap in new settings.

        A new reset hour may move "today"; a new leveling curve may level
        the player up.
        """
        self._settings = settings
        self.ledger.settings = settings
        self.rollover.settings = settings
        self.ledger.settle(self.log.player)
        rolled = self.rollover.check()
        self.commit()
        if rolled:
            self.day_rolled_over.emit(self.log.day)

    # ══════════════════════════════════════════════════════════════════
    #  QUEST DEFINITIONS
    # ══════════════════════════════════════════════════════════════════

    @_user_action(failed=None)
    def create_quest(
        self,
        name: str,
        category: str | None = None,
        schedule: str | None = None,
        estimate_minutes: int | None = None,
    ) -> Quest | None:
        quest = self.registry.create(
            name,
            category=category,
            schedule=schedule,
            estimate_minutes=estimate_minutes,
        )
        self.commit()
        return quest

    @_user_action()
    def update_quest(self, quest_id: str, **changes) -> bool:
        self.registry.update(quest_id, **changes)
        self.commit()
        return True

    @_user_action()
    def archive_quest(self, quest_id: str) -> bool:
        quest = self.registry.archive(quest_id)
        self.commit()
        self.notice.emit(f"{quest.name} archived", NOTICE_MS)
        return True

    @_user_action()
    def unarchive_quest(self, quest_id: str) -> bool:
        self.registry.unarchive(quest_id)
        self.commit()
        return True

    @_user_action()
    def delete_quest(self, quest_id: str) -> bool:
        quest = self.registry.delete(quest_id)
        self.commit()
        self.notice.emit(f"{quest.name} deleted", NOTICE_MS)
        return True

    @_user_action()
    def reorder_quests(self, category: str, quest_ids: list[str]) -> bool:
        self.registry.reorder(category, quest_ids)
        self.commit()
        return True

    # ══════════════════════════════════════════════════════════════════
    #  TIMER
    # ══════════════════════════════════════════════════════════════════

    @_user_action()
    def start_quest(self, quest_id: str) -> bool:
        quest = self.registry.get(quest_id)
        if quest.archived:
            raise InvalidQuestStateError(f"{quest.name} is archived")
        if self.completions.is_completed_today(quest_id):
            raise InvalidQuestStateError(f"{quest.name} is already completed today")
        self.timer.start(quest_id)
        self.commit()
        return True

    def resume_quest(self, quest_id: str) -> bool:
        return self.start_quest(quest_id)

    @_user_action()
    def pause_quest(self, quest_id: str) -> bool:
        if not self.timer.pause(quest_id):
            return False
        self.commit()
        return True

    # ══════════════════════════════════════════════════════════════════
    #  COMPLETION
    # ══════════════════════════════════════════════════════════════════

    @_user_action()
    def complete_quest(self, quest_id: str) -> bool:
        quest = self.registry.get(quest_id)
        if not quest.archived and self.completions.is_completed_today(quest_id):
            self.notice.emit(f"{quest.name} is already completed today", NOTICE_MS)
            return False
        completion = self.completions.complete(quest)
        self.commit()
        self.notice.emit(
            f"✓ {quest.name} completed! +{completion.xp_earned} XP", NOTICE_MS,
        )
        return True

    @_user_action()
    def uncomplete_quest(self, quest_id: str) -> bool:
        quest = self.registry.get(quest_id)
        completion = self.completions.uncomplete(quest_id)
        if completion is None:
            return False
        self.commit()
        self.notice.emit(
            f"⟲ {quest.name} uncompleted. -{completion.xp_earned} XP", NOTICE_MS,
        )
        return True

    def reset_all_data(self) -> None:
        """Wipe completions, level, XP and timers.  Quests are kept."""
        self.timer.reset()
        self.log.completions.clear()
        self.log.player.level = 1
        self.log.player.xp = 0
        self.commit()
        self.notice.emit("✓ All quest data has been reset!", NOTICE_MS)

    # ══════════════════════════════════════════════════════════════════
    #  QUERIES
    # ══════════════════════════════════════════════════════════════════

    def today(self) -> str:
        return self.rollover.today()

    def today_quests(self) -> list[TodayQuest]:
        day = self.rollover.today_date()
        done = self.completions.completed_ids(self.rollover.today())
        return [
            TodayQuest(
                quest=q,
                completed=q.id in done,
                running=self.timer.is_running(q.id),
                minutes=self.timer.total_minutes(q.id),
            )
            for q in self.registry.quests_due(day)
        ]

    def progress(self) -> dict:
        xp, needed = self.ledger.progress(self.log.player)
        return {
            "level": self.log.player.level,
            "xp": xp,
            "needed": needed,
            "rank": rank_for_level(self.log.player.level),
        }

    def stats(self, days: int = 30) -> QuestStats:
        return calculate_stats(self.log, self.rollover.today_date(), days=days)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _attach(self, log: QuestLog) -> None:
        self.log = log
        self.timer.state = log.timer_state
        self.registry.log = log
        self.completions.log = log
        self.rollover.log = log

    def _on_display_tick(self) -> None:
        quest_id = self.timer.active_quest_id
        if not quest_id:
            return
        minutes = self.timer.total_minutes(quest_id)
        self.timer_tick.emit({
            "quest_id": quest_id,
            "minutes": minutes,
            "display": format_minutes(minutes),
        })

    def _on_level_changed(self, data: dict) -> None:
        if data["direction"] != "up":
            return
        rank = data["rank"]
        level = data["new_level"]
        if data["rank_changed"]:
            self.notice.emit(
                f"🎊 RANK UP! You are now {rank.icon} {rank.name.upper()} (Level {level})",
                RANK_UP_NOTICE_MS,
            )
        else:
            self.notice.emit(
                f"🎉 Level Up! Level {level} • {rank.icon} {rank.name}", NOTICE_MS,
            )
