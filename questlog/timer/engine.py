"""Single-slot quest timer for QuestLog.

States
------
IDLE       No quest is running.
RUNNING    Exactly one quest is accumulating time.

Transitions
-----------
IDLE → RUNNING(q)          start(q)
RUNNING(a) → RUNNING(b)    start(b); a's elapsed time is banked first
RUNNING(q) → IDLE          pause(q) | auto_pause_active() | discard(q) | reset()

Time is tracked as wall-clock deltas.  While a quest runs, only its
``start_time`` is stored; elapsed minutes are computed on demand.  Banked
minutes live in ``paused_sessions`` keyed by quest id.  All state lives in
the :class:`~questlog.storage.models.TimerState` record that is persisted
with the quest log, so a restart can recover a timer that was never
paused (see :meth:`TimerStateMachine.recover_on_load`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable

from PyQt6.QtCore import QObject, pyqtSignal

from ..storage.models import TimerState

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class TimerStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def format_minutes(minutes: float) -> str:
    """Live timer text: ``1h 5m 3s``, ``1h 3s``, ``5m 0s``, ``42s``."""
    total_seconds = max(0, int(minutes * 60))
    h, rest = divmod(total_seconds, 3600)
    m, s = divmod(rest, 60)
    if h > 0:
        return f"{h}h {m}m {s}s" if m > 0 else f"{h}h {s}s"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


class TimerStateMachine(QObject):
    """Owns the global "currently running" slot.

    Signals
    -------
    state_changed(active_quest_id: str | None)
        Emitted whenever the running quest changes (``None`` = idle).
    """

    state_changed = pyqtSignal(object)

    def __init__(
        self,
        state: TimerState,
        clock: Clock = datetime.now,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._state = state
        self._clock = clock

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TimerState:
        return self._state

    @state.setter
    def state(self, value: TimerState) -> None:
        self._state = value

    @property
    def status(self) -> TimerStatus:
        if self._state.active_quest_id:
            return TimerStatus.RUNNING
        return TimerStatus.IDLE

    @property
    def active_quest_id(self) -> str | None:
        return self._state.active_quest_id

    def is_running(self, quest_id: str) -> bool:
        return bool(quest_id) and self._state.active_quest_id == quest_id

    def now_ms(self) -> int:
        return to_epoch_ms(self._clock())

    # ══════════════════════════════════════════════════════════════════
    #  READINGS
    # ══════════════════════════════════════════════════════════════════

    def elapsed_minutes(self) -> float:
        """Minutes since the active quest was last (re)started; 0 if idle."""
        s = self._state
        if not s.active_quest_id or s.start_time is None:
            return 0.0
        return max(0.0, (self.now_ms() - s.start_time) / 60_000)

    def total_minutes(self, quest_id: str) -> float:
        """Banked minutes plus live elapsed time if *quest_id* is running."""
        banked = self._state.paused_sessions.get(quest_id, 0.0)
        if self.is_running(quest_id):
            return banked + self.elapsed_minutes()
        return banked

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self, quest_id: str) -> None:
        """Make *quest_id* the running quest.

        Any other running quest is paused first so its time is banked.
        Starting the quest that is already running changes nothing.
        """
        s = self._state
        if s.active_quest_id == quest_id:
            return
        if s.active_quest_id:
            self._bank_active()
        s.active_quest_id = quest_id
        s.start_time = self.now_ms()
        self.state_changed.emit(quest_id)

    def resume(self, quest_id: str) -> None:
        self.start(quest_id)

    def pause(self, quest_id: str) -> bool:
        """Bank the running time of *quest_id*.  No-op unless it is active."""
        if not self.is_running(quest_id):
            return False
        self._bank_active()
        self.state_changed.emit(None)
        return True

    def auto_pause_active(self) -> str | None:
        """Bank whatever is running (shutdown path).  Returns the quest id."""
        quest_id = self._state.active_quest_id
        if not quest_id:
            return None
        self._bank_active()
        self.state_changed.emit(None)
        return quest_id

    def recover_on_load(self) -> tuple[str, float] | None:
        """Fold a timer left running across a restart into its bucket.

        The whole interval up to now is counted, however long the process
        was gone.
        """
        s = self._state
        if not s.active_quest_id or s.start_time is None:
            s.active_quest_id = None
            s.start_time = None
            return None
        quest_id = s.active_quest_id
        minutes = self._bank_active()
        logger.info("timer recovered for %s: +%.1fm", quest_id, minutes)
        return quest_id, minutes

    def discard(self, quest_id: str) -> None:
        """Forget all tracked time for *quest_id*, running or banked."""
        s = self._state
        was_running = self.is_running(quest_id)
        if was_running:
            s.active_quest_id = None
            s.start_time = None
        s.paused_sessions.pop(quest_id, None)
        if was_running:
            self.state_changed.emit(None)

    def reset(self) -> None:
        """Drop the active slot and every paused bucket."""
        was_running = bool(self._state.active_quest_id)
        self._state.clear()
        if was_running:
            self.state_changed.emit(None)

    def prune(self, valid_ids: Iterable[str]) -> None:
        """Drop buckets (and the active slot) for quests that no longer exist."""
        valid = set(valid_ids)
        s = self._state
        for quest_id in [k for k in s.paused_sessions if k not in valid]:
            del s.paused_sessions[quest_id]
        if s.active_quest_id and s.active_quest_id not in valid:
            s.active_quest_id = None
            s.start_time = None

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _bank_active(self) -> float:
        s = self._state
        quest_id = s.active_quest_id
        elapsed = self.elapsed_minutes()
        s.paused_sessions[quest_id] = s.paused_sessions.get(quest_id, 0.0) + elapsed
        s.active_quest_id = None
        s.start_time = None
        return elapsed
