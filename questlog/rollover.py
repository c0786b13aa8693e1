"""Daily rollover: what "today" means and what happens when it changes.

The logical day starts at ``daily_reset_hour`` rather than midnight.  With
a reset hour of 4, 03:59 on the 20th still belongs to the 19th.

When the logical day changes, in-progress timing is thrown away: the
running quest is paused and then every bucket is cleared.  Completions and
player XP are left alone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from .settings import Settings
from .storage.models import QuestLog
from .timer.engine import Clock, TimerStateMachine

logger = logging.getLogger(__name__)


def logical_today(now: datetime, reset_hour: int = 0) -> date:
    """Calendar date of *now*, shifted back a day before *reset_hour*."""
    if now.hour < reset_hour:
        return (now - timedelta(days=1)).date()
    return now.date()


def day_string(day: date) -> str:
    return day.isoformat()


def parse_day(value: str) -> date:
    """Inverse of :func:`day_string`.

    ``date`` carries no time of day, so weekday lookups on the result are
    unaffected by daylight-saving shifts.
    """
    return date.fromisoformat(value)


class RolloverController:
    """Keeps ``log.day`` in step with the wall clock."""

    def __init__(
        self,
        log: QuestLog,
        timer: TimerStateMachine,
        settings: Settings,
        clock: Clock = datetime.now,
    ) -> None:
        self.log = log
        self.settings = settings
        self._timer = timer
        self._clock = clock

    def today_date(self) -> date:
        return logical_today(self._clock(), self.settings.daily_reset_hour)

    def today(self) -> str:
        return day_string(self.today_date())

    def check(self) -> bool:
        """Roll the log over if the logical day changed.  True if it did."""
        today = self.today()
        if self.log.day == today:
            return False

        paused = self._timer.auto_pause_active()
        self._timer.reset()
        previous, self.log.day = self.log.day, today
        logger.info(
            "rolled over %s -> %s%s",
            previous or "(new log)", today,
            f" (dropped running timer for {paused})" if paused else "",
        )
        return True
