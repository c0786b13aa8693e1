"""Recurrence schedules: parse once, match many times.

Supported shapes
----------------
``daily`` / ``all`` / ``everyday`` / empty   every day
``weekdays``                                 Monday-Friday
``weekends``                                 Saturday, Sunday
day lists    ``mon, wed fri``  ``tu th``  ``M W F`` (R = Thu, U = Sun)
day ranges   ``mon-fri``  ``fri-mon`` (wraps the week)
dates        ``24-12-2026`` (DD-MM-YYYY)

Tokens are separated by commas and/or whitespace.  Day names match by
prefix (at least two letters) or single-letter code.  Tokens that match
nothing are ignored; if nothing at all matches, the schedule is daily.

Matching only looks at the calendar date, never the time of day.  Callers
pass the already-adjusted logical day (see :mod:`questlog.rollover`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Union

# ── day tables (Monday = 0, matching date.weekday()) ──────────────────────

DAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday",
    "friday", "saturday", "sunday",
)

DAY_LETTERS = {"m": 0, "t": 1, "w": 2, "r": 3, "f": 4, "s": 5, "u": 6}

WEEKDAYS = frozenset(range(0, 5))
WEEKENDS = frozenset((5, 6))

_DAILY_WORDS = {"", "daily", "all", "everyday"}
_TOKEN_SPLIT = re.compile(r"[\s,]+")
_DATE_TOKEN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")


# ── schedule variants ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Daily:
    pass


@dataclass(frozen=True)
class Weekdays:
    pass


@dataclass(frozen=True)
class Weekends:
    pass


@dataclass(frozen=True)
class DaysOfWeek:
    """Explicit weekdays plus any one-off calendar dates."""

    days: frozenset[int] = frozenset()
    dates: frozenset[date] = frozenset()


Schedule = Union[Daily, Weekdays, Weekends, DaysOfWeek]


# ── parsing ──────────────────────────────────────────────────────────────


def day_index(token: str) -> int | None:
    """Map ``"mon"``, ``"thurs"``, ``"R"`` … to a weekday index."""
    token = token.strip().lower()
    if len(token) == 1:
        return DAY_LETTERS.get(token)
    if len(token) >= 2:
        for index, name in enumerate(DAY_NAMES):
            if name.startswith(token):
                return index
    return None


def _day_range(start: int, end: int) -> set[int]:
    """Walk forward from *start* to *end* inclusive, wrapping Sunday→Monday."""
    days = {start}
    current = start
    while current != end:
        current = (current + 1) % 7
        days.add(current)
    return days


def _parse_date(token: str) -> date | None:
    m = _DATE_TOKEN.match(token)
    if not m:
        return None
    day, month, year = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


@lru_cache(maxsize=256)
def parse_schedule(spec: str | None) -> Schedule:
    """Parse a schedule string into one of the schedule variants."""
    s = (spec or "").strip().lower()
    if s in _DAILY_WORDS:
        return Daily()
    if s == "weekdays":
        return Weekdays()
    if s == "weekends":
        return Weekends()

    days: set[int] = set()
    dates: set[date] = set()
    for token in filter(None, _TOKEN_SPLIT.split(s)):
        if token in _DAILY_WORDS:
            days.update(range(7))
            continue
        if token == "weekdays":
            days |= WEEKDAYS
            continue
        if token == "weekends":
            days |= WEEKENDS
            continue

        on_date = _parse_date(token)
        if on_date is not None:
            dates.add(on_date)
            continue

        if "-" in token:
            parts = token.split("-")
            if len(parts) == 2:
                start, end = day_index(parts[0]), day_index(parts[1])
                if start is not None and end is not None:
                    days |= _day_range(start, end)
            continue

        index = day_index(token)
        if index is not None:
            days.add(index)

    if not days and not dates:
        return Daily()
    if days == set(range(7)) and not dates:
        return Daily()
    return DaysOfWeek(frozenset(days), frozenset(dates))


# ── matching ─────────────────────────────────────────────────────────────


def matches(schedule: Schedule, day: date) -> bool:
    """True if *schedule* is due on the calendar date *day*."""
    if isinstance(day, datetime):
        day = day.date()
    if isinstance(schedule, Daily):
        return True
    weekday = day.weekday()
    if isinstance(schedule, Weekdays):
        return weekday in WEEKDAYS
    if isinstance(schedule, Weekends):
        return weekday in WEEKENDS
    return weekday in schedule.days or day in schedule.dates


def is_due(spec: str | None, day: date) -> bool:
    """Parse *spec* (cached) and check it against *day*."""
    return matches(parse_schedule(spec), day)


def normalize_schedule(spec: str | None) -> str:
    """Trimmed schedule text; blank input becomes ``"daily"``."""
    s = (spec or "").strip()
    return s if s else "daily"
