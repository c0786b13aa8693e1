"""XP and leveling logic for QuestLog.

XP Awards
---------
- Quest with an estimate:  round(max(estimate, actual) * xp_per_minute)
  Finishing early is never penalised; the estimate is the floor.
- Quest without estimate:  flat_xp

Leveling Curve
--------------
The player holds ``(level, xp)`` where ``xp`` is progress *inside* the
current level.  Leaving level L costs::

    round(leveling_base * L ** leveling_exponent)

With the defaults (100, 1.5): L1→2 100 XP, L2→3 283 XP, L3→4 520 XP.

``award`` and ``revert`` are exact inverses of each other.  The only loss
happens when a revert would go below zero XP at level 1: the ledger
clamps to ``(1, 0)``.

Ranks
-----
Cosmetic tiers by level range (Novice, Initiate, … Divine).  Crossing a
rank boundary is reported through ``level_changed``; it has no effect on
the arithmetic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from PyQt6.QtCore import QObject, pyqtSignal

from ..settings import Settings
from ..storage.models import PlayerState


# ── rounding ─────────────────────────────────────────────────────────────


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (``round()`` rounds to even)."""
    return int(math.floor(value + 0.5))


# ── XP math ──────────────────────────────────────────────────────────────


def calculate_xp(
    estimate_minutes: int | None,
    actual_minutes: float,
    *,
    xp_per_minute: float = 1,
    flat_xp: int = 10,
) -> int:
    """XP for finishing a quest."""
    if estimate_minutes is not None and estimate_minutes > 0:
        minutes = max(estimate_minutes, actual_minutes)
        return round_half_up(minutes * xp_per_minute)
    return round_half_up(flat_xp)


def xp_for_next_level(
    level: int,
    *,
    base: float = 100,
    exponent: float = 1.5,
) -> int:
    """XP needed to go from *level* to *level + 1* (never below 1)."""
    return max(1, round_half_up(base * (level ** exponent)))


# ── ranks ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Rank:
    name: str
    icon: str
    min_level: int
    max_level: float


RANKS: list[Rank] = [
    Rank("Novice", "🌱", 1, 2),
    Rank("Initiate", "✨", 3, 5),
    Rank("Apprentice", "📘", 6, 8),
    Rank("Seeker", "🔍", 9, 11),
    Rank("Wanderer", "🌍", 12, 14),
    Rank("Explorer", "🗺️", 15, 17),
    Rank("Pathfinder", "🧭", 18, 20),
    Rank("Adventurer", "🗡️", 21, 24),
    Rank("Wayfarer", "🚶", 25, 28),
    Rank("Tracker", "👣", 29, 32),
    Rank("Scout", "🦅", 33, 36),
    Rank("Ranger", "🏹", 37, 40),
    Rank("Warrior", "⚔️", 41, 44),
    Rank("Guardian", "🛡️", 45, 48),
    Rank("Sentinel", "🗼", 49, 52),
    Rank("Vanguard", "🎖️", 53, 56),
    Rank("Champion", "🏆", 57, 60),
    Rank("Elite", "💎", 61, 64),
    Rank("Master", "🎯", 65, 68),
    Rank("Virtuoso", "🎭", 69, 72),
    Rank("Paragon", "⭐", 73, 76),
    Rank("Hero", "🦸", 77, 80),
    Rank("Legend", "👑", 81, 85),
    Rank("Mythic", "🔥", 86, 90),
    Rank("Ascendant", "🌟", 91, 95),
    Rank("Immortal", "💫", 96, 99),
    Rank("Divine", "✨", 100, math.inf),
]


def rank_for_level(level: int) -> Rank:
    for rank in RANKS:
        if rank.min_level <= level <= rank.max_level:
            return rank
    return RANKS[-1]


# ── ledger ───────────────────────────────────────────────────────────────


class XPLedger(QObject):
    """Applies XP awards and reverts to a :class:`PlayerState`.

    Signals
    -------
    xp_awarded(data: dict)
        Emitted after every award or revert.  Keys: ``amount`` (negative
        for reverts), ``level``, ``xp``.
    level_changed(data: dict)
        Emitted once per level crossed.  Keys: ``old_level``,
        ``new_level``, ``direction`` ("up" | "down"), ``rank`` (Rank),
        ``rank_changed`` (bool).
    """

    xp_awarded = pyqtSignal(object)
    level_changed = pyqtSignal(object)

    def __init__(
        self,
        settings: Settings | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.settings = settings or Settings()

    # ── formulas bound to the current settings ───────────────────────────

    def calculate_xp(self, estimate_minutes: int | None, actual_minutes: float) -> int:
        return calculate_xp(
            estimate_minutes,
            actual_minutes,
            xp_per_minute=self.settings.xp_per_minute,
            flat_xp=self.settings.flat_xp,
        )

    def xp_for_next_level(self, level: int) -> int:
        return xp_for_next_level(
            level,
            base=self.settings.leveling_base,
            exponent=self.settings.leveling_exponent,
        )

    def progress(self, player: PlayerState) -> tuple[int, int]:
        """Return ``(xp_in_level, needed_for_level)``."""
        return player.xp, self.xp_for_next_level(player.level)

    # ── mutations ────────────────────────────────────────────────────────

    def award(self, player: PlayerState, xp: int) -> int:
        """Add *xp*, levelling up as many times as it pays for.

        Returns the number of levels gained.
        """
        xp = max(0, int(xp))
        player.xp += xp
        gained = self.settle(player)
        self.xp_awarded.emit({"amount": xp, "level": player.level, "xp": player.xp})
        return gained

    def settle(self, player: PlayerState) -> int:
        """Level up until ``xp`` is below the current threshold.

        Needed on its own when the leveling curve changes under a player.
        Returns the number of levels gained.
        """
        start_level = player.level
        while player.xp >= self.xp_for_next_level(player.level):
            player.xp -= self.xp_for_next_level(player.level)
            player.level += 1
            self._emit_level(player.level - 1, player.level, "up")
        return player.level - start_level

    def revert(self, player: PlayerState, xp: int) -> int:
        """Take back *xp*, levelling down as needed.

        Returns the number of levels lost.  Clamps at ``(1, 0)``.
        """
        xp = max(0, int(xp))
        start_level = player.level
        player.xp -= xp
        while player.xp < 0 and player.level > 1:
            player.level -= 1
            player.xp += self.xp_for_next_level(player.level)
            self._emit_level(player.level + 1, player.level, "down")
        if player.xp < 0:
            player.xp = 0

        self.xp_awarded.emit({"amount": -xp, "level": player.level, "xp": player.xp})
        return start_level - player.level

    def _emit_level(self, old_level: int, new_level: int, direction: str) -> None:
        old_rank = rank_for_level(old_level)
        new_rank = rank_for_level(new_level)
        self.level_changed.emit({
            "old_level": old_level,
            "new_level": new_level,
            "direction": direction,
            "rank": new_rank,
            "rank_changed": old_rank.name != new_rank.name,
        })
