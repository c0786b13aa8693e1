"""Gamification package."""

from .xp import (
    XPLedger,
    Rank,
    RANKS,
    calculate_xp,
    xp_for_next_level,
    rank_for_level,
    round_half_up,
)

__all__ = [
    "XPLedger",
    "Rank",
    "RANKS",
    "calculate_xp",
    "xp_for_next_level",
    "rank_for_level",
    "round_half_up",
]
