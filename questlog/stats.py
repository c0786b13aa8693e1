"""Aggregate statistics over the completion history.

Produces the numbers a report or dashboard needs; turning them into text
is left to the caller.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta

from .gamification.xp import rank_for_level
from .storage.models import QuestLog


@dataclass
class DayTotals:
    date: str
    count: int = 0
    xp: int = 0
    minutes: int = 0


@dataclass
class QuestTotals:
    id: str
    name: str
    count: int = 0
    xp: int = 0
    minutes: int = 0


@dataclass
class QuestStats:
    """Snapshot of everything the report needs."""

    level: int = 1
    xp: int = 0
    rank: str = "Novice"
    total_completed: int = 0
    total_xp: int = 0
    total_minutes: int = 0
    recent_days: list[DayTotals] = field(default_factory=list)
    top_quests: list[QuestTotals] = field(default_factory=list)


def format_hours(total_minutes: int) -> str:
    """125 → '2h 5m', 0 → '0h 0m'."""
    total_minutes = max(0, int(total_minutes))
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def calculate_stats(
    log: QuestLog,
    today: date,
    days: int = 30,
    top: int = 10,
) -> QuestStats:
    """Totals, a per-day series ending at *today*, and the top quests."""
    stats = QuestStats(
        level=log.player.level,
        xp=log.player.xp,
        rank=rank_for_level(log.player.level).name,
    )

    by_date: dict[str, DayTotals] = {}
    by_quest: dict[str, list[int]] = defaultdict(lambda: [0, 0, 0])
    for c in log.completions:
        stats.total_completed += 1
        stats.total_xp += c.xp_earned
        stats.total_minutes += c.minutes_spent

        day = by_date.setdefault(c.date, DayTotals(c.date))
        day.count += 1
        day.xp += c.xp_earned
        day.minutes += c.minutes_spent

        totals = by_quest[c.quest_id]
        totals[0] += 1
        totals[1] += c.xp_earned
        totals[2] += c.minutes_spent

    # ── last N days, oldest first ─────────────────────────────────────
    for offset in range(days - 1, -1, -1):
        key = (today - timedelta(days=offset)).isoformat()
        stats.recent_days.append(by_date.get(key, DayTotals(key)))

    # ── top quests by completion count ────────────────────────────────
    names = {q.id: q.name for q in log.quests}
    counts = Counter({qid: t[0] for qid, t in by_quest.items()})
    for quest_id, _ in counts.most_common(top):
        count, xp, minutes = by_quest[quest_id]
        stats.top_quests.append(QuestTotals(
            id=quest_id,
            name=names.get(quest_id, quest_id),
            count=count,
            xp=xp,
            minutes=minutes,
        ))

    return stats
