"""QuestLog: a daily quest tracker with timers, XP and levels."""
