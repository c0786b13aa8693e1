"""Quest engine settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/QuestLog/settings.json

Keys on disk use the camelCase names (``xpPerMinute``, ``dailyResetHour``
…); snake_case keys are accepted too.  Values that are out of range fall
back to their defaults.

Usage::

    settings = load_settings()
    settings.daily_reset_hour = 4
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path

from .storage.store import APP_SUPPORT_DIR

logger = logging.getLogger(__name__)

SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"

_CAMEL_NAMES = {
    "xp_per_minute": "xpPerMinute",
    "flat_xp": "flatXp",
    "leveling_base": "levelingBase",
    "leveling_exponent": "levelingExponent",
    "daily_reset_hour": "dailyResetHour",
    "quest_log_path": "questLogPath",
}


@dataclass
class Settings:
    """All user-configurable engine options."""

    # ── XP ────────────────────────────────────────────────────────────
    xp_per_minute: float = 1
    flat_xp: int = 10

    # ── leveling curve: round(base * level ** exponent) ──────────────
    leveling_base: float = 100
    leveling_exponent: float = 1.5

    # ── day boundary ──────────────────────────────────────────────────
    daily_reset_hour: int = 0             # 0-23

    # ── storage ───────────────────────────────────────────────────────
    quest_log_path: str = "QuestLog.json"

    def __post_init__(self) -> None:
        defaults = {f.name: f.default for f in fields(self)}

        for name in ("xp_per_minute", "flat_xp", "leveling_base", "leveling_exponent"):
            value = getattr(self, name)
            if (isinstance(value, bool) or not isinstance(value, (int, float))
                    or not math.isfinite(value) or value <= 0):
                setattr(self, name, defaults[name])

        # whole XP only
        self.flat_xp = max(1, math.floor(self.flat_xp + 0.5))

        hour = self.daily_reset_hour
        if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
            self.daily_reset_hour = defaults["daily_reset_hour"]

        if not isinstance(self.quest_log_path, str) or not self.quest_log_path.strip():
            self.quest_log_path = defaults["quest_log_path"]

    def to_dict(self) -> dict:
        return {_CAMEL_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        """Build settings from a dict, ignoring unknown keys."""
        values = {}
        for f in fields(cls):
            if _CAMEL_NAMES[f.name] in data:
                values[f.name] = data[_CAMEL_NAMES[f.name]]
            elif f.name in data:
                values[f.name] = data[f.name]
        return cls(**values)


def load_settings(path: Path = SETTINGS_PATH) -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return Settings.from_dict(data)
            logger.warning("settings file %s is not an object; using defaults", path)
    except (OSError, ValueError) as exc:
        logger.warning("could not read settings %s: %s", path, exc)
    return Settings()


def save_settings(settings: Settings, path: Path = SETTINGS_PATH) -> None:
    """Write settings to disk as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(settings.to_dict(), indent=2) + "\n",
        encoding="utf-8",
    )
