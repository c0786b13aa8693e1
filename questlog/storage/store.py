"""JSON file storage for the quest log.

The log is always read and written as one complete document; there are
no partial updates.  Files live under the application-support directory
unless an absolute path is given::

    store = JsonQuestLogStore()
    log = store.load("QuestLog.json")   # None when missing or corrupt
    store.save("QuestLog.json", log)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ..errors import StorageError
from .models import MalformedLogError, QuestLog

logger = logging.getLogger(__name__)

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "QuestLog"


class JsonQuestLogStore:
    """Load/save a :class:`QuestLog` as pretty-printed JSON."""

    def __init__(self, base_dir: Path | str = APP_SUPPORT_DIR) -> None:
        self._base_dir = Path(base_dir)

    def resolve(self, path: str | Path) -> Path:
        p = Path(path).expanduser()
        return p if p.is_absolute() else self._base_dir / p

    def load(self, path: str | Path) -> QuestLog | None:
        """Return the stored log, or ``None`` if missing or unreadable."""
        target = self.resolve(path)
        if not target.exists():
            logger.info("no quest log at %s", target)
            return None
        try:
            data = json.loads(target.read_text(encoding="utf-8"))
            return QuestLog.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, MalformedLogError) as exc:
            logger.warning("ignoring unreadable quest log %s: %s", target, exc)
            return None

    def save(self, path: str | Path, log: QuestLog) -> None:
        """Write the whole log, replacing the file atomically."""
        target = self.resolve(path)
        tmp = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(log.to_dict(), indent=2) + "\n",
                encoding="utf-8",
            )
            os.replace(tmp, target)
        except OSError as exc:
            raise StorageError(f"Could not save quest log to {target}: {exc}") from exc
