"""Filesystem operations: atomic writes and JSON document backups.

Exports and backups are written to a temporary file in the target
directory and renamed into place, so a crash never leaves a truncated
file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def atomic_write_text(path: Path, content: str) -> Path:
    """Write *content* to *path* via temp file + rename.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return path


def write_json(path: Path, data: Any) -> Path:
    """Atomically write *data* as indented JSON."""
    return atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Backups
# ---------------------------------------------------------------------------


_STAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"


class BackupStore:
    """Timestamped JSON backups under one directory, pruned per key.

    A key names what was backed up (``board-<id>`` or ``config``). Files are
    named ``{key}-{timestamp}.json`` so lexical order is age order.
    """

    def __init__(self, directory: Path, *, max_count: int = 10) -> None:
        self._directory = directory
        self._max_count = max_count
        self._last: datetime | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    def write(self, key: str, document: Any) -> Path:
        """Store *document* as the newest backup for *key* and prune old ones."""
        path = self._directory / f"{key}-{self._stamp()}.json"
        write_json(path, document)
        logger.debug("Wrote backup %s", path.name)
        self.prune(key)
        return path

    def _stamp(self) -> str:
        """Sortable UTC timestamp, strictly increasing for this store."""
        now = datetime.now(UTC)
        if self._last is not None and now <= self._last:
            now = self._last + timedelta(microseconds=1)
        self._last = now
        return now.strftime(_STAMP_FORMAT)

    def backups_for(self, key: str) -> list[Path]:
        """Backups for *key*, oldest first."""
        if not self._directory.is_dir():
            return []
        return sorted(self._directory.glob(f"{key}-*.json"))

    def latest(self, key: str) -> Path | None:
        backups = self.backups_for(key)
        return backups[-1] if backups else None

    def read(self, path: Path) -> Any:
        return read_json(path)

    def prune(self, key: str) -> list[Path]:
        """Remove the oldest backups for *key* beyond ``max_count``."""
        backups = self.backups_for(key)
        excess = backups[: max(0, len(backups) - self._max_count)]
        for old in excess:
            old.unlink(missing_ok=True)
        if excess:
            logger.debug("Pruned %d backup(s) for %s", len(excess), key)
        return excess
