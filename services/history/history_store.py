"""JSON-file history of solved equations."""
from __future__ import annotations

import json
import secrets
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from core.config import settings
from core.logger import logger


@dataclass(frozen=True)
class HistoryEntry:
    """One saved equation and its result."""

    id: str
    equation: str
    result: str
    timestamp: int


def _generate_id() -> str:
    return secrets.token_hex(6) + format(int(time.time() * 1000), "x")


class HistoryStore:
    """Newest-first list of solved equations, capped at ``limit`` entries."""

    def __init__(self, path: Optional[Path] = None, limit: Optional[int] = None) -> None:
        self.path = Path(path) if path is not None else settings.history_file
        self.limit = limit if limit is not None else settings.history_limit
        self._lock = threading.Lock()

    def save(self, equation: str, result: str) -> HistoryEntry:
        """Prepend an entry and drop the oldest ones beyond the limit."""
        entry = HistoryEntry(
            id=_generate_id(),
            equation=equation,
            result=result,
            timestamp=int(time.time() * 1000),
        )
        with self._lock:
            entries = [entry, *self._read()][: self.limit]
            self._write(entries)
        logger.debug("Saved history entry %s", entry.id)
        return entry

    def list(self) -> List[HistoryEntry]:
        with self._lock:
            return self._read()

    def delete(self, entry_id: str) -> bool:
        """Remove one entry; False when no entry has that id."""
        with self._lock:
            entries = self._read()
            remaining = [e for e in entries if e.id != entry_id]
            if len(remaining) == len(entries):
                return False
            self._write(remaining)
        logger.debug("Deleted history entry %s", entry_id)
        return True

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()
        logger.info("History cleared")

    def _read(self) -> List[HistoryEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [HistoryEntry(**item) for item in raw]
        except (ValueError, TypeError) as exc:
            logger.error("Failed to parse history %s: %s", self.path, exc)
            return []

    def _write(self, entries: List[HistoryEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([asdict(e) for e in entries], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
