"""Bounded, persisted search history."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


class SearchHistory:
    """Most-recent-first list of past queries, deduplicated by exact string.

    When a path is given the history is saved as a JSON list after every
    change; with no path it lives in memory only.
    """

    def __init__(self, path: Path | None = None, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit <= 0:
            raise ValueError(f"History limit must be positive, got {limit}")
        self.path = path
        self.limit = limit
        self._entries: list[str] = []

    def load(self) -> list[str]:
        """Load saved entries. A missing or unreadable file gives an empty history."""
        self._entries = []
        if self.path is None or not self.path.exists():
            return self.entries()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable search history %s: %s", self.path, e)
            return self.entries()

        if isinstance(data, list):
            for entry in data:
                if isinstance(entry, str) and entry not in self._entries:
                    self._entries.append(entry)
        self._entries = self._entries[: self.limit]
        return self.entries()

    def entries(self) -> list[str]:
        return list(self._entries)

    def add(self, query: str) -> None:
        """Record a query at the front, dropping an earlier copy."""
        if not query.strip():
            return
        if query in self._entries:
            self._entries.remove(query)
        self._entries.insert(0, query)
        del self._entries[self.limit :]
        self._save()

    def remove(self, query: str) -> bool:
        if query not in self._entries:
            return False
        self._entries.remove(query)
        self._save()
        return True

    def clear(self) -> None:
        self._entries = []
        self._save()

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._entries, indent=2), encoding="utf-8")
        except OSError as e:
            # A failed write must not fail the search
            logger.warning("Failed to save search history to %s: %s", self.path, e)

    def __len__(self) -> int:
        return len(self._entries)
