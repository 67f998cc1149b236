"""Bounded command history persisted as JSON."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections import deque
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from hai.errors import SerializationError, StorageError
from hai.storage.models import HistoryEntry

logger = logging.getLogger(__name__)


class History:
    """FIFO sequence of entries that never grows beyond ``max_size``."""

    def __init__(self, max_size: int, entries: Iterable[HistoryEntry] = ()) -> None:
        if max_size < 0:
            raise ValueError("max_size must be non-negative")
        self.max_size = max_size
        self._entries: deque[HistoryEntry] = deque()
        for entry in entries:
            self.append(entry)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)
        while len(self._entries) > self.max_size:
            self._entries.popleft()

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self._entries],
            "max_size": self.max_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], max_size: int | None = None) -> History:
        """Rebuild a history, optionally re-bounding it to a new capacity."""
        capacity = data["max_size"] if max_size is None else max_size
        entries = [HistoryEntry.from_dict(item) for item in data["entries"]]
        return cls(int(capacity), entries)


class HistoryStore:
    """Loads and saves a :class:`History` at a fixed path."""

    def __init__(self, path: Path, capacity: int) -> None:
        self.path = path
        self.capacity = capacity

    def load(self) -> History:
        if not self.path.exists():
            logger.debug("No history file at %s, starting empty", self.path)
            return History(self.capacity)

        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError(f"Failed to decode history file at {self.path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read history file at {self.path}: {e}") from e

        try:
            data = json.loads(raw)
            # The configured capacity wins over the stored one.
            history = History.from_dict(data, max_size=self.capacity)
        except (ValueError, KeyError, TypeError) as e:
            raise SerializationError(f"Failed to parse history file at {self.path}: {e}") from e

        logger.debug("Loaded %d history entries from %s", len(history), self.path)
        return history

    def save(self, history: History) -> None:
        try:
            payload = json.dumps(history.to_dict(), indent=2)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize history: {e}") from e

        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write history file to {self.path}: {e}") from e

        logger.debug("Saved %d history entries to %s", len(history), self.path)
