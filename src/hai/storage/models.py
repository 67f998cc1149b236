"""Data models for hai."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _typed(value: Any, expected: type, key: str) -> Any:
    if not isinstance(value, expected):
        raise TypeError(f"'{key}' must be {expected.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class HistoryEntry:
    """A stored prompt/command interaction."""

    prompt: str
    command: str
    executed: bool
    model: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "command": self.command,
            "timestamp": self.timestamp.isoformat(),
            "executed": self.executed,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            prompt=_typed(data["prompt"], str, "prompt"),
            command=_typed(data["command"], str, "command"),
            executed=_typed(data["executed"], bool, "executed"),
            model=_typed(data.get("model", ""), str, "model"),
            timestamp=timestamp.astimezone(timezone.utc),
        )
