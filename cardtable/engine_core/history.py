"""
History Log - Ordered record of committed transactions.

Append-only except for undo, which pops the newest entry. This is the
record of what happened; the rolling display log on GameState is not.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterator
import time

from .action import Action
from .effects import Effect, parse_effects


@dataclass
class HistoryEntry:
    """One committed action and the effects it produced, in applied order."""
    action: Action
    effects: list[Effect]
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.to_dict(),
            "effects": [e.to_dict() for e in self.effects],
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            action=Action.from_dict(data["action"]),
            effects=parse_effects(data.get("effects", [])),
            timestamp=data.get("timestamp", 0.0),
        )


class HistoryLog:
    """LIFO-consumed transaction log owned by a GameSession."""

    def __init__(self, entries: list[HistoryEntry] | None = None):
        self._entries: list[HistoryEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> list[HistoryEntry]:
        """Copy of the entries, oldest first."""
        return list(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def pop(self) -> HistoryEntry | None:
        """Remove and return the newest entry, or None if empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> HistoryLog:
        return cls([HistoryEntry.from_dict(d) for d in data])
