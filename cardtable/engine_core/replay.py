"""
Replay - Immutable record of a finished session.

A replay is rebuilt by re-applying the recorded effects, in order,
against the recorded initial state. The processor is never re-run, so
a replay stays valid when validation rules change later; the actions
are kept for auditing only.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import time

from .state import GameState
from .history import HistoryEntry
from .applier import apply_effects


REPLAY_FORMAT_VERSION = 1


@dataclass
class ReplayRecord:
    """Everything needed to store and rebuild one session."""
    room_code: str
    initial_state: GameState
    final_state: GameState
    history: list[HistoryEntry] = field(default_factory=list)
    winner: str | None = None
    ended_at: float = field(default_factory=time.time)
    format_version: int = REPLAY_FORMAT_VERSION

    @property
    def action_count(self) -> int:
        return len(self.history)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format_version": self.format_version,
            "room_code": self.room_code,
            "winner": self.winner,
            "ended_at": self.ended_at,
            "initial_state": self.initial_state.to_dict(),
            "final_state": self.final_state.to_dict(),
            "history": [entry.to_dict() for entry in self.history],
            "log": [entry.to_dict() for entry in self.final_state.log],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReplayRecord:
        version = data.get("format_version", REPLAY_FORMAT_VERSION)
        if version != REPLAY_FORMAT_VERSION:
            raise ValueError(f"Unsupported replay format version: {version}")
        return cls(
            room_code=data["room_code"],
            winner=data.get("winner"),
            ended_at=data.get("ended_at", 0.0),
            initial_state=GameState.from_dict(data["initial_state"]),
            final_state=GameState.from_dict(data["final_state"]),
            history=[HistoryEntry.from_dict(e) for e in data.get("history", [])],
            format_version=version,
        )


def replay_effects(initial_state: GameState, history: list[HistoryEntry]) -> GameState:
    """
    Rebuild a state by re-applying recorded effects.

    The initial state is copied, not mutated.
    """
    state = initial_state.clone()
    for entry in history:
        apply_effects(state, entry.effects)
    return state
