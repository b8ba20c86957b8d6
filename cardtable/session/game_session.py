"""
Game Session - Owns one authoritative table and its history.

The session drives every transaction:
1. ActionProcessor validates the action and expands it into effects
2. The effect applier mutates the state, in order
3. The history log records the transaction

A transaction is synchronous and atomic. dispatch() either commits
every effect of an action or none of them; undo() reverses the newest
transaction. There is no redo stack and undo is not itself recorded.

Sessions are not thread-safe: the caller serializes dispatch/undo
calls per session.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import uuid

from ..engine_core.state import GameState
from ..engine_core.action import Action
from ..engine_core.effects import Effect, AddLogEntry
from ..engine_core.errors import ActionRejected, UnknownActionType
from ..engine_core.processor import ActionProcessor
from ..engine_core.applier import apply_effect, inverse_sequence
from ..engine_core.history import HistoryEntry, HistoryLog
from ..engine_core.replay import ReplayRecord

logger = logging.getLogger(__name__)


class DispatchStatus(Enum):
    """Outcome of a dispatch or undo."""
    COMMITTED = "committed"
    REJECTED = "rejected"
    IGNORED = "ignored"  # Unknown action type, tolerated
    UNDONE = "undone"


@dataclass
class DispatchResult:
    """
    Result of a dispatch or undo.

    Contains:
    - The outcome
    - The effects applied (inverse effects for undo)
    - The error, when rejected or ignored
    """
    status: DispatchStatus
    action: Action | None = None
    effects: list[Effect] = field(default_factory=list)
    error: str | None = None
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.status in {DispatchStatus.COMMITTED, DispatchStatus.UNDONE}

    @classmethod
    def rejected(cls, action: Action, error: Exception) -> DispatchResult:
        return cls(
            status=DispatchStatus.REJECTED,
            action=action,
            error=str(error),
            error_code=getattr(error, "code", None),
        )


class GameSession:
    """
    Stateful coordinator for one table.

    Usage:
        session = GameSession(state)
        result = session.dispatch(Action.modify_life("p1", -3))
        if not result.success:
            report(result.error)
        session.undo()
    """

    def __init__(
        self,
        state: GameState,
        processor: ActionProcessor | None = None,
        session_id: str | None = None,
        strict_actions: bool = False,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.state = state
        self.processor = processor or ActionProcessor()
        self.strict_actions = strict_actions
        self.history = HistoryLog()
        self.initial_state = state.clone()

    def dispatch(self, action: Action) -> DispatchResult:
        """
        Validate and commit one action.

        A rejected action leaves state and history untouched.
        """
        try:
            effects = self.processor.process(self.state, action)
        except UnknownActionType as e:
            if self.strict_actions:
                logger.info("Session %s rejected action: %s", self.session_id, e)
                return DispatchResult.rejected(action, e)
            logger.warning("Session %s ignoring action: %s", self.session_id, e)
            return DispatchResult(
                status=DispatchStatus.IGNORED,
                action=action,
                error=str(e),
                error_code=e.code,
            )
        except ActionRejected as e:
            logger.info(
                "Session %s rejected %s from %s: %s",
                self.session_id, action.type_name, action.player_id, e,
            )
            return DispatchResult.rejected(action, e)

        for effect in effects:
            apply_effect(self.state, effect)
        self.history.append(HistoryEntry(action=action, effects=list(effects)))

        return DispatchResult(status=DispatchStatus.COMMITTED, action=action, effects=effects)

    def undo(self) -> DispatchResult | None:
        """
        Reverse the newest transaction.

        Returns None when there is nothing to undo.
        """
        entry = self.history.pop()
        if entry is None:
            return None

        inverses = inverse_sequence(entry.effects)
        for effect in inverses:
            apply_effect(self.state, effect)

        logger.info("Session %s undid %s", self.session_id, entry.action.type_name)
        return DispatchResult(status=DispatchStatus.UNDONE, action=entry.action, effects=inverses)

    def note(self, label: str, detail: str) -> None:
        """Write a display-log line without recording a transaction."""
        apply_effect(self.state, AddLogEntry(label=label, detail=detail))

    def reset(self, state: GameState) -> None:
        """
        Replace the table wholesale and start a fresh history.

        Used when a deck load invalidates every recorded effect.
        """
        self.state = state
        self.history.clear()
        self.initial_state = state.clone()

    def snapshot(self) -> GameState:
        """Deep copy of the full state, for the broadcast layer."""
        return self.state.clone()

    def replay_record(self, room_code: str | None = None, winner: str | None = None) -> ReplayRecord:
        """Package initial state, history and current state for storage."""
        return ReplayRecord(
            room_code=room_code or self.state.game_id,
            winner=winner,
            initial_state=self.initial_state.clone(),
            final_state=self.state.clone(),
            history=self.history.entries,
        )

    def history_dicts(self) -> list[dict[str, Any]]:
        return self.history.to_list()
