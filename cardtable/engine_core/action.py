"""
Action System - Player intents and their payloads.

Actions are the only input the engine accepts from outside.
They carry no effects themselves; the processor expands them.

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time
import uuid


class ActionType(Enum):
    """Closed set of intents a player can declare."""
    PLAY_CARD = "play_card"  # Hand to battlefield
    TAP = "tap"
    UNTAP = "untap"
    MOVE_CARD = "move_card"  # To an arbitrary zone
    DRAW = "draw"
    SHUFFLE = "shuffle"
    MODIFY_LIFE = "modify_life"


@dataclass
class ActionPayload:
    """
    Parameters for an action.

    Different action types read different fields.
    Validation happens in the processor.
    """
    card_id: str | None = None
    target_player_id: str | None = None  # Defaults to the acting player
    to_zone: str | None = None
    amount: int | None = None

    # Generic params
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "card_id": self.card_id,
            "target_player_id": self.target_player_id,
            "to_zone": self.to_zone,
            "amount": self.amount,
            "params": dict(self.params),
        }


@dataclass
class Action:
    """
    A declared intent from one player.

    action_type stays a raw string when the tag is not one we know,
    so the session can decide how to treat it.
    """
    action_type: ActionType | str
    player_id: str
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()
        if self.action_id is None:
            self.action_id = str(uuid.uuid4())

    @property
    def type_name(self) -> str:
        if isinstance(self.action_type, ActionType):
            return self.action_type.value
        return str(self.action_type)

    @property
    def target_player_id(self) -> str:
        """Player the action applies to (payload target or the actor)."""
        return self.payload.target_player_id or self.player_id

    @classmethod
    def play_card(cls, player_id: str, card_id: str) -> Action:
        """Factory for playing a card from hand."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            player_id=player_id,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def tap(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.TAP,
            player_id=player_id,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def untap(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.UNTAP,
            player_id=player_id,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def move_card(cls, player_id: str, card_id: str, to_zone: str) -> Action:
        """Factory for moving a card to any zone."""
        return cls(
            action_type=ActionType.MOVE_CARD,
            player_id=player_id,
            payload=ActionPayload(card_id=card_id, to_zone=to_zone),
        )

    @classmethod
    def draw(cls, player_id: str, amount: int = 1, target_player_id: str | None = None) -> Action:
        """Factory for drawing from the top of a library."""
        return cls(
            action_type=ActionType.DRAW,
            player_id=player_id,
            payload=ActionPayload(target_player_id=target_player_id, amount=amount),
        )

    @classmethod
    def shuffle(cls, player_id: str, target_player_id: str | None = None) -> Action:
        return cls(
            action_type=ActionType.SHUFFLE,
            player_id=player_id,
            payload=ActionPayload(target_player_id=target_player_id),
        )

    @classmethod
    def modify_life(cls, player_id: str, amount: int, target_player_id: str | None = None) -> Action:
        """Factory for a signed life change (positive gains, negative loses)."""
        return cls(
            action_type=ActionType.MODIFY_LIFE,
            player_id=player_id,
            payload=ActionPayload(target_player_id=target_player_id, amount=amount),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "player_id": self.player_id,
            "payload": self.payload.to_dict(),
            "timestamp": self.timestamp,
            "action_id": self.action_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """
        Build an action from its wire/replay form.

        Unknown type tags are kept as strings rather than rejected here.
        """
        raw_type = data.get("type")
        if not raw_type:
            raise ValueError("Action missing 'type' field")
        try:
            action_type: ActionType | str = ActionType(raw_type)
        except ValueError:
            action_type = raw_type

        payload_data = data.get("payload") or {}
        payload = ActionPayload(
            card_id=payload_data.get("card_id"),
            target_player_id=payload_data.get("target_player_id"),
            to_zone=payload_data.get("to_zone"),
            amount=payload_data.get("amount"),
            params=dict(payload_data.get("params") or {}),
        )
        return cls(
            action_type=action_type,
            player_id=data["player_id"],
            payload=payload,
            timestamp=data.get("timestamp"),
            action_id=data.get("action_id"),
        )
