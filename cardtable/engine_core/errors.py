"""
Engine errors.

Everything under ActionRejected is a hard rejection: the action produced
no effects and the caller should be told. UnknownActionType is tolerated
by default (see GameSession.strict_actions).
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine errors."""
    code = "ENGINE_ERROR"


class ActionRejected(EngineError):
    """An action failed validation."""
    code = "ACTION_REJECTED"


class CardNotFound(ActionRejected):
    code = "CARD_NOT_FOUND"

    def __init__(self, card_id: str | None):
        super().__init__(f"Card {card_id} not found")
        self.card_id = card_id


class InvalidZone(ActionRejected):
    code = "INVALID_ZONE"


class NotCardOwner(ActionRejected):
    code = "NOT_CARD_OWNER"

    def __init__(self, card_id: str, player_id: str):
        super().__init__(f"Player {player_id} does not own card {card_id}")
        self.card_id = card_id
        self.player_id = player_id


class AlreadyTapped(ActionRejected):
    code = "ALREADY_TAPPED"

    def __init__(self, card_id: str):
        super().__init__(f"Card {card_id} is already tapped")
        self.card_id = card_id


class AlreadyUntapped(ActionRejected):
    code = "ALREADY_UNTAPPED"

    def __init__(self, card_id: str):
        super().__init__(f"Card {card_id} is already untapped")
        self.card_id = card_id


class PlayerNotFound(ActionRejected):
    code = "PLAYER_NOT_FOUND"

    def __init__(self, player_id: str | None):
        super().__init__(f"Player {player_id} not found")
        self.player_id = player_id


class InvalidAmount(ActionRejected):
    code = "INVALID_AMOUNT"


class UnknownActionType(EngineError):
    code = "UNKNOWN_ACTION_TYPE"

    def __init__(self, action_type: object):
        super().__init__(f"Unknown action type: {action_type}")
        self.action_type = action_type
