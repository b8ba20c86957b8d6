"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between table clients and the
engine. All responses include explicit types for OpenAPI schema generation.

Error Codes:
- ROOM_NOT_FOUND: Room does not exist or has ended
- PLAYER_NOT_FOUND: Acting or target player is not seated in the room
- CARD_NOT_FOUND / INVALID_ZONE / NOT_CARD_OWNER: Card preconditions failed
- ALREADY_TAPPED / ALREADY_UNTAPPED: Redundant tap or untap
- INVALID_AMOUNT: Draw or life amount is not a usable integer
- UNKNOWN_ACTION_TYPE: Action tag is not recognized
- INVALID_DECK: Deck list could not be loaded
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field, ConfigDict


# =============================================================================
# Enums
# =============================================================================

class DispatchOutcome(str, Enum):
    """What happened to an action or undo request."""
    COMMITTED = "committed"
    REJECTED = "rejected"
    IGNORED = "ignored"
    UNDONE = "undone"
    NOTHING_TO_UNDO = "nothing_to_undo"


class ZoneName(str, Enum):
    """Zones a card can occupy."""
    LIBRARY = "library"
    HAND = "hand"
    BATTLEFIELD = "battlefield"
    STACK = "stack"
    GRAVEYARD = "graveyard"
    EXILE = "exile"
    COMMANDER = "commander"


class PlayerStatusValue(str, Enum):
    """Lobby status values."""
    READY = "Ready"
    WAITING = "Waiting"
    TESTING = "Testing"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_EXISTS = "ROOM_EXISTS"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    INVALID_ZONE = "INVALID_ZONE"
    NOT_CARD_OWNER = "NOT_CARD_OWNER"
    ALREADY_TAPPED = "ALREADY_TAPPED"
    ALREADY_UNTAPPED = "ALREADY_UNTAPPED"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    UNKNOWN_ACTION_TYPE = "UNKNOWN_ACTION_TYPE"
    ACTION_REJECTED = "ACTION_REJECTED"
    INVALID_DECK = "INVALID_DECK"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card as seen by a viewer."""
    card_id: str
    name: str
    owner_id: str
    zone: ZoneName
    tapped: bool = False
    order: Optional[int] = None
    note: Optional[str] = None
    mana_cost: Optional[str] = None
    type_line: Optional[str] = None
    oracle_text: Optional[str] = None
    image: Optional[str] = None
    back_image: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)


class PlayerInfo(BaseModel):
    """A seat at the table."""
    player_id: str
    name: str
    life: int
    status: PlayerStatusValue = PlayerStatusValue.WAITING
    commander: Optional[str] = None
    color: Optional[str] = None
    deck_name: Optional[str] = None
    hand_count: int = 0
    library_count: int = 0


class LogEntryInfo(BaseModel):
    """A rolling display log line."""
    label: str
    detail: str
    timestamp: float


class HistoryEntryInfo(BaseModel):
    """A committed transaction."""
    action: dict[str, Any]
    effects: list[dict[str, Any]] = Field(default_factory=list)
    timestamp: float


# =============================================================================
# Request Models
# =============================================================================

class CreateRoomRequest(BaseModel):
    """Request to create a room."""
    code: Optional[str] = Field(None, description="Room code; generated if omitted")


class ActionRequest(BaseModel):
    """
    An intent from a player.

    `type` is kept as a free string so that unknown tags reach the
    session, which decides whether to ignore or reject them.
    """
    type: str = Field(..., min_length=1, description="play_card, tap, untap, move_card, draw, shuffle, modify_life")
    player_id: str = Field(..., description="Acting player")
    card_id: Optional[str] = None
    target_player_id: Optional[str] = Field(None, description="Defaults to the acting player")
    to_zone: Optional[str] = None
    amount: Optional[int] = None
    params: dict[str, Any] = Field(default_factory=dict)

    def to_action_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "player_id": self.player_id,
            "payload": {
                "card_id": self.card_id,
                "target_player_id": self.target_player_id,
                "to_zone": self.to_zone,
                "amount": self.amount,
                "params": self.params,
            },
        }


class UndoRequest(BaseModel):
    """Request to undo the newest action."""
    player_id: Optional[str] = Field(None, description="Seat requesting the undo")


class DeckEntry(BaseModel):
    """One pre-normalized deck entry. Unknown fields pass through."""
    model_config = ConfigDict(extra="allow")

    name: str
    quantity: int = Field(1, ge=1)
    mana_cost: Optional[str] = None
    type_line: Optional[str] = None
    oracle_text: Optional[str] = None
    image: Optional[str] = None
    back_image: Optional[str] = None


class DeckRequest(BaseModel):
    """A pre-normalized deck to load for one player."""
    name: Optional[str] = None
    commanders: list[DeckEntry] = Field(default_factory=list)
    mainboard: list[DeckEntry] = Field(default_factory=list)


class StatusRequest(BaseModel):
    """Request to change a player's lobby status."""
    status: PlayerStatusValue


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Table state as seen by one viewer."""
    room_code: str
    seed: str = ""
    viewer_id: Optional[str] = None
    players: list[PlayerInfo] = Field(default_factory=list)
    board: list[CardInfo] = Field(default_factory=list)
    log: list[LogEntryInfo] = Field(default_factory=list)
    history_length: int = 0
    api_version: str = "v1"


class RoomResponse(BaseModel):
    """Room summary."""
    room_code: str
    seed: str
    players: list[PlayerInfo] = Field(default_factory=list)
    seats: dict[str, Optional[str]] = Field(default_factory=dict)
    history_length: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Outcome of an action or undo."""
    room_code: str
    outcome: DispatchOutcome
    action_id: Optional[str] = None
    effects: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    history_length: int = 0
    state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class HistoryResponse(BaseModel):
    """Committed transactions, oldest first."""
    room_code: str
    entries: list[HistoryEntryInfo] = Field(default_factory=list)
    count: int = 0


class DeckLoadResponse(BaseModel):
    """Result of loading a deck."""
    room_code: str
    player_id: str
    cards_created: int
    hand_size: int
    library_size: int
    api_version: str = "v1"


class RoomListResponse(BaseModel):
    """Active room codes."""
    rooms: list[str]
    count: int


class EndRoomResponse(BaseModel):
    """Response after ending a room."""
    success: bool
    room_code: str
    winner: Optional[str] = None
    action_count: int = 0
    replay_path: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
