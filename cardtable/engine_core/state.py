"""
Table State - The authoritative board for one game session.

Design principles:
- One arena: every card lives in GameState.board, referenced by id
- Ownership is by player id, never by display name
- Serializable: can be saved/loaded for replays
- Mutated only by the effect applier
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum


STARTING_LIFE = 40
LOG_CAP = 50


class Zone(Enum):
    """Locations a card can occupy."""
    LIBRARY = "library"
    HAND = "hand"
    BATTLEFIELD = "battlefield"
    STACK = "stack"
    GRAVEYARD = "graveyard"
    EXILE = "exile"
    COMMANDER = "commander"


# Zones where a card cannot stay tapped
UNTAPPING_ZONES = frozenset({Zone.HAND, Zone.LIBRARY})


class PlayerStatus(Enum):
    """Lobby status. Irrelevant to resolution."""
    READY = "Ready"
    WAITING = "Waiting"
    TESTING = "Testing"


@dataclass
class Card:
    """
    A card instance on the table.

    Descriptive fields (mana cost, type line, oracle text, images) are
    passthrough data; the engine never reads them.
    """
    card_id: str
    name: str
    owner_id: str
    zone: Zone = Zone.LIBRARY
    tapped: bool = False
    order: int | None = None  # Stamp from deck build, not kept in sync
    note: str | None = None

    mana_cost: str | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    image: str | None = None
    back_image: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "card_id": self.card_id,
            "name": self.name,
            "owner_id": self.owner_id,
            "zone": self.zone.value,
            "tapped": self.tapped,
            "order": self.order,
            "note": self.note,
            "mana_cost": self.mana_cost,
            "type_line": self.type_line,
            "oracle_text": self.oracle_text,
            "image": self.image,
            "back_image": self.back_image,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        return cls(
            card_id=data["card_id"],
            name=data["name"],
            owner_id=data["owner_id"],
            zone=Zone(data.get("zone", Zone.LIBRARY.value)),
            tapped=data.get("tapped", False),
            order=data.get("order"),
            note=data.get("note"),
            mana_cost=data.get("mana_cost"),
            type_line=data.get("type_line"),
            oracle_text=data.get("oracle_text"),
            image=data.get("image"),
            back_image=data.get("back_image"),
            extra=dict(data.get("extra") or {}),
        )


@dataclass
class PlayerState:
    """State for a single seat at the table."""
    player_id: str
    name: str
    life: int = STARTING_LIFE
    status: PlayerStatus = PlayerStatus.WAITING
    commander: str | None = None  # Display only
    color: str | None = None  # Presentation only
    deck_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "life": self.life,
            "status": self.status.value,
            "commander": self.commander,
            "color": self.color,
            "deck_name": self.deck_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerState:
        return cls(
            player_id=data["player_id"],
            name=data["name"],
            life=data.get("life", STARTING_LIFE),
            status=PlayerStatus(data.get("status", PlayerStatus.WAITING.value)),
            commander=data.get("commander"),
            color=data.get("color"),
            deck_name=data.get("deck_name"),
        )


@dataclass
class LogEntry:
    """A line in the rolling display log."""
    label: str
    detail: str
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "detail": self.detail, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        return cls(label=data["label"], detail=data["detail"], timestamp=data["timestamp"])


@dataclass
class GameState:
    """
    Complete table state at a point in time.

    Board order matters: within the cards of one (zone, owner) pair,
    relative order is the zone order and the last card is the top.
    The log is newest-first and cosmetic.
    """
    game_id: str
    seed: str = ""

    players: list[PlayerState] = field(default_factory=list)
    board: list[Card] = field(default_factory=list)
    log: list[LogEntry] = field(default_factory=list)

    metadata: dict[str, Any] = field(default_factory=dict)

    def get_player(self, player_id: str | None) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def get_card(self, card_id: str | None) -> Card | None:
        """Get card by ID."""
        for c in self.board:
            if c.card_id == card_id:
                return c
        return None

    def cards_in(self, zone: Zone, owner_id: str | None = None) -> list[Card]:
        """Cards in a zone, in board order (last is top)."""
        return [
            c for c in self.board
            if c.zone == zone and (owner_id is None or c.owner_id == owner_id)
        ]

    def player_name(self, player_id: str | None) -> str:
        """Display name for a player id, falling back to the id itself."""
        player = self.get_player(player_id)
        return player.name if player else str(player_id)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "seed": self.seed,
            "players": [p.to_dict() for p in self.players],
            "board": [c.to_dict() for c in self.board],
            "log": [entry.to_dict() for entry in self.log],
            "metadata": deepcopy(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        return cls(
            game_id=data["game_id"],
            seed=data.get("seed", ""),
            players=[PlayerState.from_dict(p) for p in data.get("players", [])],
            board=[Card.from_dict(c) for c in data.get("board", [])],
            log=[LogEntry.from_dict(e) for e in data.get("log", [])],
            metadata=deepcopy(data.get("metadata") or {}),
        )
