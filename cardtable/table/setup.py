"""
Table Setup - Creates initial table state and loads decks.

This module handles:
- Default seats for a new room
- Pre-normalized deck lists (already fetched and cleaned upstream)
- Turning a deck list into library, hand and commander cards
- Shuffling with the session's shuffler for determinism
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import itertools
import re
import uuid

from ..engine_core.state import GameState, PlayerState, PlayerStatus, Card, Zone, STARTING_LIFE
from ..engine_core.processor import Shuffler, seeded_shuffler


DEFAULT_SEATS = [
    ("p1", "Player 1", "#72e081"),
    ("p2", "Player 2", "#68c5ff"),
]

OPENING_HAND = 7

_card_counter = itertools.count(1)


@dataclass
class DeckCard:
    """One deck entry with its copy count and passthrough card data."""
    name: str
    quantity: int = 1
    mana_cost: str | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    image: str | None = None
    back_image: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckCard:
        known = {"name", "quantity", "mana_cost", "type_line", "oracle_text", "image", "back_image"}
        quantity = int(data.get("quantity", 1) or 1)
        if quantity < 1:
            raise ValueError(f"Deck entry {data.get('name')!r} has quantity {quantity}")
        return cls(
            name=data.get("name") or "Unknown card",
            quantity=quantity,
            mana_cost=data.get("mana_cost"),
            type_line=data.get("type_line"),
            oracle_text=data.get("oracle_text"),
            image=data.get("image"),
            back_image=data.get("back_image"),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class DeckList:
    """
    A pre-normalized deck.

    Import and normalization from deck-building sites happen upstream;
    this is the shape they hand over.
    """
    name: str | None = None
    commanders: list[DeckCard] = field(default_factory=list)
    mainboard: list[DeckCard] = field(default_factory=list)

    @property
    def library_size(self) -> int:
        return sum(entry.quantity for entry in self.mainboard)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckList:
        """Accepts boards as lists of entries or as dicts keyed by card."""
        def entries(board: Any) -> list[DeckCard]:
            if not board:
                return []
            if isinstance(board, dict):
                board = list(board.values())
            return [DeckCard.from_dict(e) for e in board]

        return cls(
            name=data.get("name"),
            commanders=entries(data.get("commanders")),
            mainboard=entries(data.get("mainboard")),
        )


def default_players(starting_life: int = STARTING_LIFE) -> list[PlayerState]:
    """Two open seats at starting life."""
    return [
        PlayerState(
            player_id=player_id,
            name=name,
            life=starting_life,
            status=PlayerStatus.WAITING,
            color=color,
        )
        for player_id, name, color in DEFAULT_SEATS
    ]


def create_table_state(
    game_id: str,
    seed: str = "",
    players: list[PlayerState] | None = None,
    board: list[Card] | None = None,
    starting_life: int = STARTING_LIFE,
) -> GameState:
    """
    Set up a new table.

    Args:
        game_id: Room code or other identifier
        seed: Seed recorded on the state for determinism
        players: Seats (defaults to two open seats)
        board: Initial cards (defaults to empty)
        starting_life: Life for default seats

    Returns:
        Initial GameState
    """
    return GameState(
        game_id=game_id,
        seed=seed,
        players=players if players is not None else default_players(starting_life),
        board=list(board or []),
    )


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "card"


def _next_card_id(owner_id: str, name: str) -> str:
    return f"c-{owner_id}-{_slug(name)}-{next(_card_counter)}-{uuid.uuid4().hex[:4]}"


def _make_card(owner_id: str, entry: DeckCard, zone: Zone, note: str | None = None) -> Card:
    return Card(
        card_id=_next_card_id(owner_id, entry.name),
        name=entry.name,
        owner_id=owner_id,
        zone=zone,
        note=note,
        mana_cost=entry.mana_cost,
        type_line=entry.type_line,
        oracle_text=entry.oracle_text,
        image=entry.image,
        back_image=entry.back_image,
        extra=dict(entry.extra),
    )


def build_deck_cards(
    owner_id: str,
    deck: DeckList,
    shuffler: Shuffler | None = None,
    opening_hand: int = OPENING_HAND,
) -> list[Card]:
    """
    Build one player's cards from a deck list.

    The library is shuffled and stamped with its order; the top
    opening_hand cards go to hand. Board order is commanders, hand,
    then library with the top card last.
    """
    shuffle = shuffler or seeded_shuffler()

    library = [
        _make_card(owner_id, entry, Zone.LIBRARY)
        for entry in deck.mainboard
        for _ in range(entry.quantity)
    ]
    by_id = {card.card_id: card for card in library}
    library = [by_id[card_id] for card_id in shuffle([c.card_id for c in library])]
    for index, card in enumerate(library):
        card.order = index

    hand_size = min(max(opening_hand, 0), len(library))
    hand = list(reversed(library[len(library) - hand_size:])) if hand_size else []
    library = library[:len(library) - hand_size]
    for card in hand:
        card.zone = Zone.HAND
        card.note = "Hand"

    commanders = [
        _make_card(owner_id, entry, Zone.COMMANDER, note="Commander")
        for entry in deck.commanders
        for _ in range(entry.quantity)
    ]

    return commanders + hand + library


def load_deck(
    state: GameState,
    player_id: str,
    deck: DeckList,
    shuffler: Shuffler | None = None,
    opening_hand: int = OPENING_HAND,
) -> GameState:
    """
    Return a new state with a player's cards replaced by a deck.

    Other players' cards keep their positions. The player's deck name
    and commander display are updated.

    Raises:
        KeyError: If the player does not exist
    """
    new_state = state.clone()
    player = new_state.get_player(player_id)
    if player is None:
        raise KeyError(f"Player {player_id} not found")

    new_cards = build_deck_cards(player_id, deck, shuffler=shuffler, opening_hand=opening_hand)
    new_state.board = [c for c in new_state.board if c.owner_id != player_id] + new_cards

    player.deck_name = deck.name or player.deck_name
    commander_names = " / ".join(entry.name for entry in deck.commanders)
    player.commander = commander_names or player.commander
    return new_state
