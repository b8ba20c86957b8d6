"""
Action Processor - Expands a validated intent into effects.

The processor never mutates state. It fully validates an action
before building any effect, so an action either yields its complete
effect list or raises an ActionRejected and yields nothing.

Design principles:
- Pure function: (state, action) -> effects
- One handler per ActionType, looked up in a table
- Randomness comes from an injected shuffler
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import random

from .state import GameState, Card, Zone, UNTAPPING_ZONES
from .action import Action, ActionType
from .effects import (
    Effect, MoveZone, TapCard, UntapCard, ModifyLife, SetZoneOrder, AddLogEntry,
)
from .errors import (
    CardNotFound, InvalidZone, NotCardOwner, AlreadyTapped, AlreadyUntapped,
    PlayerNotFound, InvalidAmount, UnknownActionType,
)

logger = logging.getLogger(__name__)

Shuffler = Callable[[list[str]], list[str]]


def fisher_yates(ids: list[str], rng: random.Random) -> list[str]:
    """Return a uniformly random permutation of ids. Input is not modified."""
    result = list(ids)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def seeded_shuffler(seed: str | int | None = None) -> Shuffler:
    """
    Build a shuffler backed by its own random.Random.

    The same seed yields the same sequence of permutations.
    """
    rng = random.Random(seed)

    def shuffle(ids: list[str]) -> list[str]:
        return fisher_yates(ids, rng)

    return shuffle


def _parse_zone(value: Zone | str | None) -> Zone:
    if isinstance(value, Zone):
        return value
    try:
        return Zone(str(value).lower())
    except ValueError:
        raise InvalidZone(f"Unknown zone: {value}")


def _require_amount(value: object, allow_negative: bool) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"Amount must be an integer, got {value!r}")
    if not allow_negative and value < 0:
        raise InvalidAmount(f"Amount must not be negative, got {value}")
    return value


@dataclass
class ActionProcessor:
    """
    Turns actions into effect lists.

    Stateless apart from the shuffler; all game state is passed in.
    """
    shuffler: Shuffler = field(default_factory=seeded_shuffler)

    def process(self, state: GameState, action: Action) -> list[Effect]:
        """
        Validate an action and expand it into effects.

        Raises:
            ActionRejected: The action is illegal in this state
            UnknownActionType: The action tag is not one we handle
        """
        handler = self._get_handler(action.action_type)
        if handler is None:
            raise UnknownActionType(action.action_type)
        return handler(state, action)

    def handled_types(self) -> set[ActionType]:
        return set(self._handlers())

    def _handlers(self) -> dict[ActionType, Callable[[GameState, Action], list[Effect]]]:
        return {
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.TAP: self._handle_tap,
            ActionType.UNTAP: self._handle_untap,
            ActionType.MOVE_CARD: self._handle_move_card,
            ActionType.DRAW: self._handle_draw,
            ActionType.SHUFFLE: self._handle_shuffle,
            ActionType.MODIFY_LIFE: self._handle_modify_life,
        }

    def _get_handler(self, action_type: ActionType | str):
        """Get the handler function for an action type."""
        if not isinstance(action_type, ActionType):
            return None
        return self._handlers().get(action_type)

    def _require_card(self, state: GameState, card_id: str | None) -> Card:
        card = state.get_card(card_id)
        if card is None:
            raise CardNotFound(card_id)
        return card

    def _require_player(self, state: GameState, player_id: str | None):
        player = state.get_player(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        return player

    def _handle_play_card(self, state: GameState, action: Action) -> list[Effect]:
        """Play a card from the actor's hand onto the battlefield."""
        card = self._require_card(state, action.payload.card_id)
        if card.owner_id != action.player_id:
            raise NotCardOwner(card.card_id, action.player_id)
        if card.zone != Zone.HAND:
            raise InvalidZone(
                f"Card {card.card_id} must be in hand to play, found in {card.zone.value}"
            )

        return [
            MoveZone(card_id=card.card_id, from_zone=Zone.HAND, to_zone=Zone.BATTLEFIELD),
            AddLogEntry(
                label="Play",
                detail=f"{state.player_name(action.player_id)} played {card.name}",
            ),
        ]

    def _handle_tap(self, state: GameState, action: Action) -> list[Effect]:
        card = self._require_card(state, action.payload.card_id)
        if card.tapped:
            raise AlreadyTapped(card.card_id)
        return [TapCard(card_id=card.card_id)]

    def _handle_untap(self, state: GameState, action: Action) -> list[Effect]:
        card = self._require_card(state, action.payload.card_id)
        if not card.tapped:
            raise AlreadyUntapped(card.card_id)
        return [UntapCard(card_id=card.card_id)]

    def _handle_move_card(self, state: GameState, action: Action) -> list[Effect]:
        """Move a card anywhere; the source zone is read from the card."""
        card = self._require_card(state, action.payload.card_id)
        to_zone = _parse_zone(action.payload.to_zone)

        effects: list[Effect] = []
        # Explicit untap so the inverse re-taps the card
        if card.tapped and to_zone in UNTAPPING_ZONES:
            effects.append(UntapCard(card_id=card.card_id))
        return effects + [
            MoveZone(card_id=card.card_id, from_zone=card.zone, to_zone=to_zone),
            AddLogEntry(
                label="Move",
                detail=f"{state.player_name(action.player_id)} moved {card.name} to {to_zone.value}",
            ),
        ]

    def _handle_draw(self, state: GameState, action: Action) -> list[Effect]:
        """
        Draw from the top of a library.

        The last cards of the library subset are the top. Cards are drawn
        top first; a short library draws what it has.
        """
        player = self._require_player(state, action.target_player_id)
        amount = action.payload.amount
        amount = 1 if amount is None else _require_amount(amount, allow_negative=False)

        library = state.cards_in(Zone.LIBRARY, player.player_id)
        drawn = list(reversed(library[max(len(library) - amount, 0):])) if amount else []
        if len(drawn) < amount:
            logger.info(
                "%s asked to draw %d but only %d cards remain",
                player.player_id, amount, len(drawn),
            )

        effects: list[Effect] = [
            MoveZone(card_id=card.card_id, from_zone=Zone.LIBRARY, to_zone=Zone.HAND)
            for card in drawn
        ]
        count = len(drawn)
        effects.append(AddLogEntry(
            label="Draw",
            detail=f"{player.name} drew {count} card{'' if count == 1 else 's'}",
        ))
        return effects

    def _handle_shuffle(self, state: GameState, action: Action) -> list[Effect]:
        """Shuffle a player's library into a new order."""
        player = self._require_player(state, action.target_player_id)

        current_order = [c.card_id for c in state.cards_in(Zone.LIBRARY, player.player_id)]
        new_order = self.shuffler(list(current_order))
        if sorted(new_order) != sorted(current_order):
            raise ValueError("Shuffler returned a different set of cards")

        return [
            SetZoneOrder(
                zone=Zone.LIBRARY,
                owner_id=player.player_id,
                order=tuple(new_order),
                previous_order=tuple(current_order),
            ),
            AddLogEntry(label="Shuffle", detail=f"{player.name} shuffled their library"),
        ]

    def _handle_modify_life(self, state: GameState, action: Action) -> list[Effect]:
        player = self._require_player(state, action.target_player_id)
        amount = _require_amount(action.payload.amount, allow_negative=True)

        if amount > 0:
            detail = f"{player.name} gained {amount} life"
        elif amount < 0:
            detail = f"{player.name} lost {-amount} life"
        else:
            detail = f"{player.name}'s life total is unchanged"
        return [
            ModifyLife(player_id=player.player_id, amount=amount),
            AddLogEntry(label="Life", detail=detail),
        ]


def process_action(state: GameState, action: Action, shuffler: Shuffler | None = None) -> list[Effect]:
    """
    Convenience function to process an action.

    Creates an ActionProcessor and expands the action.
    """
    processor = ActionProcessor(shuffler=shuffler) if shuffler else ActionProcessor()
    return processor.process(state, action)
