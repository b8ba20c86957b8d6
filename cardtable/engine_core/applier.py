"""
Effect Applier - The single point of state mutation.

apply_effect() mutates a GameState in place; invert_effect() maps an
effect to the effect that reverses it. Together they make undo a matter
of applying inverses in reverse order.

A card or player that no longer exists is logged and skipped, never
raised: effects in a transaction were validated together.
"""

from __future__ import annotations
from typing import Callable
import logging
import time

from .state import GameState, LogEntry, LOG_CAP, UNTAPPING_ZONES
from .effects import (
    Effect, MoveZone, TapCard, UntapCard, ModifyLife, SetZoneOrder, AddLogEntry, NoOp,
)

logger = logging.getLogger(__name__)


def _apply_move_zone(state: GameState, effect: MoveZone) -> None:
    card = state.get_card(effect.card_id)
    if card is None:
        logger.warning("Card %s not found for move_zone", effect.card_id)
        return
    card.zone = effect.to_zone
    if effect.to_zone in UNTAPPING_ZONES:
        card.tapped = False


def _apply_tap(state: GameState, effect: TapCard) -> None:
    card = state.get_card(effect.card_id)
    if card is None:
        logger.warning("Card %s not found for tap", effect.card_id)
        return
    card.tapped = True


def _apply_untap(state: GameState, effect: UntapCard) -> None:
    card = state.get_card(effect.card_id)
    if card is None:
        logger.warning("Card %s not found for untap", effect.card_id)
        return
    card.tapped = False


def _apply_modify_life(state: GameState, effect: ModifyLife) -> None:
    player = state.get_player(effect.player_id)
    if player is None:
        logger.warning("Player %s not found for modify_life", effect.player_id)
        return
    player.life += effect.amount


def _apply_add_log_entry(state: GameState, effect: AddLogEntry) -> None:
    entry = LogEntry(label=effect.label, detail=effect.detail, timestamp=time.time())
    state.log = [entry, *state.log][:LOG_CAP]


def _apply_set_zone_order(state: GameState, effect: SetZoneOrder) -> None:
    """
    Reorder one owner's cards in a zone.

    The reordered cards are written back into the board slots the pile
    already occupies, so every other card keeps its exact position.
    Ids absent from the order sink to the bottom of the sort, keeping
    their existing relative order.
    """
    slots = [
        i for i, c in enumerate(state.board)
        if c.zone == effect.zone and c.owner_id == effect.owner_id
    ]
    in_zone = [state.board[i] for i in slots]

    position = {card_id: i for i, card_id in enumerate(effect.order)}
    missing = [c.card_id for c in in_zone if c.card_id not in position]
    if missing:
        logger.warning(
            "set_zone_order for %s/%s missing %d card(s): %s",
            effect.owner_id, effect.zone.value, len(missing), missing,
        )
    in_zone.sort(key=lambda c: position.get(c.card_id, len(position)))

    board = list(state.board)
    for slot, card in zip(slots, in_zone):
        board[slot] = card
    state.board = board


def _apply_no_op(state: GameState, effect: NoOp) -> None:
    pass


EFFECT_HANDLERS: dict[type, Callable[[GameState, Effect], None]] = {
    MoveZone: _apply_move_zone,
    TapCard: _apply_tap,
    UntapCard: _apply_untap,
    ModifyLife: _apply_modify_life,
    AddLogEntry: _apply_add_log_entry,
    SetZoneOrder: _apply_set_zone_order,
    NoOp: _apply_no_op,
}


def apply_effect(state: GameState, effect: Effect) -> None:
    """Apply one effect to state in place."""
    handler = EFFECT_HANDLERS.get(type(effect))
    if handler is None:
        raise TypeError(f"No handler for effect: {effect!r}")
    logger.debug("Applying %s", effect)
    handler(state, effect)


def apply_effects(state: GameState, effects: list[Effect]) -> None:
    """Apply effects in order."""
    for effect in effects:
        apply_effect(state, effect)


def invert_effect(effect: Effect) -> Effect:
    """
    Return the effect that reverses this one.

    Log entries invert to NoOp: the display log is not rolled back.
    """
    if isinstance(effect, MoveZone):
        return MoveZone(card_id=effect.card_id, from_zone=effect.to_zone, to_zone=effect.from_zone)
    elif isinstance(effect, TapCard):
        return UntapCard(card_id=effect.card_id)
    elif isinstance(effect, UntapCard):
        return TapCard(card_id=effect.card_id)
    elif isinstance(effect, ModifyLife):
        return ModifyLife(player_id=effect.player_id, amount=-effect.amount)
    elif isinstance(effect, SetZoneOrder):
        return SetZoneOrder(
            zone=effect.zone,
            owner_id=effect.owner_id,
            order=effect.previous_order,
            previous_order=effect.order,
        )
    elif isinstance(effect, (AddLogEntry, NoOp)):
        return NoOp()
    else:
        raise TypeError(f"Cannot invert effect: {effect!r}")


def inverse_sequence(effects: list[Effect]) -> list[Effect]:
    """Inverses of a transaction's effects, last-applied first."""
    return [invert_effect(e) for e in reversed(effects)]
