"""
Effects - Atomic, invertible state mutations.

Effects are the only unit of state mutation. The processor produces
them, the applier executes them, and the history log keeps them so
a transaction can be reversed or replayed.

Effect Types:
- MoveZone: Relabel a card's zone
- TapCard / UntapCard: Set or clear the tapped flag
- ModifyLife: Add a signed delta to a life total
- SetZoneOrder: Reorder one player's cards within a zone
- AddLogEntry: Write to the rolling display log
- NoOp: Inverse of AddLogEntry
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .state import Zone


class EffectType(Enum):
    """Closed set of effect kinds."""
    MOVE_ZONE = "move_zone"
    TAP = "tap"
    UNTAP = "untap"
    MODIFY_LIFE = "modify_life"
    SET_ZONE_ORDER = "set_zone_order"
    ADD_LOG_ENTRY = "add_log_entry"
    NO_OP = "no_op"


@dataclass(frozen=True)
class MoveZone:
    """
    Move a card between zones.

    Examples:
        MoveZone(card_id="c3", from_zone=Zone.LIBRARY, to_zone=Zone.HAND)
    """
    card_id: str
    from_zone: Zone
    to_zone: Zone

    @property
    def effect_type(self) -> EffectType:
        return EffectType.MOVE_ZONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "card_id": self.card_id,
            "from_zone": self.from_zone.value,
            "to_zone": self.to_zone.value,
        }


@dataclass(frozen=True)
class TapCard:
    card_id: str

    @property
    def effect_type(self) -> EffectType:
        return EffectType.TAP

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.effect_type.value, "card_id": self.card_id}


@dataclass(frozen=True)
class UntapCard:
    card_id: str

    @property
    def effect_type(self) -> EffectType:
        return EffectType.UNTAP

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.effect_type.value, "card_id": self.card_id}


@dataclass(frozen=True)
class ModifyLife:
    """
    Change a life total by a signed amount.

    Examples:
        ModifyLife(player_id="p1", amount=-3)
    """
    player_id: str
    amount: int

    @property
    def effect_type(self) -> EffectType:
        return EffectType.MODIFY_LIFE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "player_id": self.player_id,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class SetZoneOrder:
    """
    Reorder one owner's cards within a zone.

    Carries the order it replaces so it can be inverted.
    Orders list card ids bottom to top.
    """
    zone: Zone
    owner_id: str
    order: tuple[str, ...]
    previous_order: tuple[str, ...] = field(default_factory=tuple)

    @property
    def effect_type(self) -> EffectType:
        return EffectType.SET_ZONE_ORDER

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "zone": self.zone.value,
            "owner_id": self.owner_id,
            "order": list(self.order),
            "previous_order": list(self.previous_order),
        }


@dataclass(frozen=True)
class AddLogEntry:
    """A line for the rolling display log. Not rolled back on undo."""
    label: str
    detail: str

    @property
    def effect_type(self) -> EffectType:
        return EffectType.ADD_LOG_ENTRY

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.effect_type.value, "label": self.label, "detail": self.detail}


@dataclass(frozen=True)
class NoOp:
    @property
    def effect_type(self) -> EffectType:
        return EffectType.NO_OP

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.effect_type.value}


# Union type for all effects
Effect = Union[MoveZone, TapCard, UntapCard, ModifyLife, SetZoneOrder, AddLogEntry, NoOp]

EFFECT_CLASSES: tuple[type, ...] = (
    MoveZone, TapCard, UntapCard, ModifyLife, SetZoneOrder, AddLogEntry, NoOp,
)


def parse_effect(data: dict[str, Any]) -> Effect:
    """
    Parse an effect from a dictionary.

    Args:
        data: Dictionary with "type" key and effect-specific fields

    Returns:
        Typed Effect object

    Raises:
        ValueError: If type is unknown or required fields are missing
    """
    effect_type = data.get("type")
    if not effect_type:
        raise ValueError("Effect missing 'type' field")

    try:
        etype = EffectType(effect_type)
    except ValueError:
        raise ValueError(f"Unknown effect type: {effect_type}")

    try:
        if etype == EffectType.MOVE_ZONE:
            return MoveZone(
                card_id=data["card_id"],
                from_zone=Zone(data["from_zone"]),
                to_zone=Zone(data["to_zone"]),
            )
        elif etype == EffectType.TAP:
            return TapCard(card_id=data["card_id"])
        elif etype == EffectType.UNTAP:
            return UntapCard(card_id=data["card_id"])
        elif etype == EffectType.MODIFY_LIFE:
            return ModifyLife(player_id=data["player_id"], amount=int(data["amount"]))
        elif etype == EffectType.SET_ZONE_ORDER:
            return SetZoneOrder(
                zone=Zone(data["zone"]),
                owner_id=data["owner_id"],
                order=tuple(data["order"]),
                previous_order=tuple(data.get("previous_order", ())),
            )
        elif etype == EffectType.ADD_LOG_ENTRY:
            return AddLogEntry(label=data["label"], detail=data["detail"])
        elif etype == EffectType.NO_OP:
            return NoOp()
    except KeyError as e:
        raise ValueError(f"Effect {effect_type} missing field {e}")

    raise ValueError(f"Unhandled effect type: {etype}")


def parse_effects(data: list[dict[str, Any]]) -> list[Effect]:
    """Parse a list of effects from dictionaries."""
    return [parse_effect(d) for d in data]
