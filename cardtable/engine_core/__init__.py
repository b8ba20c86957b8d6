"""
Engine Core - Authoritative card-table state and reversible resolution.

The engine is the runtime that:
1. Holds the table state (players, cards, zones, life)
2. Validates actions and expands them into effects
3. Applies effects as the only way state changes
4. Inverts effects for undo
5. Rebuilds states from recorded effects for replay
"""

from .state import (
    GameState, PlayerState, PlayerStatus, Card, Zone, LogEntry, STARTING_LIFE, LOG_CAP, UNTAPPING_ZONES,
)
from .action import Action, ActionType, ActionPayload
from .effects import (
    Effect, EffectType, MoveZone, TapCard, UntapCard, ModifyLife, SetZoneOrder,
    AddLogEntry, NoOp, parse_effect, parse_effects,
)
from .errors import (
    EngineError, ActionRejected, CardNotFound, InvalidZone, NotCardOwner,
    AlreadyTapped, AlreadyUntapped, PlayerNotFound, InvalidAmount, UnknownActionType,
)
from .processor import ActionProcessor, Shuffler, fisher_yates, seeded_shuffler, process_action
from .applier import apply_effect, apply_effects, invert_effect, inverse_sequence
from .history import HistoryEntry, HistoryLog
from .replay import ReplayRecord, replay_effects

__all__ = [
    "GameState",
    "PlayerState",
    "PlayerStatus",
    "Card",
    "Zone",
    "LogEntry",
    "STARTING_LIFE",
    "LOG_CAP",
    "UNTAPPING_ZONES",
    "Action",
    "ActionType",
    "ActionPayload",
    "Effect",
    "EffectType",
    "MoveZone",
    "TapCard",
    "UntapCard",
    "ModifyLife",
    "SetZoneOrder",
    "AddLogEntry",
    "NoOp",
    "parse_effect",
    "parse_effects",
    "EngineError",
    "ActionRejected",
    "CardNotFound",
    "InvalidZone",
    "NotCardOwner",
    "AlreadyTapped",
    "AlreadyUntapped",
    "PlayerNotFound",
    "InvalidAmount",
    "UnknownActionType",
    "ActionProcessor",
    "Shuffler",
    "fisher_yates",
    "seeded_shuffler",
    "process_action",
    "apply_effect",
    "apply_effects",
    "invert_effect",
    "inverse_sequence",
    "HistoryEntry",
    "HistoryLog",
    "ReplayRecord",
    "replay_effects",
]
