"""
Table - Room setup and per-viewer presentation.

This module contains:
- Default seats and initial table state
- Pre-normalized deck lists and deck loading
- Per-viewer snapshots with hidden hands
"""

from .setup import (
    DeckCard,
    DeckList,
    default_players,
    create_table_state,
    build_deck_cards,
    load_deck,
    OPENING_HAND,
)
from .views import player_view

__all__ = [
    "DeckCard",
    "DeckList",
    "default_players",
    "create_table_state",
    "build_deck_cards",
    "load_deck",
    "OPENING_HAND",
    "player_view",
]
