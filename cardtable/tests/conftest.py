"""
Pytest fixtures for Cardtable tests.
"""

import pytest

from ..engine_core.state import GameState, PlayerState, Card, Zone
from ..engine_core.processor import ActionProcessor
from ..session import GameSession


def reverse_shuffler(ids: list[str]) -> list[str]:
    """Deterministic stand-in for a random shuffle."""
    return list(reversed(ids))


@pytest.fixture
def table_state() -> GameState:
    """
    Two players at 40 life. p1 owns a three-card library (c3 on top),
    one card in hand and one tapped card on the battlefield.
    """
    return GameState(
        game_id="ROOM-TEST",
        seed="ROOM-TEST",
        players=[
            PlayerState(player_id="p1", name="Alice", life=40),
            PlayerState(player_id="p2", name="Bob", life=40),
        ],
        board=[
            Card(card_id="c1", name="Forest", owner_id="p1", zone=Zone.LIBRARY),
            Card(card_id="c2", name="Island", owner_id="p1", zone=Zone.LIBRARY),
            Card(card_id="c3", name="Swamp", owner_id="p1", zone=Zone.LIBRARY),
            Card(card_id="h1", name="Grizzly Bears", owner_id="p1", zone=Zone.HAND),
            Card(card_id="b1", name="Sol Ring", owner_id="p1", zone=Zone.BATTLEFIELD, tapped=True),
            Card(card_id="q1", name="Mountain", owner_id="p2", zone=Zone.LIBRARY),
            Card(card_id="q2", name="Lightning Bolt", owner_id="p2", zone=Zone.HAND),
        ],
    )


@pytest.fixture
def processor() -> ActionProcessor:
    return ActionProcessor(shuffler=reverse_shuffler)


@pytest.fixture
def session(table_state, processor) -> GameSession:
    return GameSession(table_state, processor=processor, session_id="ROOM-TEST")


@pytest.fixture
def deck_data() -> dict:
    """A small pre-normalized deck."""
    return {
        "name": "Test Deck",
        "commanders": [{"name": "Atraxa", "mana_cost": "{G}{W}{U}{B}"}],
        "mainboard": [
            {"name": "Forest", "quantity": 8, "type_line": "Basic Land"},
            {"name": "Llanowar Elves", "quantity": 2, "set": "M19"},
        ],
    }


def table_signature(state: GameState) -> dict:
    """Comparable view of a table: everything except the display log."""
    data = state.to_dict()
    del data["log"]
    return data
