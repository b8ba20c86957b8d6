"""
Tests for table setup, deck loading and per-viewer views.
"""

import pytest

from ..engine_core.processor import seeded_shuffler
from ..engine_core.state import Zone, PlayerStatus
from ..table import (
    DeckCard, DeckList, build_deck_cards, create_table_state, default_players,
    load_deck, player_view,
)


class TestTableSetup:
    """Tests for new tables."""

    def test_default_players(self):
        players = default_players(starting_life=20)

        assert [p.player_id for p in players] == ["p1", "p2"]
        assert all(p.life == 20 for p in players)
        assert all(p.status == PlayerStatus.WAITING for p in players)

    def test_create_table_state(self):
        state = create_table_state("ROOM-1", seed="ROOM-1")

        assert state.game_id == "ROOM-1"
        assert state.seed == "ROOM-1"
        assert state.board == []
        assert state.get_player("p1").life == 40


class TestDeckList:
    """Tests for deck parsing."""

    def test_from_dict(self, deck_data):
        deck = DeckList.from_dict(deck_data)

        assert deck.name == "Test Deck"
        assert deck.library_size == 10
        assert deck.commanders[0].mana_cost == "{G}{W}{U}{B}"
        assert deck.mainboard[1].extra == {"set": "M19"}

    def test_boards_as_dicts(self):
        deck = DeckList.from_dict({"mainboard": {"forest": {"name": "Forest", "quantity": 3}}})
        assert deck.library_size == 3

    def test_negative_quantity(self):
        with pytest.raises(ValueError):
            DeckCard.from_dict({"name": "Forest", "quantity": -1})


class TestBuildDeck:
    """Tests for turning a deck into cards."""

    def test_zones_and_counts(self, deck_data):
        cards = build_deck_cards("p1", DeckList.from_dict(deck_data), shuffler=seeded_shuffler(1), opening_hand=7)

        zones = [c.zone for c in cards]
        assert zones.count(Zone.COMMANDER) == 1
        assert zones.count(Zone.HAND) == 7
        assert zones.count(Zone.LIBRARY) == 3
        assert all(c.owner_id == "p1" for c in cards)
        assert len({c.card_id for c in cards}) == len(cards)

    def test_same_seed_same_order(self, deck_data):
        deck = DeckList.from_dict(deck_data)
        first = build_deck_cards("p1", deck, shuffler=seeded_shuffler("ROOM-X"))
        second = build_deck_cards("p1", deck, shuffler=seeded_shuffler("ROOM-X"))

        assert [c.name for c in first] == [c.name for c in second]

    def test_small_deck_deals_what_it_has(self):
        deck = DeckList.from_dict({"mainboard": [{"name": "Island", "quantity": 3}]})
        cards = build_deck_cards("p2", deck, shuffler=seeded_shuffler(2), opening_hand=7)

        assert [c.zone for c in cards] == [Zone.HAND] * 3


class TestLoadDeck:
    """Tests for replacing a player's cards."""

    def test_replaces_only_that_player(self, table_state, deck_data):
        new_state = load_deck(table_state, "p1", DeckList.from_dict(deck_data), shuffler=seeded_shuffler(3))

        assert new_state.get_card("c1") is None
        assert new_state.get_card("q1") is not None
        assert sum(1 for c in new_state.board if c.owner_id == "p1") == 11
        assert new_state.get_player("p1").deck_name == "Test Deck"
        assert new_state.get_player("p1").commander == "Atraxa"
        assert table_state.get_card("c1") is not None

    def test_unknown_player(self, table_state, deck_data):
        with pytest.raises(KeyError):
            load_deck(table_state, "p9", DeckList.from_dict(deck_data))


class TestPlayerView:
    """Tests for hidden information."""

    def test_own_hand_visible(self, table_state):
        view = player_view(table_state, "p1")
        ids = {c["card_id"] for c in view["board"]}

        assert "h1" in ids
        assert "q2" not in ids

    def test_spectator_sees_no_hands(self, table_state):
        view = player_view(table_state, None)
        assert all(c["zone"] != "hand" for c in view["board"])

    def test_counts_and_rotation(self, table_state):
        view = player_view(table_state, "p2")

        assert view["viewer_id"] == "p2"
        assert [p["player_id"] for p in view["players"]] == ["p2", "p1"]
        p1 = view["players"][1]
        assert p1["hand_count"] == 1
        assert p1["library_count"] == 3

    def test_view_does_not_touch_state(self, table_state):
        before = table_state.to_dict()
        player_view(table_state, "p1")
        assert table_state.to_dict() == before
