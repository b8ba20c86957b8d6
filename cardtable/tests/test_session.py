"""
Tests for GameSession transactions and undo.

Tests:
- Committed actions are applied and recorded
- Rejected actions leave state and history untouched
- Undo restores the table for every action type
- Unknown action types, tolerant and strict
- A full table scenario
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.effects import NoOp
from ..engine_core.processor import ActionProcessor, seeded_shuffler
from ..engine_core.replay import replay_effects
from ..engine_core.state import GameState, PlayerState, Zone
from ..session import GameSession, DispatchStatus
from .conftest import table_signature


class TestDispatch:
    """Tests for dispatch."""

    def test_commit_applies_and_records(self, session):
        result = session.dispatch(Action.draw("p1", amount=2))

        assert result.success
        assert result.status == DispatchStatus.COMMITTED
        assert session.state.get_card("c3").zone == Zone.HAND
        assert session.state.get_card("c2").zone == Zone.HAND
        assert session.state.get_card("c1").zone == Zone.LIBRARY
        assert len(session.history) == 1
        assert session.history.peek().effects == result.effects
        assert session.state.log[0].detail == "Alice drew 2 cards"

    @pytest.mark.parametrize("action", [
        Action.play_card("p1", "c1"),
        Action.play_card("p2", "h1"),
        Action.tap("p1", "b1"),
        Action.untap("p1", "h1"),
        Action.move_card("p1", "h1", "sideboard"),
        Action.modify_life("p1", None),
        Action.draw("p1", amount=-2),
        Action.shuffle("p1", target_player_id="p5"),
    ])
    def test_rejection_changes_nothing(self, session, action):
        before = session.state.to_dict()

        result = session.dispatch(action)

        assert result.status == DispatchStatus.REJECTED
        assert not result.success
        assert result.error
        assert result.error_code
        assert result.effects == []
        assert session.state.to_dict() == before
        assert len(session.history) == 0

    def test_rejection_error_code(self, session):
        result = session.dispatch(Action.tap("p1", "b1"))
        assert result.error_code == "ALREADY_TAPPED"

    def test_unknown_type_ignored(self, session, caplog):
        before = session.state.to_dict()

        result = session.dispatch(Action("flip_coin", "p1"))

        assert result.status == DispatchStatus.IGNORED
        assert result.error_code == "UNKNOWN_ACTION_TYPE"
        assert session.state.to_dict() == before
        assert len(session.history) == 0
        assert "flip_coin" in caplog.text

    def test_unknown_type_rejected_when_strict(self, table_state, processor):
        session = GameSession(table_state, processor=processor, strict_actions=True)

        result = session.dispatch(Action("flip_coin", "p1"))

        assert result.status == DispatchStatus.REJECTED
        assert result.error_code == "UNKNOWN_ACTION_TYPE"

    def test_history_counts_commits_only(self, session):
        session.dispatch(Action.tap("p1", "h1"))
        session.dispatch(Action.tap("p1", "h1"))  # rejected
        session.dispatch(Action("noise", "p1"))  # ignored
        session.dispatch(Action.modify_life("p2", -1))

        assert len(session.history) == 2

    def test_snapshot_is_a_copy(self, session):
        snapshot = session.snapshot()
        snapshot.get_player("p1").life = 1
        assert session.state.get_player("p1").life == 40


class TestUndo:
    """Tests for undo."""

    def test_undo_empty_history(self, session):
        before = session.state.to_dict()
        assert session.undo() is None
        assert session.state.to_dict() == before

    @pytest.mark.parametrize("action", [
        Action.draw("p1", amount=2),
        Action.draw("p1", amount=10),
        Action.play_card("p1", "h1"),
        Action.tap("p1", "h1"),
        Action.untap("p1", "b1"),
        Action.move_card("p1", "b1", "hand"),
        Action.move_card("p2", "q2", "graveyard"),
        Action.shuffle("p1"),
        Action.modify_life("p2", -7),
    ])
    def test_undo_restores_table(self, session, action):
        before = table_signature(session.state)

        assert session.dispatch(action).success
        result = session.undo()

        assert result.status == DispatchStatus.UNDONE
        assert result.action is action
        assert table_signature(session.state) == before
        assert len(session.history) == 0

    def test_undo_keeps_log(self, session):
        session.dispatch(Action.modify_life("p1", -3))
        result = session.undo()

        assert session.state.log[0].detail == "Alice lost 3 life"
        assert isinstance(result.effects[0], NoOp)

    def test_undo_is_lifo(self, session):
        session.dispatch(Action.modify_life("p1", -3))
        session.dispatch(Action.modify_life("p1", -5))

        session.undo()
        assert session.state.get_player("p1").life == 37
        session.undo()
        assert session.state.get_player("p1").life == 40
        assert session.undo() is None

    def test_undo_move_to_hand_retaps(self, session):
        """Moving a tapped card to hand untaps it; undo taps it again."""
        session.dispatch(Action.move_card("p1", "b1", "hand"))
        assert session.state.get_card("b1").tapped is False

        session.undo()
        card = session.state.get_card("b1")
        assert card.zone == Zone.BATTLEFIELD
        assert card.tapped is True

    def test_undo_draw_after_shuffle_restores_library(self, session):
        session.dispatch(Action.draw("p1", amount=1))
        session.dispatch(Action.shuffle("p1"))

        session.undo()
        session.undo()

        library = [c.card_id for c in session.state.cards_in(Zone.LIBRARY, "p1")]
        assert library == ["c1", "c2", "c3"]

    def test_undo_mixed_actions_restores_board(self, session):
        before = table_signature(session.state)

        assert session.dispatch(Action.draw("p1", amount=1)).success
        assert session.dispatch(Action.shuffle("p1")).success
        assert session.dispatch(Action.play_card("p1", "c3")).success
        assert session.dispatch(Action.move_card("p1", "b1", "library")).success
        assert session.dispatch(Action.shuffle("p1")).success

        for _ in range(5):
            assert session.undo().status == DispatchStatus.UNDONE

        assert table_signature(session.state) == before
        assert [c.card_id for c in session.state.board] == ["c1", "c2", "c3", "h1", "b1", "q1", "q2"]


class TestSessionLifecycle:
    """Tests for notes, reset and replay records."""

    def test_note_is_not_history(self, session):
        session.note("Join", "Alice joined")

        assert session.state.log[0].label == "Join"
        assert len(session.history) == 0

    def test_reset_clears_history(self, session, table_state):
        session.dispatch(Action.modify_life("p1", -3))
        new_state = session.snapshot()
        new_state.get_player("p2").life = 20

        session.reset(new_state)

        assert len(session.history) == 0
        assert session.undo() is None
        assert session.initial_state.get_player("p2").life == 20

    def test_replay_record_rebuilds_final_state(self, session):
        session.dispatch(Action.draw("p1", amount=2))
        session.dispatch(Action.play_card("p1", "c3"))
        session.dispatch(Action.shuffle("p1"))
        session.dispatch(Action.modify_life("p2", -6))

        record = session.replay_record(winner="p1")
        rebuilt = replay_effects(record.initial_state, record.history)

        assert record.action_count == 4
        assert rebuilt.to_dict()["board"] == session.state.to_dict()["board"]
        assert [p.life for p in rebuilt.players] == [40, 34]

    def test_history_dicts(self, session):
        session.dispatch(Action.tap("p1", "h1"))
        entries = session.history_dicts()

        assert entries[0]["action"]["type"] == "tap"
        assert entries[0]["effects"] == [{"type": "tap", "card_id": "h1"}]


class TestTableScenario:
    """A short game from an empty hand."""

    def test_draw_play_tap_life_undo(self, table_state):
        session = GameSession(table_state, processor=ActionProcessor(shuffler=seeded_shuffler("ROOM-TEST")))
        start = table_signature(session.state)

        assert session.dispatch(Action.draw("p1", amount=2)).success
        assert session.dispatch(Action.play_card("p1", "c3")).success
        assert session.dispatch(Action.tap("p1", "c3")).success
        assert not session.dispatch(Action.tap("p1", "c3")).success
        assert session.dispatch(Action.modify_life("p1", -5, target_player_id="p2")).success

        state = session.state
        assert state.get_card("c3").zone == Zone.BATTLEFIELD
        assert state.get_card("c3").tapped is True
        assert state.get_card("c2").zone == Zone.HAND
        assert state.get_player("p2").life == 35
        assert len(session.history) == 4

        session.undo()
        assert state.get_player("p2").life == 40
        session.undo()
        assert state.get_card("c3").tapped is False
        session.undo()
        assert state.get_card("c3").zone == Zone.HAND
        session.undo()

        assert table_signature(session.state) == start
        assert session.undo() is None

    def test_shuffle_keeps_library_membership(self, table_state):
        session = GameSession(table_state, processor=ActionProcessor(shuffler=seeded_shuffler(7)))
        before = {c.card_id for c in session.state.cards_in(Zone.LIBRARY, "p1")}

        for _ in range(5):
            session.dispatch(Action.shuffle("p1"))

        after = {c.card_id for c in session.state.cards_in(Zone.LIBRARY, "p1")}
        assert after == before
        assert len(session.state.board) == 7

    def test_life_swing_on_empty_board(self):
        state = GameState(
            game_id="ROOM-LIFE",
            players=[PlayerState("p1", "A", 40), PlayerState("p2", "B", 40)],
        )
        session = GameSession(state)

        session.dispatch(Action.modify_life("p1", 5))
        assert session.state.get_player("p1").life == 45
        session.dispatch(Action.modify_life("p1", -5))
        assert session.state.get_player("p1").life == 40

        session.undo()
        session.undo()
        assert session.state.get_player("p1").life == 40
        assert len(session.history) == 0

    def test_draw_one_from_ordered_library(self, session):
        session.dispatch(Action.draw("p1"))

        assert [c.card_id for c in session.state.cards_in(Zone.HAND, "p1")] == ["c3", "h1"]
        assert [c.card_id for c in session.state.cards_in(Zone.LIBRARY, "p1")] == ["c1", "c2"]
