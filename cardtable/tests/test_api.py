"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- Room lifecycle via API
- Error handling
- HTTP and WebSocket transport
"""

import pytest

from ..api.schemas import (
    ActionRequest,
    DeckRequest,
    StatusRequest,
    ErrorResponse,
    DispatchOutcome,
    ErrorCode,
    PlayerStatusValue,
)
from ..api.service import APIService
from ..config import Settings
from ..session import SessionManager


@pytest.fixture
def service():
    """Create a fresh API service."""
    return APIService(session_manager=SessionManager(settings=Settings()))


@pytest.fixture
def room_code(service, deck_data):
    """A room with a deck loaded for p1."""
    code = service.create_room("ROOM-API").room_code
    service.load_deck(code, "p1", DeckRequest(**deck_data))
    return code


def first_hand_card(service, code, player_id="p1"):
    state = service.get_state(code, viewer_id=player_id)
    return next(c.card_id for c in state.board if c.zone.value == "hand" and c.owner_id == player_id)


class TestAPIService:
    """Tests for APIService."""

    def test_create_room(self, service):
        response = service.create_room()

        assert response.room_code.startswith("ROOM-")
        assert response.seed == response.room_code
        assert [p.player_id for p in response.players] == ["p1", "p2"]

    def test_create_duplicate_room(self, service):
        service.create_room("ROOM-1")
        response = service.create_room("ROOM-1")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.ROOM_EXISTS

    def test_room_not_found(self, service):
        for response in (
            service.get_room("ROOM-NONE"),
            service.get_state("ROOM-NONE"),
            service.get_history("ROOM-NONE"),
            service.undo("ROOM-NONE"),
            service.end_room("ROOM-NONE"),
            service.dispatch("ROOM-NONE", ActionRequest(type="draw", player_id="p1")),
        ):
            assert isinstance(response, ErrorResponse)
            assert response.error_code == ErrorCode.ROOM_NOT_FOUND

    def test_load_deck(self, service, room_code):
        state = service.get_state(room_code, viewer_id="p1")
        p1 = next(p for p in state.players if p.player_id == "p1")

        assert p1.hand_count == 7
        assert p1.library_count == 3
        assert p1.deck_name == "Test Deck"

    def test_load_deck_unknown_player(self, service, room_code, deck_data):
        response = service.load_deck(room_code, "p9", DeckRequest(**deck_data))
        assert response.error_code == ErrorCode.PLAYER_NOT_FOUND

    def test_dispatch_commits(self, service, room_code):
        response = service.dispatch(room_code, ActionRequest(type="draw", player_id="p1", amount=2))

        assert response.outcome == DispatchOutcome.COMMITTED
        assert response.history_length == 1
        assert response.effects[0]["type"] == "move_zone"
        assert response.state.viewer_id == "p1"

    def test_dispatch_rejected(self, service, room_code):
        card_id = first_hand_card(service, room_code)
        response = service.dispatch(room_code, ActionRequest(type="play_card", player_id="p2", card_id=card_id))

        assert response.outcome == DispatchOutcome.REJECTED
        assert response.error_code == ErrorCode.NOT_CARD_OWNER
        assert response.history_length == 0

    def test_dispatch_unknown_type_ignored(self, service, room_code):
        response = service.dispatch(room_code, ActionRequest(type="roll_dice", player_id="p1"))

        assert response.outcome == DispatchOutcome.IGNORED
        assert response.error_code == ErrorCode.UNKNOWN_ACTION_TYPE

    def test_dispatch_unseated_player(self, service, room_code):
        response = service.dispatch(room_code, ActionRequest(type="draw", player_id="p7"))
        assert response.error_code == ErrorCode.PLAYER_NOT_FOUND

    def test_opponent_hand_hidden(self, service, room_code):
        state = service.get_state(room_code, viewer_id="p2")
        assert not [c for c in state.board if c.zone.value == "hand"]

    def test_undo(self, service, room_code):
        service.dispatch(room_code, ActionRequest(type="modify_life", player_id="p1", amount=-3))

        response = service.undo(room_code, player_id="p1")

        assert response.outcome == DispatchOutcome.UNDONE
        assert response.history_length == 0
        p1 = next(p for p in response.state.players if p.player_id == "p1")
        assert p1.life == 40
        assert response.state.log[0].label == "Undo"

    def test_undo_nothing(self, service, room_code):
        response = service.undo(room_code)
        assert response.outcome == DispatchOutcome.NOTHING_TO_UNDO

    def test_history(self, service, room_code):
        card_id = first_hand_card(service, room_code)
        service.dispatch(room_code, ActionRequest(type="play_card", player_id="p1", card_id=card_id))
        service.dispatch(room_code, ActionRequest(type="tap", player_id="p1", card_id=card_id))

        response = service.get_history(room_code)

        assert response.count == 2
        assert [e.action["type"] for e in response.entries] == ["play_card", "tap"]

    def test_set_status(self, service, room_code):
        response = service.set_status(room_code, "p2", StatusRequest(status=PlayerStatusValue.READY))
        p2 = next(p for p in response.players if p.player_id == "p2")
        assert p2.status == PlayerStatusValue.READY

    def test_end_room(self, service, room_code):
        service.dispatch(room_code, ActionRequest(type="draw", player_id="p1"))
        response = service.end_room(room_code, winner="p1")

        assert response.success
        assert response.action_count == 1
        assert room_code not in service.list_rooms()


class TestHTTPTransport:
    """Tests for the FastAPI app."""

    @pytest.fixture
    def client(self, service):
        from fastapi.testclient import TestClient
        from ..api.app import create_app

        return TestClient(create_app(service))

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_room_flow(self, client, deck_data):
        created = client.post("/api/v1/rooms", json={"code": "ROOM-HTTP"})
        assert created.status_code == 200

        loaded = client.post("/api/v1/rooms/ROOM-HTTP/players/p1/deck", json=deck_data)
        assert loaded.json()["hand_size"] == 7

        drawn = client.post("/api/v1/rooms/ROOM-HTTP/actions", json={"type": "draw", "player_id": "p1"})
        assert drawn.status_code == 200
        assert drawn.json()["outcome"] == "committed"

        undone = client.post("/api/v1/rooms/ROOM-HTTP/undo", json={"player_id": "p1"})
        assert undone.json()["outcome"] == "undone"

        ended = client.delete("/api/v1/rooms/ROOM-HTTP", params={"winner": "p1"})
        assert ended.json()["success"] is True

    def test_rejected_action_is_conflict(self, client):
        client.post("/api/v1/rooms", json={"code": "ROOM-409"})
        response = client.post(
            "/api/v1/rooms/ROOM-409/actions",
            json={"type": "tap", "player_id": "p1", "card_id": "missing"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "CARD_NOT_FOUND"

    def test_missing_room_is_404(self, client):
        response = client.get("/api/v1/rooms/ROOM-NONE/state")
        assert response.status_code == 404

    def test_status_endpoint(self, client):
        client.post("/api/v1/rooms", json={"code": "ROOM-STATUS"})

        response = client.post("/api/v1/rooms/ROOM-STATUS/players/p2/status", json={"status": "Ready"})
        assert response.status_code == 200
        assert response.json()["players"][1]["status"] == "Ready"

        missing = client.post("/api/v1/rooms/ROOM-NONE/players/p2/status", json={"status": "Ready"})
        assert missing.status_code == 404

    def test_duplicate_room_is_409(self, client):
        client.post("/api/v1/rooms", json={"code": "ROOM-TWICE"})
        response = client.post("/api/v1/rooms", json={"code": "ROOM-TWICE"})
        assert response.status_code == 409

    def test_websocket_join_and_act(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM-WS/ws") as ws:
            assert ws.receive_json()["type"] == "snapshot"

            ws.send_json({"type": "join", "player_name": "Alice"})
            joined = ws.receive_json()
            assert joined == {"type": "joined", "room": "ROOM-WS", "player_id": "p1"}
            snapshot = ws.receive_json()
            assert snapshot["state"]["viewer_id"] == "p1"
            assert snapshot["state"]["players"][0]["name"] == "Alice"

            ws.send_json({"type": "game_action", "action": {"type": "modify_life", "amount": -2}})
            snapshot = ws.receive_json()
            assert snapshot["state"]["players"][0]["life"] == 38

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_websocket_spectator_cannot_act(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM-SPEC/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "game_action", "action": {"type": "draw"}})
            message = ws.receive_json()
            assert message["type"] == "error"

    def test_websocket_deck_status_and_game_over(self, client, service, deck_data):
        with client.websocket_connect("/api/v1/rooms/ROOM-END/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "join", "player_name": "Alice"})
            ws.receive_json()
            ws.receive_json()

            ws.send_json({"type": "import_deck", "deck": deck_data})
            snapshot = ws.receive_json()
            hand = [c for c in snapshot["state"]["board"] if c["zone"] == "hand"]
            assert len(hand) == 7

            ws.send_json({"type": "update_status", "status": "Ready"})
            snapshot = ws.receive_json()
            assert snapshot["state"]["players"][0]["status"] == "Ready"

            ws.send_json({"type": "game_over", "winner": "p1"})
            assert ws.receive_json()["type"] == "snapshot"
            assert ws.receive_json() == {"type": "game_over", "room": "ROOM-END", "winner": "p1"}

        assert "ROOM-END" not in service.list_rooms()

    def test_websocket_spectate_frees_seat(self, client, service):
        with client.websocket_connect("/api/v1/rooms/ROOM-WATCH/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "join", "player_name": "Alice"})
            ws.receive_json()
            ws.receive_json()

            ws.send_json({"type": "spectate"})
            snapshot = ws.receive_json()
            assert snapshot["state"]["viewer_id"] is None

            ws.send_json({"type": "undo"})
            assert ws.receive_json()["type"] == "error"

        room = service.session_manager.get_room("ROOM-WATCH")
        assert room.join("someone-else") == "p1"

    def test_websocket_disconnect_updates_others(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM-LEAVE/ws") as first:
            first.receive_json()
            first.send_json({"type": "join", "player_name": "Alice"})
            first.receive_json()
            first.receive_json()

            with client.websocket_connect("/api/v1/rooms/ROOM-LEAVE/ws") as second:
                second.receive_json()
                second.send_json({"type": "join", "player_name": "Bob"})
                assert second.receive_json()["player_id"] == "p2"
                second.receive_json()
                assert first.receive_json()["state"]["log"][0]["label"] == "Join"

            snapshot = first.receive_json()
            assert snapshot["type"] == "snapshot"
            assert snapshot["state"]["log"][0]["label"] == "Leave"
            assert snapshot["state"]["log"][0]["detail"] == "Bob left ROOM-LEAVE"
