"""
API Service - Business logic layer between the transport and the engine.

The service:
1. Translates API requests to session calls
2. Manages rooms
3. Turns dispatch results into responses
4. Builds per-viewer state snapshots

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Calls for one room must not run concurrently; the app holds the room lock.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .schemas import (
    # Requests
    ActionRequest,
    DeckRequest,
    StatusRequest,
    # Responses
    ActionResponse,
    DeckLoadResponse,
    EndRoomResponse,
    ErrorResponse,
    GameStateResponse,
    HistoryEntryInfo,
    HistoryResponse,
    PlayerInfo,
    RoomResponse,
    # Enums
    DispatchOutcome,
    ErrorCode,
)
from ..engine_core.action import Action
from ..engine_core.state import PlayerStatus, Zone
from ..session import SessionManager, Room, DispatchResult, DispatchStatus
from ..table.setup import DeckList
from ..table.views import player_view


_OUTCOMES = {
    DispatchStatus.COMMITTED: DispatchOutcome.COMMITTED,
    DispatchStatus.REJECTED: DispatchOutcome.REJECTED,
    DispatchStatus.IGNORED: DispatchOutcome.IGNORED,
    DispatchStatus.UNDONE: DispatchOutcome.UNDONE,
}


def _error_code(code: str | None) -> ErrorCode:
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.ACTION_REJECTED


def room_not_found(code: str) -> ErrorResponse:
    return ErrorResponse(error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        room = service.create_room()
        response = service.dispatch(room.room_code, ActionRequest(...))
        state = service.get_state(room.room_code, viewer_id="p1")
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_room(self, code: str | None = None) -> RoomResponse | ErrorResponse:
        try:
            room = self.session_manager.create_room(code)
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.ROOM_EXISTS)
        return self._room_to_response(room)

    def get_room(self, code: str) -> RoomResponse | ErrorResponse:
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        return self._room_to_response(room)

    def list_rooms(self) -> list[str]:
        return self.session_manager.list_rooms()

    def end_room(self, code: str, winner: str | None = None) -> EndRoomResponse | ErrorResponse:
        """End a room and flush its replay."""
        result = self.session_manager.end_room(code, winner=winner)
        if result is None:
            return room_not_found(code)
        record, path = result
        return EndRoomResponse(
            success=True,
            room_code=code,
            winner=winner,
            action_count=record.action_count,
            replay_path=str(path) if path else None,
        )

    def get_state(self, code: str, viewer_id: str | None = None) -> GameStateResponse | ErrorResponse:
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        return self.build_state(room, viewer_id)

    def dispatch(self, code: str, request: ActionRequest) -> ActionResponse | ErrorResponse:
        """
        Dispatch an action for a seated player.

        Spectators and unknown seats cannot act.
        """
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        if room.session.state.get_player(request.player_id) is None:
            return ErrorResponse(
                error=f"Player {request.player_id} is not seated in {code}",
                error_code=ErrorCode.PLAYER_NOT_FOUND,
            )

        action = Action.from_dict(request.to_action_dict())
        result = room.session.dispatch(action)
        room.touch()
        return self._result_to_response(room, result, viewer_id=request.player_id)

    def undo(self, code: str, player_id: str | None = None) -> ActionResponse | ErrorResponse:
        """Undo the newest transaction in a room."""
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)

        result = room.session.undo()
        room.touch()
        if result is None:
            return ActionResponse(
                room_code=code,
                outcome=DispatchOutcome.NOTHING_TO_UNDO,
                history_length=len(room.session.history),
                state=self.build_state(room, player_id),
            )

        who = room.session.state.player_name(player_id) if player_id else "Someone"
        room.session.note("Undo", f"{who} undid the last action")
        return self._result_to_response(room, result, viewer_id=player_id)

    def get_history(self, code: str) -> HistoryResponse | ErrorResponse:
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        entries = [HistoryEntryInfo(**entry) for entry in room.session.history_dicts()]
        return HistoryResponse(room_code=code, entries=entries, count=len(entries))

    def load_deck(self, code: str, player_id: str, request: DeckRequest) -> DeckLoadResponse | ErrorResponse:
        """Replace a player's cards with a pre-normalized deck."""
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        if room.session.state.get_player(player_id) is None:
            return ErrorResponse(
                error=f"Player {player_id} is not seated in {code}",
                error_code=ErrorCode.PLAYER_NOT_FOUND,
            )

        try:
            deck = DeckList.from_dict(request.model_dump())
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_DECK)

        created = room.load_deck(player_id, deck)
        state = room.session.state
        return DeckLoadResponse(
            room_code=code,
            player_id=player_id,
            cards_created=created,
            hand_size=len(state.cards_in(Zone.HAND, player_id)),
            library_size=len(state.cards_in(Zone.LIBRARY, player_id)),
        )

    def set_status(self, code: str, player_id: str, request: StatusRequest) -> RoomResponse | ErrorResponse:
        room = self.session_manager.get_room(code)
        if not room:
            return room_not_found(code)
        try:
            room.set_status(player_id, PlayerStatus(request.status.value))
        except KeyError:
            return ErrorResponse(
                error=f"Player {player_id} is not seated in {code}",
                error_code=ErrorCode.PLAYER_NOT_FOUND,
            )
        return self._room_to_response(room)

    # =========================================================================
    # Helper methods
    # =========================================================================

    def build_state(self, room: Room, viewer_id: str | None = None) -> GameStateResponse:
        """Snapshot of the room's state as one viewer sees it."""
        view = player_view(room.session.state, viewer_id)
        return GameStateResponse(
            room_code=room.code,
            seed=view["seed"],
            viewer_id=viewer_id,
            players=view["players"],
            board=view["board"],
            log=view["log"],
            history_length=len(room.session.history),
        )

    def _room_to_response(self, room: Room) -> RoomResponse:
        view = player_view(room.session.state, None)
        return RoomResponse(
            room_code=room.code,
            seed=room.session.state.seed,
            players=[PlayerInfo(**p) for p in view["players"]],
            seats=dict(room.seats),
            history_length=len(room.session.history),
            created_at=room.created_at,
        )

    def _result_to_response(
        self, room: Room, result: DispatchResult, viewer_id: str | None = None
    ) -> ActionResponse:
        return ActionResponse(
            room_code=room.code,
            outcome=_OUTCOMES[result.status],
            action_id=result.action.action_id if result.action else None,
            effects=[e.to_dict() for e in result.effects],
            error=result.error,
            error_code=_error_code(result.error_code) if result.error_code else None,
            history_length=len(room.session.history),
            state=self.build_state(room, viewer_id),
        )


def state_message(service: APIService, room: Room, viewer_id: str | None) -> dict[str, Any]:
    """WebSocket snapshot message for one viewer."""
    return {
        "type": "snapshot",
        "room": room.code,
        "state": service.build_state(room, viewer_id).model_dump(mode="json"),
    }
