"""
FastAPI Application - REST and WebSocket transport for table clients.

Endpoints:
    POST   /api/v1/rooms                              Create a room
    GET    /api/v1/rooms                              List active rooms
    GET    /api/v1/rooms/{code}                       Room summary
    DELETE /api/v1/rooms/{code}                       End room, flush replay
    GET    /api/v1/rooms/{code}/state                 State for a viewer
    POST   /api/v1/rooms/{code}/actions               Dispatch an action
    POST   /api/v1/rooms/{code}/undo                  Undo the newest action
    GET    /api/v1/rooms/{code}/history               Committed transactions
    POST   /api/v1/rooms/{code}/players/{pid}/deck    Load a deck
    POST   /api/v1/rooms/{code}/players/{pid}/status  Set lobby status
    WS     /api/v1/rooms/{code}/ws                    Seat + live snapshots

Every change is followed by a per-viewer snapshot to the room's sockets.
Calls touching one room are serialized with the room's lock.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging

from ..config import SETTINGS

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService, state_message
    from .schemas import (
        # Request models
        CreateRoomRequest,
        ActionRequest,
        UndoRequest,
        DeckRequest,
        StatusRequest,
        # Response models
        ActionResponse,
        DeckLoadResponse,
        EndRoomResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        HistoryResponse,
        RoomListResponse,
        RoomResponse,
        # Enums
        DispatchOutcome,
        ErrorCode,
    )

    app = FastAPI(
        title="Cardtable API",
        description="""
Authoritative multiplayer card-table state.

Clients send intents; the server validates them, applies the resulting
effects and pushes a snapshot to every connected viewer. Other players'
hands are hidden in each viewer's snapshot.

## Error Codes

| Code | Description |
|------|-------------|
| `ROOM_NOT_FOUND` | Room does not exist |
| `PLAYER_NOT_FOUND` | Player is not seated |
| `CARD_NOT_FOUND` | Card id does not exist |
| `INVALID_ZONE` | Card is not in the required zone |
| `ALREADY_TAPPED` / `ALREADY_UNTAPPED` | Redundant tap state change |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # room code -> {websocket: player_id or None}
    ws_connections: dict[str, dict[WebSocket, Optional[str]]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def error_response(error: ErrorResponse) -> JSONResponse:
        """Map an ErrorResponse to its HTTP status."""
        status_code = 404 if error.error_code == ErrorCode.ROOM_NOT_FOUND else 400
        if error.error_code == ErrorCode.ROOM_EXISTS:
            status_code = 409
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    async def broadcast_snapshot(code: str):
        """Send every socket in a room its own view of the state."""
        room = api_service.session_manager.get_room(code)
        connections = ws_connections.get(code)
        if room is None or not connections:
            return
        dead_connections = []
        for ws, viewer_id in list(connections.items()):
            try:
                await ws.send_json(state_message(api_service, room, viewer_id))
            except (RuntimeError, WebSocketDisconnect) as e:
                logger.debug("Dropping socket in %s: %s", code, e)
                dead_connections.append(ws)
        for ws in dead_connections:
            connections.pop(ws, None)

    async def finish_room(room, winner: Optional[str], keep_open=None):
        """End a room and tell its sockets. keep_open is left for its handler to close."""
        async with room.lock:
            await broadcast_snapshot(room.code)
            response = api_service.end_room(room.code, winner=winner)
        for ws in list(ws_connections.pop(room.code, {})):
            try:
                await ws.send_json({"type": "game_over", "room": room.code, "winner": winner})
                if ws is not keep_open:
                    await ws.close()
            except (RuntimeError, WebSocketDisconnect):
                pass
        return response

    # =========================================================================
    # Room Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/rooms",
        response_model=RoomResponse,
        responses={409: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Create a room",
    )
    async def create_room(body: Optional[CreateRoomRequest] = None) -> Union[RoomResponse, JSONResponse]:
        """Create a room with two open seats. The room code is the shuffle seed."""
        response = api_service.create_room(body.code if body else None)
        if isinstance(response, ErrorResponse):
            return error_response(response)
        return response

    @app.get(
        "/api/v1/rooms",
        response_model=RoomListResponse,
        tags=["Rooms"],
        summary="List active rooms",
    )
    async def list_rooms() -> RoomListResponse:
        rooms = api_service.list_rooms()
        return RoomListResponse(rooms=rooms, count=len(rooms))

    @app.get(
        "/api/v1/rooms/{code}",
        response_model=RoomResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Get room summary",
    )
    async def get_room(code: str) -> Union[RoomResponse, JSONResponse]:
        response = api_service.get_room(code)
        if isinstance(response, ErrorResponse):
            return error_response(response)
        return response

    @app.delete(
        "/api/v1/rooms/{code}",
        response_model=EndRoomResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="End a room",
    )
    async def end_room(
        code: str,
        winner: Annotated[Optional[str], Query(description="Winning player id")] = None,
    ) -> Union[EndRoomResponse, JSONResponse]:
        """End a room. Its replay is written if a replay directory is configured."""
        room = api_service.session_manager.get_room(code)
        if room is None:
            return error_response(ErrorResponse(
                error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND,
            ))
        response = await finish_room(room, winner)
        if isinstance(response, ErrorResponse):
            return error_response(response)
        return response

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/rooms/{code}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get table state",
    )
    async def get_state(
        code: str,
        viewer: Annotated[Optional[str], Query(description="Viewer player id; omit to spectate")] = None,
    ) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_state(code, viewer_id=viewer)
        if isinstance(response, ErrorResponse):
            return error_response(response)
        return response

    @app.post(
        "/api/v1/rooms/{code}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Player not seated"},
            404: {"model": ErrorResponse, "description": "Room not found"},
            409: {"model": ActionResponse, "description": "Action rejected"},
        },
        tags=["Game"],
        summary="Dispatch an action",
    )
    async def dispatch_action(code: str, body: ActionRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Dispatch a player intent.

        A rejected action returns 409 with the reason and leaves the
        table unchanged. Unknown action types are ignored unless the
        server runs with strict actions.
        """
        room = api_service.session_manager.get_room(code)
        if room is None:
            return error_response(ErrorResponse(
                error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND,
            ))
        async with room.lock:
            response = api_service.dispatch(code, body)
            if isinstance(response, ErrorResponse):
                return error_response(response)
            if response.outcome == DispatchOutcome.COMMITTED:
                await broadcast_snapshot(code)
        if response.outcome == DispatchOutcome.REJECTED:
            return JSONResponse(status_code=409, content=response.model_dump(mode="json"))
        return response

    @app.post(
        "/api/v1/rooms/{code}/undo",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Undo the newest action",
    )
    async def undo(code: str, body: Optional[UndoRequest] = None) -> Union[ActionResponse, JSONResponse]:
        room = api_service.session_manager.get_room(code)
        if room is None:
            return error_response(ErrorResponse(
                error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND,
            ))
        async with room.lock:
            response = api_service.undo(code, player_id=body.player_id if body else None)
            if isinstance(response, ErrorResponse):
                return error_response(response)
            await broadcast_snapshot(code)
        return response

    @app.get(
        "/api/v1/rooms/{code}/history",
        response_model=HistoryResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get committed transactions",
    )
    async def get_history(code: str) -> Union[HistoryResponse, JSONResponse]:
        response = api_service.get_history(code)
        if isinstance(response, ErrorResponse):
            return error_response(response)
        return response

    # =========================================================================
    # Player Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/rooms/{code}/players/{player_id}/deck",
        response_model=DeckLoadResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Players"],
        summary="Load a pre-normalized deck",
    )
    async def load_deck(code: str, player_id: str, body: DeckRequest) -> Union[DeckLoadResponse, JSONResponse]:
        """
        Replace a player's cards with a deck.

        The library is shuffled with the room seed, an opening hand is
        dealt, and the room's undo history is cleared.
        """
        room = api_service.session_manager.get_room(code)
        if room is None:
            return error_response(ErrorResponse(
                error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND,
            ))
        async with room.lock:
            response = api_service.load_deck(code, player_id, body)
            if isinstance(response, ErrorResponse):
                return error_response(response)
            await broadcast_snapshot(code)
        return response

    @app.post(
        "/api/v1/rooms/{code}/players/{player_id}/status",
        response_model=RoomResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Players"],
        summary="Set lobby status",
    )
    async def set_status(code: str, player_id: str, body: StatusRequest) -> Union[RoomResponse, JSONResponse]:
        room = api_service.session_manager.get_room(code)
        if room is None:
            return error_response(ErrorResponse(
                error=f"Room {code} not found", error_code=ErrorCode.ROOM_NOT_FOUND,
            ))
        async with room.lock:
            response = api_service.set_status(code, player_id, body)
            if isinstance(response, ErrorResponse):
                return error_response(response)
            await broadcast_snapshot(code)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/rooms/{code}/ws")
    async def websocket_endpoint(websocket: WebSocket, code: str):
        """
        WebSocket for seats and live updates.

        Messages from client:
        - join: {"type": "join", "player_name": "..."} takes a seat or spectates
        - game_action: {"type": "game_action", "action": {...}} acts as the seat
        - undo: undo the newest action
        - spectate: give up the seat and watch
        - import_deck: {"type": "import_deck", "deck": {...}} loads a deck for the seat
        - update_status: {"type": "update_status", "status": "Ready"}
        - game_over: {"type": "game_over", "winner": "p1"} ends the room
        - ping: Keep-alive

        Messages from server:
        - joined: seat assignment
        - snapshot: state as this socket's viewer sees it
        - error: rejected request
        - game_over: the room has ended
        - pong
        """
        await websocket.accept()
        room = api_service.session_manager.get_or_create_room(code)
        client_id = f"ws-{id(websocket):x}"
        connections = ws_connections.setdefault(code, {})
        connections[websocket] = None

        async def send_error(message: str, error_code: Optional[str] = None):
            await websocket.send_json({
                "type": "error",
                "payload": {"message": message, "error_code": error_code},
            })

        try:
            await websocket.send_json(state_message(api_service, room, None))

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await send_error("Invalid JSON")
                    continue
                if not isinstance(message, dict):
                    await send_error("Message must be an object")
                    continue

                message_type = message.get("type")
                player_id = connections.get(websocket)

                if message_type == "ping":
                    await websocket.send_json({"type": "pong"})

                elif message_type == "join":
                    async with room.lock:
                        player_id = room.join(client_id, message.get("player_name"))
                        connections[websocket] = player_id
                        await websocket.send_json({
                            "type": "joined", "room": code, "player_id": player_id,
                        })
                        await broadcast_snapshot(code)

                elif message_type == "game_action":
                    if not player_id:
                        await send_error("Spectators cannot perform actions")
                        continue
                    raw_action = message.get("action") or {}
                    try:
                        body = ActionRequest(**{**raw_action, "player_id": player_id})
                    except (TypeError, ValueError) as e:
                        await send_error(f"Invalid action: {e}", ErrorCode.VALIDATION_ERROR.value)
                        continue
                    async with room.lock:
                        response = api_service.dispatch(code, body)
                        if isinstance(response, ErrorResponse):
                            await send_error(response.error, response.error_code.value)
                        elif response.outcome == DispatchOutcome.COMMITTED:
                            await broadcast_snapshot(code)
                        else:
                            await send_error(
                                response.error or "Action not applied",
                                response.error_code.value if response.error_code else None,
                            )

                elif message_type == "undo":
                    if not player_id:
                        await send_error("Spectators cannot undo")
                        continue
                    async with room.lock:
                        api_service.undo(code, player_id=player_id)
                        await broadcast_snapshot(code)

                elif message_type == "spectate":
                    async with room.lock:
                        room.spectate(client_id, message.get("player_name"))
                        connections[websocket] = None
                        await broadcast_snapshot(code)

                elif message_type == "import_deck":
                    if not player_id:
                        await send_error("Spectators cannot load decks")
                        continue
                    try:
                        deck = DeckRequest(**(message.get("deck") or {}))
                    except (TypeError, ValueError) as e:
                        await send_error(f"Invalid deck: {e}", ErrorCode.INVALID_DECK.value)
                        continue
                    async with room.lock:
                        response = api_service.load_deck(code, player_id, deck)
                        if isinstance(response, ErrorResponse):
                            await send_error(response.error, response.error_code.value)
                        else:
                            await broadcast_snapshot(code)

                elif message_type == "update_status":
                    if not player_id:
                        await send_error("Spectators have no status")
                        continue
                    try:
                        status = StatusRequest(status=message.get("status"))
                    except ValueError as e:
                        await send_error(f"Invalid status: {e}", ErrorCode.VALIDATION_ERROR.value)
                        continue
                    async with room.lock:
                        api_service.set_status(code, player_id, status)
                        await broadcast_snapshot(code)

                elif message_type == "game_over":
                    await finish_room(room, message.get("winner"), keep_open=websocket)
                    break

                else:
                    await send_error(f"Unknown message type: {message_type}")

        except WebSocketDisconnect:
            pass
        finally:
            connections = ws_connections.get(code)
            if connections is not None:
                connections.pop(websocket, None)
            if room.leave(client_id) is not None:
                # No-op once the room has ended
                await broadcast_snapshot(code)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="cardtable",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Cardtable API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn cardtable.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
