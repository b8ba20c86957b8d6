"""
API Module - Table client interface.

Exposes the engine via REST and WebSocket for table clients.
A client:
1. Creates or joins a room
2. Takes a seat or spectates
3. Loads a deck
4. Sends actions and undo requests
5. Receives a snapshot of the table after every change

All state is room-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateRoomRequest,
    ActionRequest,
    UndoRequest,
    DeckEntry,
    DeckRequest,
    StatusRequest,
    # Responses
    ActionResponse,
    DeckLoadResponse,
    EndRoomResponse,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    HistoryResponse,
    RoomListResponse,
    RoomResponse,
    # Shared
    CardInfo,
    PlayerInfo,
    LogEntryInfo,
    HistoryEntryInfo,
    # Enums
    DispatchOutcome,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateRoomRequest",
    "ActionRequest",
    "UndoRequest",
    "DeckEntry",
    "DeckRequest",
    "StatusRequest",
    # Responses
    "ActionResponse",
    "DeckLoadResponse",
    "EndRoomResponse",
    "ErrorResponse",
    "GameStateResponse",
    "HealthResponse",
    "HistoryResponse",
    "RoomListResponse",
    "RoomResponse",
    # Shared
    "CardInfo",
    "PlayerInfo",
    "LogEntryInfo",
    "HistoryEntryInfo",
    # Enums
    "DispatchOutcome",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
