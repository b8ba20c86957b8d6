"""
Session Module - Owns game sessions and the rooms around them.

A session is one authoritative table plus its history:
- Created when a room is created
- Takes actions one at a time and can undo them
- Hands out full snapshots for broadcast
- Produces a replay record when the room ends

Rooms are in-memory; the only persistence is the replay store.
"""

from .game_session import GameSession, DispatchResult, DispatchStatus
from .manager import SessionManager, Room, make_room_code

__all__ = [
    "GameSession",
    "DispatchResult",
    "DispatchStatus",
    "SessionManager",
    "Room",
    "make_room_code",
]
