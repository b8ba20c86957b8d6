"""
Session Manager - Creates and manages rooms.

LIFECYCLE:
1. A client creates or joins a room -> a GameSession is created in memory
2. Players take seats (p1, p2, ...); further clients spectate
3. Players load pre-normalized decks; each load resets the history
4. During the game, actions and undos go through the room's session,
   one at a time per room
5. The room ends -> its replay record is flushed to the replay store
   (if configured) and the room is forgotten

PERSISTENCE RULES:
- Game state is in-memory and room-scoped
- The only persistence is the replay record written at room end
- Rooms share nothing: each owns its session exclusively
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import asyncio
import logging
import secrets
import time

from ..config import Settings, SETTINGS
from ..engine_core.state import PlayerStatus
from ..engine_core.processor import ActionProcessor, seeded_shuffler
from ..engine_core.replay import ReplayRecord
from ..storage import ReplayStore
from ..table.setup import DeckList, create_table_state, load_deck
from .game_session import GameSession

logger = logging.getLogger(__name__)


def make_room_code() -> str:
    """Room codes double as shuffle seeds."""
    return f"ROOM-{secrets.token_hex(3).upper()}"


@dataclass
class Room:
    """
    One table and the clients attached to it.

    Contains:
    - The room's GameSession
    - Seat assignments (client id -> player id, None for spectators)
    - A lock the transport holds around dispatch/undo
    """
    code: str
    session: GameSession
    created_at: float
    opening_hand: int = 7

    seats: dict[str, str | None] = field(default_factory=dict)
    last_activity: float = 0.0
    ended: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def touch(self):
        self.last_activity = time.time()

    def is_active(self) -> bool:
        return not self.ended

    def taken_seats(self) -> set[str]:
        return {player_id for player_id in self.seats.values() if player_id}

    def join(self, client_id: str, display_name: str | None = None) -> str | None:
        """
        Seat a client in the first free seat, or as a spectator.

        Returns the player id, or None for a spectator. A display name
        renames the seat; cards are owned by id so nothing else changes.
        """
        if client_id in self.seats:
            player_id = self.seats[client_id]
        else:
            taken = self.taken_seats()
            player_id = next(
                (p.player_id for p in self.session.state.players if p.player_id not in taken),
                None,
            )
            self.seats[client_id] = player_id

        if player_id and display_name:
            player = self.session.state.get_player(player_id)
            if player is not None:
                player.name = display_name

        self.session.note(
            "Join",
            f"{display_name or client_id} joined {self.code} as {player_id or 'Spectator'}",
        )
        self.touch()
        return player_id

    def leave(self, client_id: str) -> str | None:
        """Free a client's seat. Returns the seat it held."""
        self.touch()
        player_id = self.seats.pop(client_id, None)
        if player_id is not None:
            self.session.note("Leave", f"{self.session.state.player_name(player_id)} left {self.code}")
        return player_id

    def spectate(self, client_id: str, display_name: str | None = None) -> None:
        """Give up a seat, if held, and stay in the room as a spectator."""
        self.seats[client_id] = None
        self.session.note("Spectate", f"{display_name or client_id} entered spectate-only mode")
        self.touch()

    def set_status(self, player_id: str, status: PlayerStatus) -> None:
        """
        Set a lobby status.

        Raises:
            KeyError: If the player does not exist
        """
        player = self.session.state.get_player(player_id)
        if player is None:
            raise KeyError(f"Player {player_id} not found")
        player.status = status
        self.session.note("Status", f"{player.name} is {status.value}")
        self.touch()

    def load_deck(self, player_id: str, deck: DeckList) -> int:
        """
        Replace a player's cards with a deck.

        Shuffles with the room's seeded shuffler and clears the history,
        since recorded effects reference the removed cards.
        Returns the number of cards created.
        """
        new_state = load_deck(
            self.session.state,
            player_id,
            deck,
            shuffler=self.session.processor.shuffler,
            opening_hand=self.opening_hand,
        )
        self.session.reset(new_state)
        player = new_state.get_player(player_id)
        created = sum(1 for c in new_state.board if c.owner_id == player_id)
        self.session.note("Deck", f"{player.name} loaded {deck.name or 'a deck'} ({created} cards)")
        self.touch()
        return created


class SessionManager:
    """
    Manages rooms.

    Responsibilities:
    - Create rooms with a seeded session each
    - Track active rooms
    - Flush replays and clean up ended rooms
    """

    def __init__(self, settings: Settings | None = None, replay_store: ReplayStore | None = None):
        self.settings = settings or SETTINGS
        if replay_store is None and self.settings.replay_dir:
            replay_store = ReplayStore(self.settings.replay_dir)
        self.replay_store = replay_store
        self._rooms: dict[str, Room] = {}

    def create_room(self, code: str | None = None) -> Room:
        """
        Create a new room.

        Args:
            code: Room code to use (generated if not provided)

        Returns:
            New Room with two open seats

        Raises:
            ValueError: If the code is already in use
        """
        if code is None:
            code = make_room_code()
            while code in self._rooms:
                code = make_room_code()
        elif code in self._rooms:
            raise ValueError(f"Room {code} already exists")

        state = create_table_state(
            game_id=code,
            seed=code,
            starting_life=self.settings.starting_life,
        )
        session = GameSession(
            state,
            processor=ActionProcessor(shuffler=seeded_shuffler(code)),
            session_id=code,
            strict_actions=self.settings.strict_actions,
        )
        session.note("Seed", f"Game seed locked ({code}) for determinism")

        now = time.time()
        room = Room(
            code=code,
            session=session,
            created_at=now,
            opening_hand=self.settings.opening_hand,
            last_activity=now,
        )
        self._rooms[code] = room
        logger.info("Created room %s", code)
        return room

    def get_room(self, code: str) -> Room | None:
        """Get a room by code."""
        return self._rooms.get(code)

    def get_or_create_room(self, code: str) -> Room:
        room = self._rooms.get(code)
        if room is None:
            room = self.create_room(code)
        return room

    def list_rooms(self) -> list[str]:
        """List codes of active rooms."""
        return [code for code, room in self._rooms.items() if room.is_active()]

    def end_room(self, code: str, winner: str | None = None) -> tuple[ReplayRecord, Path | None] | None:
        """
        End a room and forget it.

        The replay record is written to the store when one is configured.
        Returns (record, path) or None if the room does not exist.
        """
        room = self._rooms.pop(code, None)
        if room is None:
            return None

        room.ended = True
        if winner:
            room.session.note("Game Over", f"Winner: {room.session.state.player_name(winner)}")
        record = room.session.replay_record(room_code=code, winner=winner)

        path = None
        if self.replay_store is not None:
            path = self.replay_store.save(record)
        else:
            logger.info("No replay store configured, skipping replay save for %s", code)

        room.seats.clear()
        logger.info("Ended room %s after %d action(s)", code, record.action_count)
        return record, path

    def cleanup_stale_rooms(self, max_age_seconds: int | None = None) -> list[str]:
        """
        End rooms idle longer than max_age.

        Called periodically to free memory.
        """
        max_age = self.settings.session_ttl if max_age_seconds is None else max_age_seconds
        current_time = time.time()
        stale = [
            code for code, room in self._rooms.items()
            if current_time - room.last_activity > max_age and not room.seats
        ]
        for code in stale:
            self.end_room(code)
        return stale
