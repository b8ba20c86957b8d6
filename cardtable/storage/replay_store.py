"""
Replay Store - Keeps finished sessions as JSON files.

The store:
- Writes one immutable file per finished room
- Stores on local disk (JSON)
- No database required
- Records are loaded back as ReplayRecord objects

Design decisions:
- Simple file-based storage
- File name is room code plus end time, so a room can be stored twice
- Existing files are never overwritten
"""

from __future__ import annotations
import json
import logging
import re
from pathlib import Path

from ..engine_core.replay import ReplayRecord

logger = logging.getLogger(__name__)


class ReplayStore:
    """
    File-based sink for replay records.

    Usage:
        store = ReplayStore(directory="~/.cardtable/replays")
        path = store.save(session.replay_record(room_code="ROOM-ABC123"))
        record = store.load(path.stem)
    """

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".cardtable" / "replays"
        self.directory = Path(directory).expanduser()

        # Ensure replay directory exists
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, record: ReplayRecord) -> Path:
        """Write a record and return its path."""
        replay_id = self._make_replay_id(record)
        path = self._get_path(replay_id)
        suffix = 1
        while path.exists():
            path = self._get_path(f"{replay_id}-{suffix}")
            suffix += 1

        with open(path, "w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, indent=2)

        logger.info("Saved replay for %s to %s", record.room_code, path)
        return path

    def load(self, replay: str | Path) -> ReplayRecord:
        """
        Load a record by replay id or file path.

        Raises:
            FileNotFoundError: If no such replay exists
            ValueError: If the file is not a valid replay
        """
        path = Path(replay)
        if not path.suffix:
            path = self._get_path(str(replay))
        if not path.exists():
            raise FileNotFoundError(f"Replay not found: {replay}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Replay {path} is not valid JSON: {e}")
        try:
            return ReplayRecord.from_dict(data)
        except KeyError as e:
            raise ValueError(f"Replay {path} is missing field {e}")

    def list_replays(self) -> list[str]:
        """List stored replay ids, oldest name first."""
        if not self.directory.exists():
            return []
        return sorted(f.stem for f in self.directory.glob("*.json"))

    def _make_replay_id(self, record: ReplayRecord) -> str:
        safe_code = re.sub(r"[^A-Za-z0-9_-]+", "_", record.room_code)
        return f"{safe_code}_{int(record.ended_at * 1000)}"

    def _get_path(self, replay_id: str) -> Path:
        return self.directory / f"{replay_id}.json"
