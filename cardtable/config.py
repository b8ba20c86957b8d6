"""
Environment configuration.

Read once at import; Settings.from_env() re-reads for tests and the CLI.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class Settings:
    """Runtime settings for the server and sessions."""
    env: str = "development"
    replay_dir: str | None = None
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    starting_life: int = 40
    opening_hand: int = 7
    strict_actions: bool = False
    log_level: str = "INFO"
    session_ttl: int = 3600

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=os.getenv("CARDTABLE_ENV", "development"),
            replay_dir=os.getenv("CARDTABLE_REPLAY_DIR") or None,
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            starting_life=_env_int("CARDTABLE_STARTING_LIFE", 40),
            opening_hand=_env_int("CARDTABLE_OPENING_HAND", 7),
            strict_actions=_env_bool("CARDTABLE_STRICT_ACTIONS", False),
            log_level=os.getenv("CARDTABLE_LOG_LEVEL", "INFO").upper(),
            session_ttl=_env_int("CARDTABLE_SESSION_TTL", 3600),
        )


SETTINGS = Settings.from_env()
