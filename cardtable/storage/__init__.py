"""
Storage - Where finished sessions go.

Game state itself is in-memory and room-scoped. The only persistence
is the replay record written when a room ends.
"""

from .replay_store import ReplayStore

__all__ = ["ReplayStore"]
