"""
Cardtable - Authoritative Multiplayer Card Table

A server-side engine for a shared virtual card table. Clients send
intents; the engine validates them and provides:
- Action processing into explicit effects
- Deterministic effect application
- Per-room history with undo by inversion
- Replay records of finished games
"""

__version__ = "0.1.0"
