"""
Player views - What one seat is allowed to see.

The session hands out the full state; hiding other players' hands is
done here, on a serialized copy, right before broadcast.
"""

from __future__ import annotations
from typing import Any

from ..engine_core.state import GameState, Zone


def player_view(state: GameState, viewer_id: str | None) -> dict[str, Any]:
    """
    Serialize state for one viewer.

    - Hand cards are visible to their owner only; spectators see none
    - Every player carries hand_count and library_count
    - The viewer's seat is rotated to the front of the player list
    """
    data = state.to_dict()

    data["board"] = [
        card for card in data["board"]
        if card["zone"] != Zone.HAND.value or (viewer_id is not None and card["owner_id"] == viewer_id)
    ]

    players = []
    for player in data["players"]:
        player_id = player["player_id"]
        player["hand_count"] = len(state.cards_in(Zone.HAND, player_id))
        player["library_count"] = len(state.cards_in(Zone.LIBRARY, player_id))
        players.append(player)

    index = next((i for i, p in enumerate(players) if p["player_id"] == viewer_id), None)
    if index is not None:
        players = players[index:] + players[:index]
    data["players"] = players
    data["viewer_id"] = viewer_id
    return data
