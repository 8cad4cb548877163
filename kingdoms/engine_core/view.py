"""
Player View - Redacts hidden information before state leaves the server.

Opponents' secret and drawn tiles become placeholders that still show
the tile exists. The deck keeps its length but loses its contents.
The board is public and passes through untouched.
"""

from __future__ import annotations

from .state import GameState, TileConfig, TileType

HIDDEN_TILE_ID = "hidden"


def hidden_tile() -> TileConfig:
    """Opaque stand-in for a tile the viewer may not see."""
    return TileConfig(id=HIDDEN_TILE_ID, type=TileType.RESOURCE, value=0, image="")


def create_player_view(state: GameState, viewer_id: str) -> GameState:
    """Deep-copied, sanitized state for `viewer_id`. Never mutates `state`."""
    view = state.clone()

    for player in view.players:
        if player.id == viewer_id:
            continue
        if player.secret_tile is not None:
            player.secret_tile = hidden_tile()
        if player.drawn_tile is not None:
            player.drawn_tile = hidden_tile()

    view.tile_deck = [hidden_tile() for _ in view.tile_deck]
    return view

