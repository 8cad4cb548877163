"""
Tests for per-viewer sanitization.
"""

from ..engine_core.action import Action
from ..engine_core.reducer import execute_action
from ..engine_core.view import HIDDEN_TILE_ID, create_player_view
from ..engine_core.state import TileType


class TestPlayerView:
    """Hidden information never reaches other players."""

    def test_own_secret_visible(self, two_player_state):
        view = create_player_view(two_player_state, "p1")
        assert view.players[0].secret_tile == two_player_state.players[0].secret_tile

    def test_opponent_secret_hidden(self, two_player_state):
        view = create_player_view(two_player_state, "p1")
        hidden = view.players[1].secret_tile

        assert hidden is not None
        assert hidden.id == HIDDEN_TILE_ID
        assert hidden.type == TileType.RESOURCE
        assert hidden.value == 0

    def test_opponent_drawn_tile_hidden(self, holding_state):
        view = create_player_view(holding_state, "p2")
        assert view.players[0].drawn_tile.id == HIDDEN_TILE_ID

        own = create_player_view(holding_state, "p1")
        assert own.players[0].drawn_tile == holding_state.players[0].drawn_tile

    def test_empty_hand_stays_empty(self, two_player_state):
        two_player_state.players[1].secret_tile = None
        view = create_player_view(two_player_state, "p1")
        assert view.players[1].secret_tile is None
        assert view.players[1].drawn_tile is None

    def test_deck_length_kept_contents_hidden(self, two_player_state):
        view = create_player_view(two_player_state, "p1")

        assert len(view.tile_deck) == len(two_player_state.tile_deck)
        assert all(t.id == HIDDEN_TILE_ID and t.value == 0 for t in view.tile_deck)

    def test_board_is_public(self, two_player_state, sources):
        state = execute_action(two_player_state, "p1", Action.play_secret_tile(2, 2), sources)
        view = create_player_view(state, "p2")
        assert view.board[2][2].tile == state.board[2][2].tile

    def test_outsider_sees_nothing_hidden(self, two_player_state):
        view = create_player_view(two_player_state, "spectator")
        assert all(p.secret_tile.id == HIDDEN_TILE_ID for p in view.players)

    def test_source_state_untouched(self, holding_state):
        before = holding_state.clone()
        create_player_view(holding_state, "p2")
        assert holding_state == before
