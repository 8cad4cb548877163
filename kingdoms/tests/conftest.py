"""
Pytest fixtures for Kingdoms tests.
"""

import itertools

import pytest

from ..engine_core.state import (
    GamePhase,
    GameState,
    Player,
    PlayerColor,
    TileConfig,
    TileType,
)
from ..engine_core.setup import create_empty_board, initialize_game
from ..engine_core.sources import Sources


FIXED_TIME = 1_700_000_000_000


@pytest.fixture
def sources() -> Sources:
    """Deterministic sources with a frozen clock."""
    return Sources.seeded(42, clock=lambda: FIXED_TIME)


@pytest.fixture
def lobby_players() -> list[Player]:
    """Two ready players, host first."""
    return [
        Player(id="p1", name="Ada", color=PlayerColor.RED, is_ready=True),
        Player(id="p2", name="Bo", color=PlayerColor.YELLOW, is_ready=True),
    ]


@pytest.fixture
def two_player_state(lobby_players, sources) -> GameState:
    """A freshly dealt 2-player game, p1 on turn."""
    return initialize_game("ROOM01", lobby_players, sources)


@pytest.fixture
def holding_state(two_player_state, sources) -> GameState:
    """p1 has drawn a tile and must place it."""
    from ..engine_core.action import Action
    from ..engine_core.reducer import execute_action

    return execute_action(two_player_state, "p1", Action.draw_tile(), sources)


@pytest.fixture
def make_tile():
    """Factory for tiles with unique ids."""
    counter = itertools.count()

    def _make(tile_type: TileType, value: int = 0) -> TileConfig:
        return TileConfig(id=f"t{next(counter)}", type=tile_type, value=value)

    return _make


@pytest.fixture
def board_state() -> GameState:
    """An empty board with red (p1) and yellow (p2) seated, ready to score."""
    return GameState(
        id="scoring_game",
        room_code="SCORE1",
        phase=GamePhase.SCORING,
        players=[
            Player(id="p1", name="Ada", color=PlayerColor.RED),
            Player(id="p2", name="Bo", color=PlayerColor.YELLOW),
        ],
        board=create_empty_board(),
    )


@pytest.fixture
def fill_board(make_tile):
    """Fill every empty cell of a state's board with +0 resource tiles."""

    def _fill(state: GameState) -> GameState:
        for cell in state.cells():
            if not cell.is_occupied:
                cell.tile = make_tile(TileType.RESOURCE, 0)
        return state

    return _fill

