"""
Kingdoms Setup - Creates decks, boards and the initial game state.

This module handles:
- Building the 23-tile deck and shuffling it (Fisher-Yates)
- Creating the empty 5x6 board
- Castle allotment by player count
- Dealing one secret tile per player

Randomness, ids and timestamps all come from an injected Sources.
"""

from __future__ import annotations
import logging

from .state import (
    BOARD_COLS,
    BOARD_ROWS,
    STARTING_GOLD,
    BoardCell,
    CastleSupply,
    GamePhase,
    GameState,
    Player,
    TileConfig,
    TileType,
)
from .sources import Sources, default_sources

logger = logging.getLogger(__name__)

DECK_SIZE = 23

# rank-1 castles per player, by player count
RANK1_CASTLES = {2: 4, 3: 3, 4: 2}


def shuffle_tiles(tiles: list[TileConfig], sources: Sources) -> list[TileConfig]:
    """Unbiased in-place Fisher-Yates shuffle. Returns the same list."""
    rng = sources.rng
    for i in range(len(tiles) - 1, 0, -1):
        j = rng.randint(0, i)
        tiles[i], tiles[j] = tiles[j], tiles[i]
    return tiles


def create_tile_deck(sources: Sources | None = None) -> list[TileConfig]:
    """
    Create a freshly shuffled deck.

    12 resource (two each of +1..+6), 6 hazard (-1..-6),
    2 mountains, 1 dragon, 1 gold mine, 1 wizard.
    """
    sources = sources or default_sources()
    tiles: list[TileConfig] = []

    def add(tile_type: TileType, value: int = 0) -> None:
        tiles.append(TileConfig(id=sources.new_id(), type=tile_type, value=value))

    for value in range(1, 7):
        add(TileType.RESOURCE, value)
        add(TileType.RESOURCE, value)

    for value in range(-1, -7, -1):
        add(TileType.HAZARD, value)

    add(TileType.MOUNTAIN)
    add(TileType.MOUNTAIN)
    add(TileType.DRAGON)
    add(TileType.GOLDMINE)
    add(TileType.WIZARD)

    return shuffle_tiles(tiles, sources)


def create_empty_board() -> list[list[BoardCell]]:
    """Create an empty 5x6 board, row-major."""
    return [
        [BoardCell(row=row, col=col) for col in range(BOARD_COLS)]
        for row in range(BOARD_ROWS)
    ]


def rank1_castle_count(player_count: int) -> int:
    """Fewer rank-1 castles as more players share the board."""
    if player_count <= 2:
        return RANK1_CASTLES[2]
    return RANK1_CASTLES.get(player_count, RANK1_CASTLES[4])


def get_initial_castles(player_count: int) -> CastleSupply:
    """Castle supply for one player at game start."""
    return CastleSupply(
        rank1=rank1_castle_count(player_count),
        rank2=3,
        rank3=2,
        rank4=1,
    )


def initialize_game(
    room_code: str,
    players: list[Player],
    sources: Sources | None = None,
) -> GameState:
    """
    Set up a new game from the seated players.

    Args:
        room_code: Room the game belongs to
        players: Seated players, in turn order (players[0] is the host)
        sources: Randomness / id / clock (defaults to unseeded)

    Returns:
        Initial GameState in the playing phase, epoch 1, first player on turn
    """
    sources = sources or default_sources()
    tile_deck = create_tile_deck(sources)

    seated = []
    for player in players:
        seated.append(Player(
            id=player.id,
            name=player.name,
            color=player.color,
            gold=STARTING_GOLD,
            castles=get_initial_castles(len(players)),
            secret_tile=tile_deck.pop(),
            drawn_tile=None,
            is_ready=player.is_ready,
        ))

    state = GameState(
        id=sources.new_id(),
        room_code=room_code,
        phase=GamePhase.PLAYING,
        epoch=1,
        current_player_index=0,
        players=seated,
        board=create_empty_board(),
        tile_deck=tile_deck,
        game_log=[],
        last_played_tile=None,
        created_at=sources.clock(),
    )
    logger.info("Game %s started in room %s with %d players", state.id, room_code, len(seated))
    return state
