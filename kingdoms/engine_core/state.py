"""
Game State - The authoritative Kingdoms state container.

Design principles:
- One GameState value is the sole unit of truth for a room
- Mutations happen only on a clone (see reducer.py / epoch.py)
- Serializable: plain dataclasses and str enums, so it can be stored as a blob
- The board is a fixed 5x6 grid; a cell holds at most one of tile/castle
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum


BOARD_ROWS = 5
BOARD_COLS = 6
STARTING_GOLD = 50
FINAL_EPOCH = 3
MAX_PLAYERS = 4


class GamePhase(str, Enum):
    """High-level game phases."""
    LOBBY = "lobby"
    PLAYING = "playing"
    SCORING = "scoring"
    FINISHED = "finished"


class TileType(str, Enum):
    """Tile kinds. Only resource and hazard tiles carry value."""
    RESOURCE = "resource"
    HAZARD = "hazard"
    MOUNTAIN = "mountain"
    DRAGON = "dragon"
    GOLDMINE = "goldmine"
    WIZARD = "wizard"


class PlayerColor(str, Enum):
    """Player colors, in seating-assignment order."""
    RED = "red"
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"


PLAYER_COLORS = [PlayerColor.RED, PlayerColor.YELLOW, PlayerColor.BLUE, PlayerColor.GREEN]


@dataclass
class TileConfig:
    """A single tile. `image` is opaque to the engine."""
    id: str
    type: TileType
    value: int = 0
    image: str = ""

    def describe(self) -> str:
        sign = "+" if self.value > 0 else ""
        return f"{self.type.value} tile ({sign}{self.value})"


@dataclass
class Castle:
    """A castle placed on the board."""
    rank: int
    color: PlayerColor


@dataclass
class CastleSupply:
    """Remaining castle pieces per rank."""
    rank1: int = 4
    rank2: int = 3
    rank3: int = 2
    rank4: int = 1

    def count(self, rank: int) -> int:
        return getattr(self, f"rank{rank}")

    def take(self, rank: int) -> None:
        setattr(self, f"rank{rank}", self.count(rank) - 1)

    @property
    def total(self) -> int:
        return self.rank1 + self.rank2 + self.rank3 + self.rank4


@dataclass
class BoardCell:
    """A board position. `row`/`col` never change once created."""
    row: int
    col: int
    tile: TileConfig | None = None
    castle: Castle | None = None

    @property
    def is_occupied(self) -> bool:
        return self.tile is not None or self.castle is not None

    def has_tile(self, tile_type: TileType) -> bool:
        return self.tile is not None and self.tile.type == tile_type


@dataclass
class Player:
    """
    A seated player.

    `drawn_tile` is a tile taken from the deck but not yet placed; while it
    is set the player may only place it.
    """
    id: str
    name: str
    color: PlayerColor
    gold: int = STARTING_GOLD
    castles: CastleSupply = field(default_factory=CastleSupply)
    secret_tile: TileConfig | None = None
    drawn_tile: TileConfig | None = None
    is_ready: bool = False


@dataclass
class GameLogEntry:
    """Immutable record of one action (or one epoch summary)."""
    id: str
    timestamp: int
    epoch: int
    player_name: str
    player_color: PlayerColor | None
    action: str
    details: str
    position: dict[str, int] | None = None
    tile: TileConfig | None = None
    castle: dict[str, int] | None = None
    scores: list[dict[str, Any]] | None = None


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    Player order is fixed at game start: it drives turn rotation and
    players[0] is the host.
    """
    id: str
    room_code: str
    phase: GamePhase = GamePhase.LOBBY
    epoch: int = 1
    current_player_index: int = 0
    players: list[Player] = field(default_factory=list)
    board: list[list[BoardCell]] = field(default_factory=list)

    # Acts as a stack: tiles are drawn from the end
    tile_deck: list[TileConfig] = field(default_factory=list)

    game_log: list[GameLogEntry] = field(default_factory=list)
    last_played_tile: TileConfig | None = None
    created_at: int = 0

    @property
    def current_player(self) -> Player:
        """Get the player on turn."""
        return self.players[self.current_player_index]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def host(self) -> Player | None:
        return self.players[0] if self.players else None

    def get_player(self, player_id: str) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def cell(self, row: int, col: int) -> BoardCell | None:
        """Get a board cell, or None when (row, col) is off the board."""
        if 0 <= row < len(self.board) and 0 <= col < len(self.board[row]):
            return self.board[row][col]
        return None

    def cells(self) -> list[BoardCell]:
        """All board cells, row-major."""
        return [cell for row in self.board for cell in row]

    @property
    def is_board_full(self) -> bool:
        return bool(self.board) and all(cell.is_occupied for cell in self.cells())

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
