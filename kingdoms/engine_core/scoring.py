"""
Scoring - Computes epoch scores from the board.

Every row and every column is scored for every player:

1. Mountains split a line into segments; each segment scores on its own
2. A segment scores 0 for a player with no castle in it
3. Castle strength is the sum of the player's castle ranks in the segment,
   each +1 (capped at 4) when orthogonally next to a wizard anywhere
4. Tile value: resources sum unless a dragon shares the segment,
   hazards always sum
5. A gold mine in the segment doubles the tile value
6. Segment score = tile value * castle strength

Special tiles carry no value of their own; they only modify.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .state import BOARD_COLS, BOARD_ROWS, BoardCell, GameState, PlayerColor, TileType

MAX_CASTLE_RANK = 4

ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass
class PlayerScore:
    """Score breakdown for one player over one epoch."""
    player_id: str
    row_scores: list[int] = field(default_factory=list)
    col_scores: list[int] = field(default_factory=list)
    total_score: int = 0

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "row_scores": list(self.row_scores),
            "col_scores": list(self.col_scores),
            "total_score": self.total_score,
        }


def split_segments(cells: list[BoardCell]) -> list[list[BoardCell]]:
    """Split a line at every mountain; mountain cells belong to no segment."""
    segments: list[list[BoardCell]] = [[]]
    for cell in cells:
        if cell.has_tile(TileType.MOUNTAIN):
            segments.append([])
        else:
            segments[-1].append(cell)
    return segments


def is_adjacent_to_wizard(cell: BoardCell, board: list[list[BoardCell]]) -> bool:
    """True if any orthogonal neighbour of `cell` holds a wizard."""
    for d_row, d_col in ORTHOGONAL:
        row, col = cell.row + d_row, cell.col + d_col
        if 0 <= row < len(board) and 0 <= col < len(board[row]):
            if board[row][col].has_tile(TileType.WIZARD):
                return True
    return False


def castle_strength(cell: BoardCell, board: list[list[BoardCell]]) -> int:
    """Effective rank of the castle on `cell`."""
    rank = cell.castle.rank
    if is_adjacent_to_wizard(cell, board):
        rank = min(rank + 1, MAX_CASTLE_RANK)
    return rank


def segment_tile_value(cells: list[BoardCell]) -> int:
    """Tile value of a segment after dragon and gold mine modifiers."""
    has_dragon = any(c.has_tile(TileType.DRAGON) for c in cells)
    value = 0
    for cell in cells:
        if cell.tile is None:
            continue
        if cell.tile.type == TileType.RESOURCE:
            value += 0 if has_dragon else cell.tile.value
        elif cell.tile.type == TileType.HAZARD:
            value += cell.tile.value

    if any(c.has_tile(TileType.GOLDMINE) for c in cells):
        value *= 2
    return value


def segment_score(
    cells: list[BoardCell],
    color: PlayerColor,
    board: list[list[BoardCell]],
) -> int:
    """Score one mountain-free segment for the player owning `color`."""
    own_castles = [c for c in cells if c.castle is not None and c.castle.color == color]
    if not own_castles:
        return 0

    strength = sum(castle_strength(c, board) for c in own_castles)
    return segment_tile_value(cells) * strength


def line_score(
    cells: list[BoardCell],
    color: PlayerColor,
    board: list[list[BoardCell]],
) -> int:
    """Score a full row or column."""
    return sum(segment_score(segment, color, board) for segment in split_segments(cells))


def calculate_epoch_scores(state: GameState) -> list[PlayerScore]:
    """Score the board for every player, in seat order. Read-only."""
    board = state.board
    rows = [board[r] for r in range(BOARD_ROWS)]
    cols = [[board[r][c] for r in range(BOARD_ROWS)] for c in range(BOARD_COLS)]

    scores = []
    for player in state.players:
        row_scores = [line_score(line, player.color, board) for line in rows]
        col_scores = [line_score(line, player.color, board) for line in cols]
        scores.append(PlayerScore(
            player_id=player.id,
            row_scores=row_scores,
            col_scores=col_scores,
            total_score=sum(row_scores) + sum(col_scores),
        ))
    return scores
