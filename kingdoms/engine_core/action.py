"""
Action System - Actions, payloads, errors and results.

Actions are a tagged union keyed by ActionType:
    PLACE_CASTLE        {castle_rank, row, col}
    DRAW_TILE           {}
    PLACE_DRAWN_TILE    {row, col}
    DRAW_AND_PLACE_TILE {row, col}   legacy one-step draw+place
    PLAY_SECRET_TILE    {row, col}

The two-step DRAW_TILE / PLACE_DRAWN_TILE flow is the primary path.
DRAW_AND_PLACE_TILE is kept for older clients: same net board effect,
but without the intermediate drawn-tile lock.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(str, Enum):
    """Types of player actions."""
    PLACE_CASTLE = "PLACE_CASTLE"
    DRAW_TILE = "DRAW_TILE"
    PLACE_DRAWN_TILE = "PLACE_DRAWN_TILE"
    DRAW_AND_PLACE_TILE = "DRAW_AND_PLACE_TILE"
    PLAY_SECRET_TILE = "PLAY_SECRET_TILE"


class ErrorCode(str, Enum):
    """Rule violations reported by the validator."""
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    MUST_PLACE_DRAWN_TILE_FIRST = "MUST_PLACE_DRAWN_TILE_FIRST"
    DECK_EMPTY = "DECK_EMPTY"
    ALREADY_HOLDING_TILE = "ALREADY_HOLDING_TILE"
    INVALID_POSITION = "INVALID_POSITION"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    NO_CASTLES_OF_RANK = "NO_CASTLES_OF_RANK"
    NO_DRAWN_TILE = "NO_DRAWN_TILE"
    NO_SECRET_TILE = "NO_SECRET_TILE"


ERROR_MESSAGES = {
    ErrorCode.GAME_NOT_IN_PROGRESS: "The game is not in progress",
    ErrorCode.NOT_YOUR_TURN: "Not your turn",
    ErrorCode.MUST_PLACE_DRAWN_TILE_FIRST: "You must place your drawn tile first",
    ErrorCode.DECK_EMPTY: "No tiles left in deck",
    ErrorCode.ALREADY_HOLDING_TILE: "Already holding a drawn tile",
    ErrorCode.INVALID_POSITION: "Invalid position",
    ErrorCode.CELL_OCCUPIED: "Cell already occupied",
    ErrorCode.NO_CASTLES_OF_RANK: "No castles of this rank available",
    ErrorCode.NO_DRAWN_TILE: "No drawn tile to place",
    ErrorCode.NO_SECRET_TILE: "No secret tile available",
}


class InvalidActionError(Exception):
    """Raised by the executor when an action fails validation."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        super().__init__(self.message)


@dataclass
class ValidationResult:
    """Outcome of is_valid_move()."""
    valid: bool
    error: ErrorCode | None = None

    @property
    def message(self) -> str | None:
        return ERROR_MESSAGES[self.error] if self.error else None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, error: ErrorCode) -> ValidationResult:
        return cls(valid=False, error=error)


@dataclass
class ActionPayload:
    """
    Parameters of an action.

    DRAW_TILE uses none of them; every other action needs row/col,
    and PLACE_CASTLE additionally needs castle_rank.
    """
    row: int | None = None
    col: int | None = None
    castle_rank: int | None = None


@dataclass
class Action:
    """A complete action proposed by a player."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @property
    def row(self) -> int | None:
        return self.payload.row

    @property
    def col(self) -> int | None:
        return self.payload.col

    @classmethod
    def place_castle(cls, castle_rank: int, row: int, col: int) -> Action:
        """Factory for castle placement."""
        return cls(
            action_type=ActionType.PLACE_CASTLE,
            payload=ActionPayload(row=row, col=col, castle_rank=castle_rank),
        )

    @classmethod
    def draw_tile(cls) -> Action:
        """Factory for drawing a tile into hand."""
        return cls(action_type=ActionType.DRAW_TILE)

    @classmethod
    def place_drawn_tile(cls, row: int, col: int) -> Action:
        """Factory for placing the held drawn tile."""
        return cls(
            action_type=ActionType.PLACE_DRAWN_TILE,
            payload=ActionPayload(row=row, col=col),
        )

    @classmethod
    def draw_and_place_tile(cls, row: int, col: int) -> Action:
        """Factory for the legacy combined draw+place."""
        return cls(
            action_type=ActionType.DRAW_AND_PLACE_TILE,
            payload=ActionPayload(row=row, col=col),
        )

    @classmethod
    def play_secret_tile(cls, row: int, col: int) -> Action:
        """Factory for playing the secret tile."""
        return cls(
            action_type=ActionType.PLAY_SECRET_TILE,
            payload=ActionPayload(row=row, col=col),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error code and message (if failed)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # Human-readable changes, for logs and UI toasts
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
