"""
Engine Core - The authoritative Kingdoms rule engine.

The engine is pure and synchronous:
1. Builds decks, boards and the initial GameState (setup)
2. Validates actions (validator)
3. Applies actions via the reducer
4. Scores epochs and moves between them (scoring, epoch)
5. Redacts hidden information per viewer (view)

Callers must serialize validate/execute calls per room; the engine does
no locking or versioning of its own.
"""

from .state import (
    GameState,
    GamePhase,
    Player,
    PlayerColor,
    PLAYER_COLORS,
    BoardCell,
    Castle,
    CastleSupply,
    TileConfig,
    TileType,
    GameLogEntry,
)
from .action import (
    Action,
    ActionType,
    ActionPayload,
    ActionResult,
    ErrorCode,
    InvalidActionError,
    ValidationResult,
)
from .sources import Sources
from .setup import create_tile_deck, create_empty_board, get_initial_castles, initialize_game
from .validator import is_valid_move
from .reducer import Reducer, apply_action, execute_action
from .scoring import PlayerScore, calculate_epoch_scores
from .epoch import Standing, apply_scores_and_next_epoch, abandon_game, final_standings
from .view import create_player_view
from .action_generator import ActionGenerator, legal_actions

__all__ = [
    "GameState",
    "GamePhase",
    "Player",
    "PlayerColor",
    "PLAYER_COLORS",
    "BoardCell",
    "Castle",
    "CastleSupply",
    "TileConfig",
    "TileType",
    "GameLogEntry",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "InvalidActionError",
    "ValidationResult",
    "Sources",
    "create_tile_deck",
    "create_empty_board",
    "get_initial_castles",
    "initialize_game",
    "is_valid_move",
    "Reducer",
    "apply_action",
    "execute_action",
    "PlayerScore",
    "calculate_epoch_scores",
    "Standing",
    "apply_scores_and_next_epoch",
    "abandon_game",
    "final_standings",
    "create_player_view",
    "ActionGenerator",
    "legal_actions",
]
