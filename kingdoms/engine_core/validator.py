"""
Validator - Decides whether a proposed action is legal.

is_valid_move() never mutates the state. Rules are checked in a fixed
order so the reported error is stable:

0. The game must be in the playing phase
1. Only the player on turn may act
2. A held drawn tile must be placed before anything else
3. DRAW_TILE needs a non-empty deck and an empty hand
4. Everything else needs an on-board, unoccupied (row, col)
5-8. Per-action resource checks
"""

from __future__ import annotations

from .state import GameState, GamePhase
from .action import Action, ActionType, ErrorCode, ValidationResult


def is_valid_move(state: GameState, player_id: str, action: Action) -> ValidationResult:
    """Validate `action` by `player_id` against `state`."""
    if state.phase != GamePhase.PLAYING or not state.players:
        return ValidationResult.fail(ErrorCode.GAME_NOT_IN_PROGRESS)

    current_player = state.current_player
    if current_player.id != player_id:
        return ValidationResult.fail(ErrorCode.NOT_YOUR_TURN)

    if current_player.drawn_tile and action.action_type != ActionType.PLACE_DRAWN_TILE:
        return ValidationResult.fail(ErrorCode.MUST_PLACE_DRAWN_TILE_FIRST)

    if action.action_type == ActionType.DRAW_TILE:
        if not state.tile_deck:
            return ValidationResult.fail(ErrorCode.DECK_EMPTY)
        if current_player.drawn_tile:
            return ValidationResult.fail(ErrorCode.ALREADY_HOLDING_TILE)
        return ValidationResult.ok()

    if action.row is None or action.col is None:
        return ValidationResult.fail(ErrorCode.INVALID_POSITION)
    target = state.cell(action.row, action.col)
    if target is None:
        return ValidationResult.fail(ErrorCode.INVALID_POSITION)
    if target.is_occupied:
        return ValidationResult.fail(ErrorCode.CELL_OCCUPIED)

    if action.action_type == ActionType.PLACE_CASTLE:
        rank = action.payload.castle_rank
        if rank not in (1, 2, 3, 4) or current_player.castles.count(rank) <= 0:
            return ValidationResult.fail(ErrorCode.NO_CASTLES_OF_RANK)

    elif action.action_type == ActionType.PLACE_DRAWN_TILE:
        if not current_player.drawn_tile:
            return ValidationResult.fail(ErrorCode.NO_DRAWN_TILE)

    elif action.action_type == ActionType.PLAY_SECRET_TILE:
        if not current_player.secret_tile:
            return ValidationResult.fail(ErrorCode.NO_SECRET_TILE)

    elif action.action_type == ActionType.DRAW_AND_PLACE_TILE:
        if not state.tile_deck:
            return ValidationResult.fail(ErrorCode.DECK_EMPTY)

    return ValidationResult.ok()
