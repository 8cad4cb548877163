"""
Reducer - Applies player actions to game state.

The reducer is the single point of state mutation during an epoch.
All player moves must go through execute_action() / Reducer.apply().

Design principles:
- Pure function: (state, player_id, action) -> new_state
- Re-validates every action; never trusts an earlier validation
- Works on a deep clone, taken only after validation succeeds
- Appends exactly one log entry per action
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .state import Castle, GameLogEntry, GamePhase, GameState, Player, TileConfig
from .action import Action, ActionResult, ActionType, InvalidActionError
from .sources import Sources
from .validator import is_valid_move

logger = logging.getLogger(__name__)


def make_log_entry(
    state: GameState,
    sources: Sources,
    player: Player,
    action: str,
    details: str,
    **payload,
) -> GameLogEntry:
    """Build a log entry stamped with the state's current epoch."""
    return GameLogEntry(
        id=sources.new_id(),
        timestamp=sources.clock(),
        epoch=state.epoch,
        player_name=player.name,
        player_color=player.color,
        action=action,
        details=details,
        **payload,
    )


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from its Sources - all game data lives in GameState.
    """
    sources: Sources = field(default_factory=Sources)

    def apply(self, state: GameState, player_id: str, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        try:
            new_state = self.execute(state, player_id, action)
        except InvalidActionError as e:
            logger.debug("Rejected %s from %s: %s", action.action_type.value, player_id, e.code.value)
            return ActionResult.failure(e.message, error_code=e.code.value)

        return ActionResult.success_with_state(
            new_state,
            changes=[new_state.game_log[-1].details],
        )

    def execute(self, state: GameState, player_id: str, action: Action) -> GameState:
        """
        Validate and execute an action, returning the next state.

        Raises InvalidActionError; `state` is never modified.
        """
        validation = is_valid_move(state, player_id, action)
        if not validation.valid:
            raise InvalidActionError(validation.error)

        new_state = state.clone()
        player = new_state.current_player

        handler = self._get_handler(action.action_type)
        handler(new_state, player, action)

        if action.action_type == ActionType.DRAW_TILE:
            # The player keeps the turn until the drawn tile is placed
            return new_state

        new_state.current_player_index = (
            (new_state.current_player_index + 1) % new_state.num_players
        )
        if new_state.is_board_full:
            new_state.phase = GamePhase.SCORING
            logger.info(
                "Board full in game %s, epoch %d ready for scoring",
                new_state.id, new_state.epoch,
            )
        return new_state

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.DRAW_TILE: self._handle_draw_tile,
            ActionType.PLACE_CASTLE: self._handle_place_castle,
            ActionType.PLACE_DRAWN_TILE: self._handle_place_drawn_tile,
            ActionType.DRAW_AND_PLACE_TILE: self._handle_draw_and_place_tile,
            ActionType.PLAY_SECRET_TILE: self._handle_play_secret_tile,
        }
        return handlers[action_type]

    def _log(self, state: GameState, player: Player, action: str, details: str, **payload) -> None:
        state.game_log.append(make_log_entry(state, self.sources, player, action, details, **payload))
        logger.debug("[%s] %s: %s", state.room_code, player.name, details)

    def _handle_draw_tile(self, state: GameState, player: Player, action: Action) -> None:
        """Move the top of the deck into the player's hand."""
        tile = state.tile_deck.pop()
        player.drawn_tile = tile
        self._log(state, player, "DRAW_TILE", "Drew a tile from the deck", tile=tile)

    def _handle_place_castle(self, state: GameState, player: Player, action: Action) -> None:
        rank = action.payload.castle_rank
        state.board[action.row][action.col].castle = Castle(rank=rank, color=player.color)
        player.castles.take(rank)
        self._log(
            state, player, "PLACE_CASTLE",
            f"Placed a rank {rank} castle at ({action.row}, {action.col})",
            position={"row": action.row, "col": action.col},
            castle={"rank": rank},
        )

    def _handle_place_drawn_tile(self, state: GameState, player: Player, action: Action) -> None:
        tile = player.drawn_tile
        player.drawn_tile = None
        self._place_tile(state, player, action, tile, "PLACE_TILE", "Placed a")

    def _handle_draw_and_place_tile(self, state: GameState, player: Player, action: Action) -> None:
        """Legacy: deck straight onto the board, no held-tile step."""
        tile = state.tile_deck.pop()
        self._place_tile(state, player, action, tile, "PLACE_TILE", "Placed a")

    def _handle_play_secret_tile(self, state: GameState, player: Player, action: Action) -> None:
        tile = player.secret_tile
        player.secret_tile = None
        self._place_tile(state, player, action, tile, "PLAY_SECRET_TILE", "Played their secret")

    def _place_tile(
        self,
        state: GameState,
        player: Player,
        action: Action,
        tile: TileConfig,
        log_action: str,
        verb: str,
    ) -> None:
        state.board[action.row][action.col].tile = tile
        state.last_played_tile = tile
        self._log(
            state, player, log_action,
            f"{verb} {tile.describe()} at ({action.row}, {action.col})",
            position={"row": action.row, "col": action.col},
            tile=tile,
        )


def execute_action(
    state: GameState,
    player_id: str,
    action: Action,
    sources: Sources | None = None,
) -> GameState:
    """
    Convenience function to execute an action.

    Raises InvalidActionError if the action is not legal.
    """
    return Reducer(sources=sources or Sources()).execute(state, player_id, action)


def apply_action(
    state: GameState,
    player_id: str,
    action: Action,
    sources: Sources | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(sources=sources or Sources())
    return reducer.apply(state, player_id, action)
