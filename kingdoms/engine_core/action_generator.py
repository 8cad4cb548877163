"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. Bots to enumerate possible moves
2. UI to show available actions
3. Tests (every generated action must pass the validator)

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import GameState, GamePhase, BoardCell
from .action import Action


@dataclass
class ActionGenerator:
    """
    Generates legal actions for a player in the current game state.
    """

    def generate(self, state: GameState, player_id: str) -> list[Action]:
        """
        Generate all legal actions for `player_id`.

        Returns an empty list when it is not that player's turn.
        """
        if state.phase != GamePhase.PLAYING or not state.players:
            return []

        player = state.current_player
        if player.id != player_id:
            return []

        empty_cells = [cell for cell in state.cells() if not cell.is_occupied]

        # Holding a drawn tile: the only legal move is placing it
        if player.drawn_tile:
            return [Action.place_drawn_tile(c.row, c.col) for c in empty_cells]

        actions = []
        if state.tile_deck:
            actions.append(Action.draw_tile())
        actions.extend(self._generate_castle_actions(state, empty_cells))
        if player.secret_tile:
            actions.extend(Action.play_secret_tile(c.row, c.col) for c in empty_cells)
        return actions

    def _generate_castle_actions(self, state: GameState, empty_cells: list[BoardCell]) -> list[Action]:
        """One action per available rank per empty cell."""
        castles = state.current_player.castles
        actions = []
        for rank in (1, 2, 3, 4):
            if castles.count(rank) <= 0:
                continue
            actions.extend(Action.place_castle(rank, c.row, c.col) for c in empty_cells)
        return actions


def legal_actions(state: GameState, player_id: str) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    return ActionGenerator().generate(state, player_id)

