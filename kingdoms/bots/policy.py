"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and the legal actions for the player on
turn, and returns a decision. Bots fill empty seats in simulations and
act as baselines when tuning the rules.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

from ..engine_core.action import ActionType
from ..engine_core.reducer import execute_action
from ..engine_core.scoring import calculate_epoch_scores
from ..engine_core.sources import Sources

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for logs/debugging)
    """
    action: Action
    explanation: str = ""

    # Evaluation details (for debugging)
    evaluated_actions: int = 0
    best_score: float = 0.0


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions.
    """

    @abstractmethod
    def select_action(
        self,
        state: GameState,
        player_id: str,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select an action from the legal actions.

        Args:
            state: Current game state
            player_id: The bot's player id (the player on turn)
            legal_actions: List of legal actions to choose from

        Returns:
            BotDecision with the selected action
        """
        pass


class RandomPolicy(BotPolicy):
    """
    Random policy - selects actions uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(
        self,
        state: GameState,
        player_id: str,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        action = self.rng.choice(legal_actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            evaluated_actions=len(legal_actions),
        )


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal action.

    Used for deterministic testing.
    """

    def select_action(
        self,
        state: GameState,
        player_id: str,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        return BotDecision(
            action=legal_actions[0],
            explanation="Selected first legal action",
            evaluated_actions=1,
        )


class GreedyPolicy(BotPolicy):
    """
    Greedy policy - plays the move that maximises its immediate score lead.

    Each candidate is executed on a copy and the board scored as if the
    epoch ended now. Drawing is never simulated (its outcome is hidden);
    the bot draws only when no placement improves on the current lead.
    """

    def __init__(self, seed: int = 0):
        self.sources = Sources.seeded(seed)

    def select_action(
        self,
        state: GameState,
        player_id: str,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        baseline = self._lead(state, player_id)
        best_action = None
        best_score = baseline
        for action in legal_actions:
            if action.action_type == ActionType.DRAW_TILE:
                continue
            score = self._lead(execute_action(state, player_id, action, self.sources), player_id)
            if best_action is None or score > best_score:
                best_action, best_score = action, score

        draw = next((a for a in legal_actions if a.action_type == ActionType.DRAW_TILE), None)
        if draw is not None and (best_action is None or best_score <= baseline):
            best_action, best_score = draw, baseline

        return BotDecision(
            action=best_action,
            explanation=f"Best immediate lead {best_score:+d}",
            evaluated_actions=len(legal_actions),
            best_score=best_score,
        )

    def _lead(self, state: GameState, player_id: str) -> int:
        """Own epoch score minus the best opponent's."""
        totals = {s.player_id: s.total_score for s in calculate_epoch_scores(state)}
        mine = totals.pop(player_id, 0)
        return mine - max(totals.values(), default=0)


POLICIES = {
    "random": RandomPolicy,
    "first": FirstLegalPolicy,
    "greedy": GreedyPolicy,
}
