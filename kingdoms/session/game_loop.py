"""
Game Loop - Drives a full game with bot players.

The loop:
1. Ask the bot on turn for a decision among the legal actions
2. Execute it through the reducer
3. When the board fills, score the epoch and set up the next one
4. Repeat until the third epoch has been scored

Used by `kingdoms simulate` and by the end-to-end tests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..engine_core.state import GamePhase, GameState, Player, PLAYER_COLORS
from ..engine_core.scoring import PlayerScore, calculate_epoch_scores
from ..engine_core.epoch import Standing, apply_scores_and_next_epoch, final_standings
from ..engine_core.setup import initialize_game
from ..engine_core.action_generator import legal_actions
from ..engine_core.reducer import Reducer
from ..engine_core.sources import Sources

if TYPE_CHECKING:
    from ..bots import BotPolicy

logger = logging.getLogger(__name__)

# Upper bound on actions per epoch: 30 cells, each at most draw + place
MAX_ACTIONS_PER_EPOCH = 60


class LoopState(Enum):
    """State of the game loop."""
    RUNNING = "running"
    SCORING = "scoring"
    GAME_OVER = "game_over"
    STALLED = "stalled"


@dataclass
class EpochReport:
    """Scores recorded at the end of one epoch."""
    epoch: int
    scores: list[PlayerScore]
    gold_after: dict[str, int]


@dataclass
class GameReport:
    """
    Result of running a full game.

    Contains the per-epoch breakdown and the final standings.
    """
    loop_state: LoopState
    final_state: GameState
    epochs: list[EpochReport] = field(default_factory=list)
    standings: list[Standing] = field(default_factory=list)
    actions_taken: int = 0


class GameLoop:
    """
    The bot game driver.

    Usage:
        loop = GameLoop.for_players(["Ada", "Bo"], {"Ada": RandomPolicy(1), ...})
        report = loop.run()
    """

    def __init__(self, state: GameState, bots: dict[str, BotPolicy], sources: Sources):
        self.state = state
        self.bots = bots
        self.sources = sources
        self.reducer = Reducer(sources=sources)
        self.loop_state = LoopState.RUNNING

    @classmethod
    def for_players(
        cls,
        names: list[str],
        policies: list[BotPolicy],
        sources: Sources,
        room_code: str = "SIMULATE",
    ) -> GameLoop:
        """Seat one bot per name and deal a fresh game."""
        players = [
            Player(id=sources.new_id(), name=name, color=PLAYER_COLORS[i], is_ready=True)
            for i, name in enumerate(names)
        ]
        state = initialize_game(room_code, players, sources)
        bots = {p.id: policy for p, policy in zip(state.players, policies)}
        return cls(state, bots, sources)

    def step(self) -> bool:
        """
        Let the bot on turn make one move.

        Returns False if no move could be made.
        """
        player = self.state.current_player
        legal = legal_actions(self.state, player.id)
        if not legal:
            return False

        decision = self.bots[player.id].select_action(self.state, player.id, legal)
        logger.debug(
            "%s: %s (%d evaluated)", player.name, decision.explanation, decision.evaluated_actions,
        )
        result = self.reducer.apply(self.state, player.id, decision.action)
        if not result.success:
            logger.warning("Bot %s chose an illegal action: %s", player.name, result.error_code)
            return False

        self.state = result.new_state
        return True

    def play_epoch(self) -> int:
        """Play until the board fills. Returns the number of actions taken."""
        actions = 0
        while self.state.phase == GamePhase.PLAYING and actions < MAX_ACTIONS_PER_EPOCH:
            if not self.step():
                break
            actions += 1

        if self.state.phase == GamePhase.SCORING:
            self.loop_state = LoopState.SCORING
        else:
            self.loop_state = LoopState.STALLED
        return actions

    def score_epoch(self) -> EpochReport:
        """Credit the full board and advance."""
        epoch = self.state.epoch
        scores = calculate_epoch_scores(self.state)
        self.state = apply_scores_and_next_epoch(self.state, self.sources, scores=scores)
        self.loop_state = (
            LoopState.GAME_OVER if self.state.phase == GamePhase.FINISHED else LoopState.RUNNING
        )
        return EpochReport(
            epoch=epoch,
            scores=scores,
            gold_after={p.id: p.gold for p in self.state.players},
        )

    def run(self) -> GameReport:
        """Play every epoch to the end of the game."""
        report = GameReport(loop_state=self.loop_state, final_state=self.state)
        while self.loop_state == LoopState.RUNNING:
            report.actions_taken += self.play_epoch()
            if self.loop_state != LoopState.SCORING:
                logger.warning("Game %s stalled in epoch %d", self.state.id, self.state.epoch)
                break
            report.epochs.append(self.score_epoch())

        report.loop_state = self.loop_state
        report.final_state = self.state
        if self.state.phase == GamePhase.FINISHED:
            report.standings = final_standings(self.state)
        return report
