"""
Tests for bot policies, legal action generation and the game loop.
"""

import pytest

from ..bots import FirstLegalPolicy, GreedyPolicy, RandomPolicy
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import legal_actions
from ..engine_core.state import Castle, GamePhase, PlayerColor, TileConfig, TileType
from ..engine_core.sources import Sources
from ..engine_core.validator import is_valid_move
from ..session import GameLoop, LoopState


class TestActionGenerator:
    """Tests for legal action generation."""

    def test_opening_moves(self, two_player_state):
        actions = legal_actions(two_player_state, "p1")
        types = [a.action_type for a in actions]

        assert types[0] == ActionType.DRAW_TILE
        # 4 ranks x 30 cells of castles, 30 secret tile placements
        assert types.count(ActionType.PLACE_CASTLE) == 120
        assert types.count(ActionType.PLAY_SECRET_TILE) == 30
        assert ActionType.DRAW_AND_PLACE_TILE not in types

    def test_every_generated_action_is_valid(self, two_player_state):
        for action in legal_actions(two_player_state, "p1"):
            assert is_valid_move(two_player_state, "p1", action).valid

    def test_holding_tile_only_placements(self, holding_state):
        actions = legal_actions(holding_state, "p1")
        assert len(actions) == 30
        assert {a.action_type for a in actions} == {ActionType.PLACE_DRAWN_TILE}

    def test_not_on_turn(self, two_player_state):
        assert legal_actions(two_player_state, "p2") == []

    def test_spent_ranks_skipped(self, two_player_state):
        two_player_state.players[0].castles.rank4 = 0
        ranks = {a.payload.castle_rank for a in legal_actions(two_player_state, "p1")
                 if a.action_type == ActionType.PLACE_CASTLE}
        assert ranks == {1, 2, 3}


class TestPolicies:
    """Tests for individual policies."""

    def test_first_legal(self, two_player_state):
        actions = legal_actions(two_player_state, "p1")
        decision = FirstLegalPolicy().select_action(two_player_state, "p1", actions)
        assert decision.action == actions[0]

    def test_random_is_seeded(self, two_player_state):
        actions = legal_actions(two_player_state, "p1")
        first = RandomPolicy(seed=9).select_action(two_player_state, "p1", actions)
        second = RandomPolicy(seed=9).select_action(two_player_state, "p1", actions)
        assert first.action == second.action

    def test_no_actions_raises(self, two_player_state):
        with pytest.raises(ValueError):
            RandomPolicy().select_action(two_player_state, "p1", [])

    def test_greedy_takes_best_segment(self, two_player_state):
        """With a +6 next to an empty cell, the rank 4 castle goes there."""
        state = two_player_state
        state.board[2][2].tile = TileConfig(id="six", type=TileType.RESOURCE, value=6)
        state.board[2][0].castle = Castle(rank=1, color=PlayerColor.YELLOW)
        state.board[2][0].tile = None
        state.tile_deck = []
        state.players[0].secret_tile = None

        decision = GreedyPolicy().select_action(state, "p1", legal_actions(state, "p1"))

        assert decision.action.action_type == ActionType.PLACE_CASTLE
        assert decision.action.payload.castle_rank == 4
        assert decision.best_score > 0

    def test_greedy_draws_when_nothing_helps(self, two_player_state):
        decision = GreedyPolicy().select_action(
            two_player_state, "p1", [Action.draw_tile(), Action.place_castle(1, 0, 0)],
        )
        assert decision.action.action_type == ActionType.DRAW_TILE


class TestGameLoop:
    """End-to-end games driven by bots."""

    def test_first_legal_game_completes(self):
        loop = GameLoop.for_players(["A", "B"], [FirstLegalPolicy(), FirstLegalPolicy()], Sources.seeded(1))
        report = loop.run()

        assert report.loop_state == LoopState.GAME_OVER
        assert report.final_state.phase == GamePhase.FINISHED
        assert [e.epoch for e in report.epochs] == [1, 2, 3]
        assert len(report.standings) == 2

    @pytest.mark.parametrize("players", [2, 3, 4])
    def test_random_games_stop_cleanly(self, players):
        """A game either finishes or stops with the player on turn out of moves."""
        policies = [RandomPolicy(seed=i) for i in range(players)]
        names = [f"Bot {i}" for i in range(players)]
        report = GameLoop.for_players(names, policies, Sources.seeded(players)).run()
        state = report.final_state

        epoch_logs = [e.epoch for e in state.game_log if e.action == "EPOCH_SCORE"]
        assert epoch_logs == [e.epoch for e in report.epochs]
        if report.loop_state == LoopState.GAME_OVER:
            assert epoch_logs == [1, 2, 3]
        else:
            assert report.loop_state == LoopState.STALLED
            assert state.phase == GamePhase.PLAYING
            assert legal_actions(state, state.current_player.id) == []

    def test_decisions_logged(self, caplog):
        loop = GameLoop.for_players(["A", "B"], [FirstLegalPolicy(), FirstLegalPolicy()], Sources.seeded(1))
        with caplog.at_level("DEBUG", logger="kingdoms.session.game_loop"):
            loop.step()

        assert "A: Selected first legal action (1 evaluated)" in caplog.text

    def test_gold_matches_epoch_scores(self):
        policies = [RandomPolicy(seed=1), RandomPolicy(seed=2)]
        report = GameLoop.for_players(["A", "B"], policies, Sources.seeded(11)).run()

        for player in report.final_state.players:
            earned = sum(
                s.total_score for e in report.epochs for s in e.scores if s.player_id == player.id
            )
            assert player.gold == 50 + earned

    def test_same_seed_same_game(self):
        def play():
            policies = [RandomPolicy(seed=4), RandomPolicy(seed=5)]
            report = GameLoop.for_players(["A", "B"], policies, Sources.seeded(8)).run()
            return [p.gold for p in report.final_state.players], report.actions_taken

        assert play() == play()
