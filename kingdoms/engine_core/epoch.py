"""
Epoch Transitions - Scoring, reset between epochs, and game end.

After the board fills (phase == scoring) the caller applies
apply_scores_and_next_epoch(): gold is credited, a summary is logged,
and either the next epoch is set up or the game finishes.

Gold is an unbounded signed accumulator: a heavily negative epoch can
take a player below zero. No floor is applied.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .state import FINAL_EPOCH, GameLogEntry, GamePhase, GameState, Player
from .scoring import PlayerScore, calculate_epoch_scores
from .setup import create_empty_board, create_tile_deck, rank1_castle_count
from .sources import Sources, default_sources

logger = logging.getLogger(__name__)

SYSTEM_PLAYER_NAME = "System"


@dataclass
class Standing:
    """A player's final placing."""
    rank: int
    player_id: str
    name: str
    color: str
    gold: int


def starting_player_index(players: list[Player]) -> int:
    """Index of the richest player; ties go to the earliest seat."""
    best = 0
    for i, player in enumerate(players):
        if player.gold > players[best].gold:
            best = i
    return best


def apply_scores_and_next_epoch(
    state: GameState,
    sources: Sources | None = None,
    scores: list[PlayerScore] | None = None,
) -> GameState:
    """
    Credit this epoch's scores and move to the next epoch (or finish).

    Args:
        state: State whose board is to be scored
        sources: Randomness / id / clock for the new deck and log entry
        scores: Precomputed scores for `state` (computed if omitted)

    Returns:
        New state; `state` is not modified
    """
    sources = sources or default_sources()
    if scores is None:
        scores = calculate_epoch_scores(state)

    new_state = state.clone()
    totals = {score.player_id: score.total_score for score in scores}
    for player in new_state.players:
        player.gold += totals.get(player.id, 0)

    new_state.game_log.append(GameLogEntry(
        id=sources.new_id(),
        timestamp=sources.clock(),
        epoch=new_state.epoch,
        player_name=SYSTEM_PLAYER_NAME,
        player_color=None,
        action="EPOCH_SCORE",
        details=f"Epoch {new_state.epoch} finished",
        scores=[
            {"player_name": p.name, "player_color": p.color.value, "gold": p.gold}
            for p in new_state.players
        ],
    ))

    if new_state.epoch >= FINAL_EPOCH:
        new_state.phase = GamePhase.FINISHED
        logger.info(
            "Game %s finished: %s",
            new_state.id,
            ", ".join(f"{p.name}={p.gold}" for p in new_state.players),
        )
        return new_state

    new_state.epoch += 1
    new_state.phase = GamePhase.PLAYING
    new_state.board = create_empty_board()
    new_state.tile_deck = create_tile_deck(sources)
    new_state.last_played_tile = None

    # Only rank-1 castles come back; higher ranks stay spent
    rank1 = rank1_castle_count(new_state.num_players)
    for player in new_state.players:
        player.castles.rank1 = rank1
        player.secret_tile = new_state.tile_deck.pop()
        player.drawn_tile = None

    new_state.current_player_index = starting_player_index(new_state.players)
    logger.info(
        "Game %s entering epoch %d, %s starts",
        new_state.id, new_state.epoch, new_state.current_player.name,
    )
    return new_state


def abandon_game(state: GameState) -> GameState:
    """Force the game to finished from any phase, skipping scoring."""
    new_state = state.clone()
    new_state.phase = GamePhase.FINISHED
    logger.info("Game %s abandoned during %s", new_state.id, state.phase.value)
    return new_state


def final_standings(state: GameState) -> list[Standing]:
    """
    Players by gold, highest first; ties keep seat order and share a rank.
    """
    ordered = sorted(state.players, key=lambda p: -p.gold)
    standings = []
    for i, player in enumerate(ordered):
        if standings and standings[-1].gold == player.gold:
            rank = standings[-1].rank
        else:
            rank = i + 1
        standings.append(Standing(
            rank=rank,
            player_id=player.id,
            name=player.name,
            color=player.color.value,
            gold=player.gold,
        ))
    return standings
