"""
Room Manager - Lobby lifecycle and serialized access to room state.

LIFECYCLE:
1. Host creates a room → 6-character code, host seated as red
2. Others join while in the lobby (max 4), each gets the next free color
3. Players toggle ready; the host starts once >= 2 players are all ready
4. During play every action runs validate → execute → store under the
   room's lock, so two actions can never commit against the same state
5. When the board fills (phase == scoring) any seated player finishes
   the epoch; after the third epoch the game is finished
6. Any seated player may abandon, forcing finished without scoring

The engine is pure; this layer owns the room store, the per-room locks,
and the randomness used for decks and ids.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import threading

from ..engine_core.state import (
    PLAYER_COLORS,
    MAX_PLAYERS,
    GamePhase,
    GameState,
    Player,
    PlayerColor,
)
from ..engine_core.action import Action, InvalidActionError
from ..engine_core.setup import get_initial_castles, initialize_game
from ..engine_core.reducer import Reducer
from ..engine_core.scoring import PlayerScore, calculate_epoch_scores
from ..engine_core.epoch import Standing, abandon_game, apply_scores_and_next_epoch, final_standings
from ..engine_core.view import create_player_view
from ..engine_core.sources import Sources
from .store import MemoryRoomStore, RoomStore

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
MIN_PLAYERS = 2


class RoomErrorCode(str, Enum):
    """Lobby and room-level failures."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    NOT_IN_LOBBY = "NOT_IN_LOBBY"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    PLAYERS_NOT_READY = "PLAYERS_NOT_READY"
    NOT_HOST = "NOT_HOST"
    EPOCH_NOT_COMPLETE = "EPOCH_NOT_COMPLETE"
    GAME_FINISHED = "GAME_FINISHED"
    GAME_NOT_FINISHED = "GAME_NOT_FINISHED"


class RoomError(Exception):
    """Raised for room-level failures the client can recover from."""

    def __init__(self, code: RoomErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


@dataclass
class Seat:
    """Result of creating, joining or rejoining a room."""
    room_code: str
    player_id: str
    player_color: PlayerColor
    state: GameState  # already sanitized for this player


@dataclass
class EpochOutcome:
    """Result of finishing an epoch."""
    scores: list[PlayerScore]
    state: GameState  # authoritative, unsanitized
    finished: bool = False


@dataclass
class RoomManager:
    """
    Manages rooms.

    Responsibilities:
    - Create and fill rooms in the lobby
    - Start games and route actions to the engine
    - Serialize all mutations per room code
    - Clean up finished rooms
    """
    store: RoomStore = field(default_factory=MemoryRoomStore)
    sources: Sources = field(default_factory=Sources)

    def __post_init__(self):
        self._reducer = Reducer(sources=self.sources)
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # =========================================================================
    # Lobby
    # =========================================================================

    def create_room(self, host_name: str) -> Seat:
        """Create a room with `host_name` seated as red."""
        with self._registry_lock:
            room_code = self._generate_room_code()
            host = self._new_player(host_name, PLAYER_COLORS[0])
            state = GameState(
                id=self.sources.new_id(),
                room_code=room_code,
                phase=GamePhase.LOBBY,
                players=[host],
                created_at=self.sources.clock(),
            )
            self.store.put(room_code, state)

        logger.info("Room %s created by %s", room_code, host_name)
        return Seat(room_code, host.id, host.color, create_player_view(state, host.id))

    def join_room(self, room_code: str, player_name: str) -> Seat:
        """Seat a new player in a lobby."""
        with self._lock_for(room_code):
            state = self._load(room_code)
            if state.phase != GamePhase.LOBBY:
                raise RoomError(RoomErrorCode.NOT_IN_LOBBY, "Game already started")
            if state.num_players >= MAX_PLAYERS:
                raise RoomError(RoomErrorCode.ROOM_FULL, "Room is full")

            used = {p.color for p in state.players}
            color = next(c for c in PLAYER_COLORS if c not in used)
            player = self._new_player(player_name, color)
            state.players.append(player)
            self.store.put(room_code, state)

        logger.info("%s joined room %s as %s", player_name, room_code, color.value)
        return Seat(room_code, player.id, color, create_player_view(state, player.id))

    def rejoin_room(self, room_code: str, player_id: str) -> Seat:
        """Re-attach a known player (e.g. after a reconnect)."""
        state = self._load(room_code)
        player = self._seated(state, player_id)
        return Seat(room_code, player.id, player.color, create_player_view(state, player.id))

    def toggle_ready(self, room_code: str, player_id: str) -> GameState:
        """Flip a player's ready flag in the lobby."""
        with self._lock_for(room_code):
            state = self._load(room_code)
            player = self._seated(state, player_id)
            if state.phase != GamePhase.LOBBY:
                raise RoomError(RoomErrorCode.NOT_IN_LOBBY, "Game already started")
            player.is_ready = not player.is_ready
            self.store.put(room_code, state)
        return state

    def start_game(self, room_code: str, player_id: str) -> GameState:
        """Host starts the game once everyone is ready."""
        with self._lock_for(room_code):
            state = self._load(room_code)
            self._seated(state, player_id)
            if state.phase != GamePhase.LOBBY:
                raise RoomError(RoomErrorCode.NOT_IN_LOBBY, "Game already started")
            if state.host.id != player_id:
                raise RoomError(RoomErrorCode.NOT_HOST, "Only the host can start the game")
            if state.num_players < MIN_PLAYERS:
                raise RoomError(RoomErrorCode.NOT_ENOUGH_PLAYERS, "Need at least 2 players")
            if not all(p.is_ready for p in state.players):
                raise RoomError(RoomErrorCode.PLAYERS_NOT_READY, "Not all players are ready")

            new_state = initialize_game(room_code, state.players, self.sources)
            self.store.put(room_code, new_state)
        return new_state

    # =========================================================================
    # Play
    # =========================================================================

    def game_action(self, room_code: str, player_id: str, action: Action) -> GameState:
        """
        Validate and execute one action.

        Raises InvalidActionError (engine rule violation) or RoomError.
        """
        with self._lock_for(room_code):
            state = self._load(room_code)
            self._seated(state, player_id)
            try:
                new_state = self._reducer.execute(state, player_id, action)
            except InvalidActionError as e:
                logger.info(
                    "Room %s rejected %s from %s: %s",
                    room_code, action.action_type.value, player_id, e.code.value,
                )
                raise
            self.store.put(room_code, new_state)
        return new_state

    def finish_epoch(self, room_code: str, player_id: str) -> EpochOutcome:
        """Score a full board and move on to the next epoch (or finish)."""
        with self._lock_for(room_code):
            state = self._load(room_code)
            self._seated(state, player_id)
            if state.phase == GamePhase.FINISHED:
                raise RoomError(RoomErrorCode.GAME_FINISHED, "Game is already finished")
            if state.phase != GamePhase.SCORING:
                raise RoomError(RoomErrorCode.EPOCH_NOT_COMPLETE, "The board is not full yet")

            scores = calculate_epoch_scores(state)
            new_state = apply_scores_and_next_epoch(state, self.sources, scores=scores)
            self.store.put(room_code, new_state)

        return EpochOutcome(
            scores=scores,
            state=new_state,
            finished=new_state.phase == GamePhase.FINISHED,
        )

    def abandon_game(self, room_code: str, player_id: str) -> GameState:
        """End the game for everyone immediately."""
        with self._lock_for(room_code):
            state = self._load(room_code)
            player = self._seated(state, player_id)
            new_state = abandon_game(state)
            self.store.put(room_code, new_state)
        logger.info("Room %s abandoned by %s", room_code, player.name)
        return new_state

    # =========================================================================
    # Reads
    # =========================================================================

    def get_state(self, room_code: str) -> GameState:
        """Authoritative (unsanitized) state. Never send this to a client."""
        return self._load(room_code)

    def view(self, room_code: str, player_id: str) -> GameState:
        """Sanitized state for one seated player."""
        state = self._load(room_code)
        self._seated(state, player_id)
        return create_player_view(state, player_id)

    def standings(self, room_code: str) -> list[Standing]:
        """Final standings of a finished game."""
        state = self._load(room_code)
        if state.phase != GamePhase.FINISHED:
            raise RoomError(RoomErrorCode.GAME_NOT_FINISHED, "Game is not finished")
        return final_standings(state)

    def list_rooms(self) -> list[str]:
        """Codes of rooms that are not finished."""
        active = []
        for code in self.store.codes():
            state = self.store.get(code)
            if state is not None and state.phase != GamePhase.FINISHED:
                active.append(code)
        return active

    def purge_stale_rooms(self, max_age_seconds: int) -> list[str]:
        """
        Remove finished rooms older than max_age_seconds.

        Called periodically to free memory.
        """
        now = self.sources.clock()
        removed = []
        for code in list(self.store.codes()):
            try:
                lock = self._lock_for(code)
            except RoomError:
                continue
            with lock:
                state = self.store.get(code)
                if state is None or state.phase != GamePhase.FINISHED:
                    continue
                if now - state.created_at > max_age_seconds * 1000:
                    self.store.delete(code)
                    removed.append(code)
            with self._registry_lock:
                if code in removed:
                    self._locks.pop(code, None)
        if removed:
            logger.info("Purged %d stale rooms", len(removed))
        return removed

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _lock_for(self, room_code: str) -> threading.Lock:
        """Lock for an existing room; unknown codes never get one."""
        with self._registry_lock:
            lock = self._locks.get(room_code)
            if lock is None:
                if room_code not in self.store:
                    raise RoomError(RoomErrorCode.ROOM_NOT_FOUND, f"Room {room_code} not found")
                lock = self._locks[room_code] = threading.Lock()
            return lock

    def _load(self, room_code: str) -> GameState:
        state = self.store.get(room_code)
        if state is None:
            raise RoomError(RoomErrorCode.ROOM_NOT_FOUND, f"Room {room_code} not found")
        return state

    def _seated(self, state: GameState, player_id: str) -> Player:
        player = state.get_player(player_id)
        if player is None:
            raise RoomError(RoomErrorCode.PLAYER_NOT_FOUND, "Player not found in room")
        return player

    def _new_player(self, name: str, color: PlayerColor) -> Player:
        return Player(
            id=self.sources.new_id(),
            name=name,
            color=color,
            castles=get_initial_castles(MIN_PLAYERS),
        )

    def _generate_room_code(self) -> str:
        """Random unused code; caller holds the registry lock."""
        rng = self.sources.rng
        while True:
            code = "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self.store:
                return code
