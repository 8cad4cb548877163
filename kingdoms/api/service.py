"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to RoomManager calls
2. Converts engine failures into ErrorResponse objects
3. Sanitizes every state before it becomes a response

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .schemas import (
    # Requests
    CreateRoomRequest,
    JoinRoomRequest,
    PlayerRequest,
    GameActionRequest,
    # Responses
    SeatResponse,
    RoomStateResponse,
    EpochFinishedResponse,
    StandingsResponse,
    RoomListResponse,
    ErrorResponse,
    # Shared
    GameStateModel,
    PlayerScoreModel,
    StandingModel,
    # Enums
    ErrorCode,
)
from ..engine_core.action import InvalidActionError
from ..engine_core.state import GameState
from ..engine_core.view import create_player_view
from ..session import RoomManager, RoomError, Seat


@dataclass
class APIService:
    """
    Room service used by the HTTP and WebSocket endpoints.

    Usage:
        service = APIService()

        seat = service.create_room(CreateRoomRequest(player_name="Ada"))
        response = service.game_action(seat.room_code, request)
    """
    room_manager: RoomManager = field(default_factory=RoomManager)

    # =========================================================================
    # Lobby
    # =========================================================================

    def create_room(self, request: CreateRoomRequest) -> SeatResponse:
        """Create a room with the requester seated as host."""
        return self._seat_to_response(self.room_manager.create_room(request.player_name))

    def join_room(self, room_code: str, request: JoinRoomRequest) -> SeatResponse | ErrorResponse:
        try:
            seat = self.room_manager.join_room(room_code, request.player_name)
        except RoomError as e:
            return self._room_error(e, room_code)
        return self._seat_to_response(seat)

    def rejoin_room(self, room_code: str, request: PlayerRequest) -> SeatResponse | ErrorResponse:
        try:
            seat = self.room_manager.rejoin_room(room_code, request.player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return self._seat_to_response(seat)

    def toggle_ready(self, room_code: str, request: PlayerRequest) -> RoomStateResponse | ErrorResponse:
        try:
            state = self.room_manager.toggle_ready(room_code, request.player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return self._state_response(state, request.player_id)

    def start_game(self, room_code: str, request: PlayerRequest) -> RoomStateResponse | ErrorResponse:
        try:
            state = self.room_manager.start_game(room_code, request.player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return self._state_response(state, request.player_id)

    # =========================================================================
    # Play
    # =========================================================================

    def game_action(self, room_code: str, request: GameActionRequest) -> RoomStateResponse | ErrorResponse:
        """
        Run one action through the engine.

        Rule violations come back as ErrorResponse with the engine's code;
        the stored state is unchanged in that case.
        """
        action = request.action.to_action()
        try:
            state = self.room_manager.game_action(room_code, request.player_id, action)
        except RoomError as e:
            return self._room_error(e, room_code)
        except InvalidActionError as e:
            return ErrorResponse(
                error=e.message,
                error_code=ErrorCode(e.code.value),
                details={"room_code": room_code, "action": action.action_type.value},
            )
        return self._state_response(state, request.player_id)

    def finish_epoch(self, room_code: str, request: PlayerRequest) -> EpochFinishedResponse | ErrorResponse:
        try:
            outcome = self.room_manager.finish_epoch(room_code, request.player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return EpochFinishedResponse(
            room_code=room_code,
            scores=[PlayerScoreModel.model_validate(s) for s in outcome.scores],
            finished=outcome.finished,
            game_state=self._view_model(outcome.state, request.player_id),
        )

    def abandon_game(self, room_code: str, request: PlayerRequest) -> RoomStateResponse | ErrorResponse:
        try:
            state = self.room_manager.abandon_game(room_code, request.player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return self._state_response(state, request.player_id)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_state(self, room_code: str, player_id: str) -> RoomStateResponse | ErrorResponse:
        try:
            view = self.room_manager.view(room_code, player_id)
        except RoomError as e:
            return self._room_error(e, room_code)
        return RoomStateResponse(room_code=room_code, game_state=GameStateModel.model_validate(view))

    def get_standings(self, room_code: str) -> StandingsResponse | ErrorResponse:
        try:
            standings = self.room_manager.standings(room_code)
        except RoomError as e:
            return self._room_error(e, room_code)
        return StandingsResponse(
            room_code=room_code,
            standings=[StandingModel.model_validate(s) for s in standings],
        )

    def list_rooms(self) -> RoomListResponse:
        rooms = self.room_manager.list_rooms()
        return RoomListResponse(rooms=rooms, count=len(rooms))

    def purge_stale_rooms(self, max_age_seconds: int) -> list[str]:
        return self.room_manager.purge_stale_rooms(max_age_seconds)

    def viewer_state(self, room_code: str, player_id: str) -> Optional[GameStateModel]:
        """Sanitized state for a socket, or None if the room or seat is gone."""
        try:
            return GameStateModel.model_validate(self.room_manager.view(room_code, player_id))
        except RoomError:
            return None

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _view_model(self, state: GameState, player_id: str) -> GameStateModel:
        return GameStateModel.model_validate(create_player_view(state, player_id))

    def _state_response(self, state: GameState, player_id: str) -> RoomStateResponse:
        return RoomStateResponse(
            room_code=state.room_code,
            game_state=self._view_model(state, player_id),
        )

    def _seat_to_response(self, seat: Seat) -> SeatResponse:
        return SeatResponse(
            room_code=seat.room_code,
            player_id=seat.player_id,
            player_color=seat.player_color,
            game_state=GameStateModel.model_validate(seat.state),
        )

    def _room_error(self, error: RoomError, room_code: str) -> ErrorResponse:
        return ErrorResponse(
            error=error.message,
            error_code=ErrorCode(error.code.value),
            details={"room_code": room_code},
        )
