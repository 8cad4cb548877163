"""
FastAPI Application - REST and WebSocket API for Kingdoms rooms.

Endpoints:
    POST   /api/v1/rooms                      Create room
    GET    /api/v1/rooms                      List rooms in progress
    POST   /api/v1/rooms/{code}/join          Join a lobby
    POST   /api/v1/rooms/{code}/rejoin        Re-attach after reconnect
    POST   /api/v1/rooms/{code}/ready         Toggle ready
    POST   /api/v1/rooms/{code}/start         Start game (host)
    POST   /api/v1/rooms/{code}/actions       Perform a game action
    POST   /api/v1/rooms/{code}/finish-epoch  Score a full board
    POST   /api/v1/rooms/{code}/abandon       End the game for everyone
    GET    /api/v1/rooms/{code}/state         Sanitized state for a player
    GET    /api/v1/rooms/{code}/standings     Final standings
    WS     /api/v1/rooms/{code}/ws            Per-viewer pushes

After every successful mutation each socket in the room receives
`{type, payload}` built from its own viewer's sanitized state, so no
client ever sees another player's secret or drawn tile.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import json
import logging

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Config
from ..engine_core.sources import Sources, default_sources
from ..session import RoomManager
from .service import APIService
from .schemas import (
    # Request models
    CreateRoomRequest,
    JoinRoomRequest,
    PlayerRequest,
    GameActionRequest,
    # Response models
    SeatResponse,
    RoomStateResponse,
    EpochFinishedResponse,
    StandingsResponse,
    RoomListResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {ErrorCode.ROOM_NOT_FOUND, ErrorCode.PLAYER_NOT_FOUND}
CONFLICT_CODES = {
    ErrorCode.ROOM_FULL,
    ErrorCode.NOT_IN_LOBBY,
    ErrorCode.NOT_ENOUGH_PLAYERS,
    ErrorCode.PLAYERS_NOT_READY,
    ErrorCode.NOT_HOST,
    ErrorCode.EPOCH_NOT_COMPLETE,
    ErrorCode.GAME_FINISHED,
    ErrorCode.GAME_NOT_FINISHED,
}


def status_for(error_code: ErrorCode) -> int:
    """HTTP status for an error code."""
    if error_code in NOT_FOUND_CODES:
        return 404
    if error_code in CONFLICT_CODES:
        return 409
    if error_code in (ErrorCode.MALFORMED_ACTION, ErrorCode.VALIDATION_ERROR):
        return 422
    if error_code == ErrorCode.INTERNAL_ERROR:
        return 500
    return 400


def default_service() -> APIService:
    """Service wired from the environment configuration."""
    if Config.RANDOM_SEED is not None:
        sources = Sources.seeded(Config.RANDOM_SEED)
    else:
        sources = default_sources()
    return APIService(room_manager=RoomManager(sources=sources))


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Kingdoms API",
        description="""
Multiplayer rooms for the Kingdoms tile-and-castle board game.

## Error Codes

| Status | Codes |
|--------|-------|
| 400 | Rule violations: `NOT_YOUR_TURN`, `CELL_OCCUPIED`, `DECK_EMPTY`, ... |
| 404 | `ROOM_NOT_FOUND`, `PLAYER_NOT_FOUND` |
| 409 | Lobby conflicts: `ROOM_FULL`, `NOT_IN_LOBBY`, `PLAYERS_NOT_READY`, ... |
| 422 | `MALFORMED_ACTION`, `VALIDATION_ERROR` |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or default_service()

    # WebSocket connections per room: (player_id, socket)
    ws_connections: dict[str, list[tuple[str, WebSocket]]] = {}
    app.state.ws_connections = ws_connections

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or status_for(error_code),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_json(response: ErrorResponse) -> JSONResponse:
        return make_error_response(response.error_code, response.error, details=response.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        """Payloads rejected by the schemas never reach the engine."""
        error_code = (
            ErrorCode.MALFORMED_ACTION
            if request.url.path.endswith("/actions")
            else ErrorCode.VALIDATION_ERROR
        )
        errors = [
            {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
            for e in exc.errors()
        ]
        return make_error_response(error_code, "Request payload is invalid", details={"errors": errors})

    async def broadcast_to_room(room_code: str, message_type: str, extra: Optional[dict] = None):
        """
        Push a message to every socket in a room.

        Each socket gets a payload built from its own viewer's state: the
        bare state, or `extra` plus a "state" key when extra is given.
        """
        if room_code not in ws_connections:
            return
        dead_connections = []
        for player_id, ws in list(ws_connections[room_code]):
            state = api_service.viewer_state(room_code, player_id)
            if state is None:
                dead_connections.append((player_id, ws))
                continue
            state_json = state.model_dump(mode="json")
            payload = state_json if extra is None else {**extra, "state": state_json}
            try:
                await ws.send_json({"type": message_type, "payload": payload})
            except (WebSocketDisconnect, RuntimeError):
                dead_connections.append((player_id, ws))
        for conn in dead_connections:
            drop_connection(room_code, conn)

    def drop_connection(room_code: str, connection: tuple[str, WebSocket]):
        # Sockets compare as mappings of their scope, so match by identity
        connections = ws_connections.get(room_code, [])
        connections[:] = [c for c in connections if c[1] is not connection[1]]

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/rooms",
        response_model=SeatResponse,
        status_code=201,
        tags=["Rooms"],
        summary="Create a new room",
    )
    async def create_room(request: CreateRoomRequest) -> SeatResponse:
        """Create a room; the requester is seated as host (red)."""
        api_service.purge_stale_rooms(Config.STALE_ROOM_SECONDS)
        return api_service.create_room(request)

    @app.get(
        "/api/v1/rooms",
        response_model=RoomListResponse,
        tags=["Rooms"],
        summary="List rooms in progress",
    )
    async def list_rooms() -> RoomListResponse:
        return api_service.list_rooms()

    @app.post(
        "/api/v1/rooms/{room_code}/join",
        response_model=SeatResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Join a room in the lobby",
    )
    async def join_room(room_code: str, request: JoinRoomRequest) -> Union[SeatResponse, JSONResponse]:
        response = api_service.join_room(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_to_room(room_code, "room_updated")
        return response

    @app.post(
        "/api/v1/rooms/{room_code}/rejoin",
        response_model=SeatResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Re-attach to a room after a reconnect",
    )
    async def rejoin_room(room_code: str, request: PlayerRequest) -> Union[SeatResponse, JSONResponse]:
        response = api_service.rejoin_room(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.post(
        "/api/v1/rooms/{room_code}/ready",
        response_model=RoomStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Toggle ready in the lobby",
    )
    async def toggle_ready(room_code: str, request: PlayerRequest) -> Union[RoomStateResponse, JSONResponse]:
        response = api_service.toggle_ready(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_to_room(room_code, "room_updated")
        return response

    @app.post(
        "/api/v1/rooms/{room_code}/start",
        response_model=RoomStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Start the game",
    )
    async def start_game(room_code: str, request: PlayerRequest) -> Union[RoomStateResponse, JSONResponse]:
        """Host only; needs at least two players, all ready."""
        response = api_service.start_game(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_to_room(room_code, "game_started")
        return response

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/rooms/{room_code}/actions",
        response_model=RoomStateResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Rule violation"},
            404: {"model": ErrorResponse},
            422: {"model": ErrorResponse, "description": "Malformed action"},
        },
        tags=["Game"],
        summary="Perform a game action",
    )
    async def game_action(room_code: str, request: GameActionRequest) -> Union[RoomStateResponse, JSONResponse]:
        """
        Validate and execute one action.

        **Action payloads:**
        ```json
        {"type": "PLACE_CASTLE", "castle_rank": 2, "row": 1, "col": 4}
        {"type": "DRAW_TILE"}
        {"type": "PLACE_DRAWN_TILE", "row": 0, "col": 0}
        {"type": "PLAY_SECRET_TILE", "row": 3, "col": 2}
        ```
        """
        response = api_service.game_action(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_to_room(room_code, "game_updated")
        return response

    @app.post(
        "/api/v1/rooms/{room_code}/finish-epoch",
        response_model=EpochFinishedResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Score the full board",
    )
    async def finish_epoch(room_code: str, request: PlayerRequest) -> Union[EpochFinishedResponse, JSONResponse]:
        response = api_service.finish_epoch(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        scores = [s.model_dump(mode="json") for s in response.scores]
        await broadcast_to_room(room_code, "epoch_finished", {"scores": scores})
        return response

    @app.post(
        "/api/v1/rooms/{room_code}/abandon",
        response_model=RoomStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Abandon the game",
    )
    async def abandon_game(room_code: str, request: PlayerRequest) -> Union[RoomStateResponse, JSONResponse]:
        response = api_service.abandon_game(room_code, request)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_to_room(room_code, "game_abandoned", {"abandoned_by": request.player_id})
        return response

    @app.get(
        "/api/v1/rooms/{room_code}/state",
        response_model=RoomStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the game state as seen by a player",
    )
    async def get_state(
        room_code: str,
        player_id: str = Query(..., description="Viewer's player id"),
    ) -> Union[RoomStateResponse, JSONResponse]:
        response = api_service.get_state(room_code, player_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/rooms/{room_code}/standings",
        response_model=StandingsResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Final standings of a finished game",
    )
    async def get_standings(room_code: str) -> Union[StandingsResponse, JSONResponse]:
        response = api_service.get_standings(room_code)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/rooms/{room_code}/ws")
    async def websocket_endpoint(websocket: WebSocket, room_code: str, player_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - room_updated: Lobby changed (join, ready)
        - game_started: Game was started
        - game_updated: An action was applied
        - epoch_finished: {scores, state}
        - game_abandoned: {abandoned_by, state}
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        state = api_service.viewer_state(room_code, player_id)
        if state is None:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": "Room or player not found"},
            })
            await websocket.close(code=4404)
            return

        connection = (player_id, websocket)
        ws_connections.setdefault(room_code, []).append(connection)

        try:
            await websocket.send_json({
                "type": "room_updated",
                "payload": state.model_dump(mode="json"),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug("Socket for %s left room %s", player_id, room_code)
        finally:
            drop_connection(room_code, connection)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="kingdoms",
            version=__version__,
        )

    return app


# For running directly: uvicorn kingdoms.api.app:app
app = create_app()
