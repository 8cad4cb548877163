"""
API Module - Network interface for Kingdoms rooms.

Exposes the engine via REST and WebSocket. A client:
1. Creates or joins a room and keeps the returned player_id
2. Toggles ready; the host starts the game
3. Posts actions and listens for per-viewer state pushes
4. Finishes each epoch once the board is full

All state is room-scoped. No persistent user accounts required.
"""

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
    ErrorResponse,
    ErrorCode,
    # Shared
    GameStateModel,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateRoomRequest",
    "JoinRoomRequest",
    "PlayerRequest",
    "GameActionRequest",
    # Responses
    "SeatResponse",
    "RoomStateResponse",
    "EpochFinishedResponse",
    "StandingsResponse",
    "ErrorResponse",
    "ErrorCode",
    # Shared
    "GameStateModel",
    # Service
    "APIService",
    "create_app",
]
