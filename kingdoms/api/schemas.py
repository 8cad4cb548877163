"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
Game state models read straight from the engine dataclasses
(`from_attributes`), so the wire shape always matches the engine.

Error Codes:
- Rule violations (400): NOT_YOUR_TURN, CELL_OCCUPIED, DECK_EMPTY, ...
- ROOM_NOT_FOUND / PLAYER_NOT_FOUND (404)
- Lobby conflicts (409): ROOM_FULL, NOT_IN_LOBBY, PLAYERS_NOT_READY, ...
- MALFORMED_ACTION (422): payload rejected before reaching the validator
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field

from ..engine_core.action import Action
from ..engine_core.state import GamePhase, PlayerColor, TileType


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    # Engine rule violations
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    MUST_PLACE_DRAWN_TILE_FIRST = "MUST_PLACE_DRAWN_TILE_FIRST"
    DECK_EMPTY = "DECK_EMPTY"
    ALREADY_HOLDING_TILE = "ALREADY_HOLDING_TILE"
    INVALID_POSITION = "INVALID_POSITION"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    NO_CASTLES_OF_RANK = "NO_CASTLES_OF_RANK"
    NO_DRAWN_TILE = "NO_DRAWN_TILE"
    NO_SECRET_TILE = "NO_SECRET_TILE"
    # Room lifecycle
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
    # Input contract
    MALFORMED_ACTION = "MALFORMED_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Game State Models
# =============================================================================

class TileModel(BaseModel):
    id: str
    type: TileType
    value: int
    image: str = ""

    model_config = {"from_attributes": True}


class CastleModel(BaseModel):
    rank: int
    color: PlayerColor

    model_config = {"from_attributes": True}


class CastleSupplyModel(BaseModel):
    rank1: int
    rank2: int
    rank3: int
    rank4: int

    model_config = {"from_attributes": True}


class BoardCellModel(BaseModel):
    row: int
    col: int
    tile: Optional[TileModel] = None
    castle: Optional[CastleModel] = None

    model_config = {"from_attributes": True}


class PlayerModel(BaseModel):
    id: str
    name: str
    color: PlayerColor
    gold: int
    castles: CastleSupplyModel
    secret_tile: Optional[TileModel] = None
    drawn_tile: Optional[TileModel] = None
    is_ready: bool = False

    model_config = {"from_attributes": True}


class GameLogEntryModel(BaseModel):
    id: str
    timestamp: int
    epoch: int
    player_name: str
    player_color: Optional[PlayerColor] = None
    action: str
    details: str
    position: Optional[dict[str, int]] = None
    tile: Optional[TileModel] = None
    castle: Optional[dict[str, int]] = None
    scores: Optional[list[dict[str, Any]]] = None

    model_config = {"from_attributes": True}


class GameStateModel(BaseModel):
    """A (sanitized) game state as seen by one player."""
    id: str
    room_code: str
    phase: GamePhase
    epoch: int
    current_player_index: int
    players: list[PlayerModel] = Field(default_factory=list)
    board: list[list[BoardCellModel]] = Field(default_factory=list)
    tile_deck: list[TileModel] = Field(default_factory=list)
    game_log: list[GameLogEntryModel] = Field(default_factory=list)
    last_played_tile: Optional[TileModel] = None
    created_at: int

    model_config = {"from_attributes": True}


# =============================================================================
# Action Payloads
# =============================================================================

class PlaceCastleAction(BaseModel):
    type: Literal["PLACE_CASTLE"]
    castle_rank: Literal[1, 2, 3, 4]
    row: int
    col: int

    def to_action(self) -> Action:
        return Action.place_castle(self.castle_rank, self.row, self.col)


class DrawTileAction(BaseModel):
    type: Literal["DRAW_TILE"]

    def to_action(self) -> Action:
        return Action.draw_tile()


class PlaceDrawnTileAction(BaseModel):
    type: Literal["PLACE_DRAWN_TILE"]
    row: int
    col: int

    def to_action(self) -> Action:
        return Action.place_drawn_tile(self.row, self.col)


class DrawAndPlaceTileAction(BaseModel):
    """Legacy one-step draw and place."""
    type: Literal["DRAW_AND_PLACE_TILE"]
    row: int
    col: int

    def to_action(self) -> Action:
        return Action.draw_and_place_tile(self.row, self.col)


class PlaySecretTileAction(BaseModel):
    type: Literal["PLAY_SECRET_TILE"]
    row: int
    col: int

    def to_action(self) -> Action:
        return Action.play_secret_tile(self.row, self.col)


ActionModel = Annotated[
    Union[
        PlaceCastleAction,
        DrawTileAction,
        PlaceDrawnTileAction,
        DrawAndPlaceTileAction,
        PlaySecretTileAction,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Request Models
# =============================================================================

class CreateRoomRequest(BaseModel):
    """Request to create a new room."""
    player_name: str = Field(..., min_length=1, max_length=32, description="Host display name")


class JoinRoomRequest(BaseModel):
    """Request to join an existing room."""
    player_name: str = Field(..., min_length=1, max_length=32, description="Display name")


class PlayerRequest(BaseModel):
    """Any request made on behalf of a seated player."""
    player_id: str = Field(..., description="Id returned when the player was seated")


class GameActionRequest(BaseModel):
    """Request to perform a game action."""
    player_id: str
    action: ActionModel


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SeatResponse(BaseModel):
    """Response after creating, joining or rejoining a room."""
    room_code: str
    player_id: str
    player_color: PlayerColor
    game_state: GameStateModel
    api_version: str = "v1"


class RoomStateResponse(BaseModel):
    """A room's state as seen by the requesting player."""
    room_code: str
    game_state: GameStateModel
    api_version: str = "v1"


class PlayerScoreModel(BaseModel):
    player_id: str
    row_scores: list[int]
    col_scores: list[int]
    total_score: int

    model_config = {"from_attributes": True}


class EpochFinishedResponse(BaseModel):
    """Scores of the finished epoch plus the next state."""
    room_code: str
    scores: list[PlayerScoreModel]
    finished: bool
    game_state: GameStateModel
    api_version: str = "v1"


class StandingModel(BaseModel):
    rank: int
    player_id: str
    name: str
    color: str
    gold: int

    model_config = {"from_attributes": True}


class StandingsResponse(BaseModel):
    """Final standings of a finished game."""
    room_code: str
    standings: list[StandingModel]
    api_version: str = "v1"


class RoomListResponse(BaseModel):
    """Response listing rooms still in progress."""
    rooms: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
