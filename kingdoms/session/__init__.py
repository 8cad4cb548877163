"""
Session Module - Rooms, lobby lifecycle and game driving.

A room represents one play-through of Kingdoms:
- Created by a host in the lobby
- Holds the authoritative GameState in a RoomStore
- Serializes every mutation per room code
- Finished rooms are purged after a configurable age

The engine never stores anything; this layer does.
"""

from .store import RoomStore, MemoryRoomStore
from .manager import RoomManager, RoomError, RoomErrorCode, Seat, EpochOutcome
from .game_loop import GameLoop, LoopState, GameReport, EpochReport

__all__ = [
    "RoomStore",
    "MemoryRoomStore",
    "RoomManager",
    "RoomError",
    "RoomErrorCode",
    "Seat",
    "EpochOutcome",
    "GameLoop",
    "LoopState",
    "GameReport",
    "EpochReport",
]
