"""
Room Store - Where each room's GameState blob lives.

The manager only needs get/put/delete by room code with read-your-writes
consistency for sequential calls. MemoryRoomStore is the default; any
backend implementing RoomStore can replace it.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable

from ..engine_core.state import GameState


class RoomStore(ABC):
    """Opaque key-value store for GameState keyed by room code."""

    @abstractmethod
    def get(self, room_code: str) -> GameState | None:
        """Return the stored state, or None if the room does not exist."""

    @abstractmethod
    def put(self, room_code: str, state: GameState) -> None:
        """Store (replace) the state for a room."""

    @abstractmethod
    def delete(self, room_code: str) -> None:
        """Remove a room. Unknown codes are ignored."""

    @abstractmethod
    def codes(self) -> Iterable[str]:
        """All room codes currently stored."""

    def __contains__(self, room_code: str) -> bool:
        return self.get(room_code) is not None


class MemoryRoomStore(RoomStore):
    """
    In-process store.

    States are cloned on the way in and out so callers can never alias
    the stored value.
    """

    def __init__(self):
        self._rooms: dict[str, GameState] = {}

    def get(self, room_code: str) -> GameState | None:
        state = self._rooms.get(room_code)
        return state.clone() if state is not None else None

    def put(self, room_code: str, state: GameState) -> None:
        self._rooms[room_code] = state.clone()

    def delete(self, room_code: str) -> None:
        self._rooms.pop(room_code, None)

    def codes(self) -> list[str]:
        return list(self._rooms.keys())
