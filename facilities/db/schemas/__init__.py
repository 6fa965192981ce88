"""
Pydantic schemas exchanged with callers of the facilities store.
"""

from .rooms import (
    RoomLocation,
    RoomCreate,
    RoomUpdate,
    Room,
    RoomFilters,
    PaginatedRooms,
)

__all__ = [
    "RoomLocation",
    "RoomCreate",
    "RoomUpdate",
    "Room",
    "RoomFilters",
    "PaginatedRooms",
]
