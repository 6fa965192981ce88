from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoomLocation(BaseModel):
    building: Optional[str] = None
    floor: Optional[str] = None
    room_number: Optional[str] = None

    @field_validator("floor", "room_number", mode="before")
    @classmethod
    def _stringify_numbers(cls, v):
        # Floors and room numbers are identifiers ("2", "B1", "101A").
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class RoomCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    capacity: Optional[int] = None
    location: RoomLocation = Field(default_factory=RoomLocation)
    description: Optional[str] = None
    equipment: Optional[List[Any]] = None
    amenities: Optional[List[str]] = None
    type_specific: Optional[Dict[str, Any]] = None
    is_active: bool = True
    # Any further attribute name -> value pairs (e.g. maintenance_notes).
    attributes: Dict[str, Any] = Field(default_factory=dict)


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    capacity: Optional[int] = None
    location: Optional[RoomLocation] = None
    description: Optional[str] = None
    equipment: Optional[List[Any]] = None
    amenities: Optional[List[str]] = None
    type_specific: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None
    attributes: Optional[Dict[str, Any]] = None


class Room(BaseModel):
    """Room aggregate rebuilt from an entity row and its attribute values."""

    id: int
    name: str
    type: Optional[str] = None
    is_active: bool = True
    location: RoomLocation = Field(default_factory=RoomLocation)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def capacity(self) -> Optional[int]:
        return self.attributes.get("capacity")

    @property
    def description(self) -> Optional[str]:
        return self.attributes.get("description")

    @property
    def equipment(self) -> List[Any]:
        return self.attributes.get("equipment") or []

    @property
    def amenities(self) -> List[str]:
        return self.attributes.get("amenities") or []


class RoomFilters(BaseModel):
    search: Optional[str] = None
    type: Optional[str] = None
    building: Optional[str] = None
    capacity: Optional[int] = None  # minimum seats
    max_capacity: Optional[int] = None
    is_active: Union[bool, Literal["all"], None] = Field(default=None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("search", "type", "building", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class PaginatedRooms(BaseModel):
    items: List[Room]
    total: int
    page: int
    pages: int
    limit: int
