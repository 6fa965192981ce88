"""
Room repository functions.

Rooms are EAV entities of type ``room``: the entity row carries the name and
active flag, everything else (location, type, capacity, equipment, ...) lives
in typed attribute values. Each write runs in a single transaction so an
entity never becomes visible with only part of its attributes.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from facilities.db import models, schemas
from facilities.db.aggregate_mapper import map_room
from facilities.db.query_composer import (
    ROOM_ENTITY_TYPE,
    compose,
    compose_attribute_match,
    compose_unpaginated,
)
from facilities.db.repositories import attributes as repo_attributes
from facilities.db.repositories import values as repo_values
from facilities.db.types import (
    VALUE_COLUMNS,
    DataType,
    as_data_type,
    infer_data_type,
    normalize_number,
)

logger = logging.getLogger(__name__)

ROOM_TYPES = [
    "classroom",
    "laboratory",
    "lecture_hall",
    "computer_lab",
    "office",
    "conference_room",
]

_LOCATION_FIELDS = ("building", "floor", "room_number")
_JSON_FIELDS = ("equipment", "amenities", "type_specific")
# Names written from dedicated fields; free-form attributes may not reuse them.
_RESERVED_ATTRIBUTES = frozenset(
    {*_LOCATION_FIELDS, *_JSON_FIELDS, "room_type", "type", "capacity", "description"}
)

RoomInput = Union[schemas.RoomCreate, Dict[str, Any]]
RoomPatch = Union[schemas.RoomUpdate, Dict[str, Any]]


def _room_attributes(data: Dict[str, Any]) -> List[Tuple[str, DataType, Any]]:
    """Translate a dumped room payload into (attribute, data type, value) triples.

    Fields that are missing or None are dropped, so they are never written.
    """
    triples: List[Tuple[str, DataType, Any]] = []
    location = data.get("location") or {}
    for name in _LOCATION_FIELDS:
        triples.append((name, DataType.STRING, location.get(name)))
    triples.append(("room_type", DataType.STRING, data.get("type")))
    triples.append(("capacity", DataType.NUMBER, data.get("capacity")))
    triples.append(("description", DataType.TEXT, data.get("description")))
    for name in _JSON_FIELDS:
        value = data.get(name)
        triples.append((name, DataType.TEXT, json.dumps(value) if value is not None else None))

    for name, value in (data.get("attributes") or {}).items():
        if name in _RESERVED_ATTRIBUTES:
            raise ValueError(f"Attribute '{name}' must be set through its dedicated room field")
        if value is not None:
            triples.append((name, infer_data_type(value), value))

    return [triple for triple in triples if triple[2] is not None]


def _write_attributes(db: Session, entity_id: int, triples: Iterable[Tuple[str, DataType, Any]]) -> int:
    written = 0
    for name, data_type, value in triples:
        attribute = repo_attributes.resolve_attribute_definition(db, name, data_type)
        # The stored definition decides the column, not the caller's guess.
        if repo_values.put_value(db, entity_id, attribute.attribute_id, attribute.data_type, value):
            written += 1
    return written


def _get_entity(db: Session, room_id: int) -> Optional[models.EavEntity]:
    return (
        db.query(models.EavEntity)
        .filter(
            models.EavEntity.entity_id == room_id,
            models.EavEntity.entity_type == ROOM_ENTITY_TYPE,
        )
        .first()
    )


def _map_entities(db: Session, entities: List[models.EavEntity]) -> List[schemas.Room]:
    if not entities:
        return []
    values = repo_values.fetch_values(db, [e.entity_id for e in entities])
    return [map_room(e, values.get(e.entity_id, [])) for e in entities]


def _default_name(location: schemas.RoomLocation) -> str:
    name = " ".join(part for part in (location.building, location.room_number) if part)
    if not name:
        raise ValueError("A room needs a name or a building and room number")
    return name


def create_room(db: Session, room: RoomInput) -> schemas.Room:
    if not isinstance(room, schemas.RoomCreate):
        room = schemas.RoomCreate.model_validate(room)
    entity = models.EavEntity(
        entity_type=ROOM_ENTITY_TYPE,
        name=room.name or _default_name(room.location),
        is_active=room.is_active,
    )
    try:
        db.add(entity)
        db.flush()
        room_id = entity.entity_id
        written = _write_attributes(db, room_id, _room_attributes(room.model_dump()))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating room '{entity.name}': {e}")
        raise
    logger.info(f"Created room {room_id} ('{entity.name}') with {written} attributes")
    return get_room(db, room_id)


def get_room(db: Session, room_id: int) -> Optional[schemas.Room]:
    """Return the room aggregate, or None when no room has this id."""
    entity = _get_entity(db, room_id)
    if entity is None:
        return None
    values = repo_values.fetch_values(db, [room_id])
    return map_room(entity, values.get(room_id, []))


def update_room(db: Session, room_id: int, room: RoomPatch) -> Optional[schemas.Room]:
    """Apply a partial update; omitted or None fields keep their stored values."""
    if not isinstance(room, schemas.RoomUpdate):
        room = schemas.RoomUpdate.model_validate(room)
    entity = _get_entity(db, room_id)
    if entity is None:
        logger.warning(f"Room {room_id} not found for update.")
        return None

    update_data = room.model_dump(exclude_unset=True)
    try:
        if update_data.get("name") is not None:
            entity.name = update_data["name"]
        if update_data.get("is_active") is not None:
            entity.is_active = update_data["is_active"]
        entity.updated_at = models.now_utc()
        db.flush()
        written = _write_attributes(db, room_id, _room_attributes(update_data))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating room {room_id}: {e}")
        raise
    logger.info(f"Updated room {room_id} ({written} attributes written)")
    return get_room(db, room_id)


def clear_room_attributes(db: Session, room_id: int, attribute_names: Iterable[str]) -> Optional[schemas.Room]:
    """Delete the named attribute values of a room; unknown names are ignored."""
    entity = _get_entity(db, room_id)
    if entity is None:
        return None
    attribute_ids = []
    for name in attribute_names:
        attribute = repo_attributes.get_attribute(db, "room_type" if name == "type" else name)
        if attribute is not None:
            attribute_ids.append(attribute.attribute_id)
    try:
        removed = repo_values.delete_values(db, room_id, attribute_ids)
        entity.updated_at = models.now_utc()
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error clearing attributes of room {room_id}: {e}")
        raise
    logger.info(f"Cleared {removed} attribute values of room {room_id}")
    return get_room(db, room_id)


def delete_room(db: Session, room_id: int) -> bool:
    entity = _get_entity(db, room_id)
    if entity is None:
        return False
    try:
        db.delete(entity)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting room {room_id}: {e}")
        raise
    logger.info(f"Deleted room {room_id}")
    return True


def list_rooms(
    db: Session,
    filters: Union[schemas.RoomFilters, Dict[str, Any], None] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> schemas.PaginatedRooms:
    composed = compose(filters, page, limit)
    total = db.execute(composed.count).scalar_one()
    entities = list(db.execute(composed.items).scalars().all()) if total else []
    return schemas.PaginatedRooms(
        items=_map_entities(db, entities),
        total=total,
        page=composed.page,
        pages=math.ceil(total / composed.limit),
        limit=composed.limit,
    )


def search_rooms(db: Session, term: str) -> List[schemas.Room]:
    """Rooms whose name, building, room number or type contains ``term``."""
    term = (term or "").strip()
    if not term:
        return []
    entities = list(db.execute(compose_unpaginated({"search": term})).scalars().all())
    return _map_entities(db, entities)


def find_rooms_by_attribute_value(db: Session, attribute_name: str, value: Any) -> List[schemas.Room]:
    """Rooms whose ``attribute_name`` equals ``value``, compared in the attribute's own type."""
    if value is None:
        return []
    name = "room_type" if attribute_name == "type" else attribute_name
    entities = list(db.execute(compose_attribute_match({name: value})).scalars().all())
    return _map_entities(db, entities)


def get_rooms_by_building(db: Session, building: str) -> List[schemas.Room]:
    return find_rooms_by_attribute_value(db, "building", building)


def get_room_by_number(db: Session, building: str, room_number: str) -> Optional[schemas.Room]:
    """Find the room at ``building`` + ``room_number`` (duplicate check before create)."""
    stmt = compose_attribute_match({"building": building, "room_number": str(room_number)})
    entity = db.execute(stmt.limit(1)).scalars().first()
    if entity is None:
        return None
    return _map_entities(db, [entity])[0]


def get_available_buildings(db: Session) -> List[str]:
    attribute = repo_attributes.get_attribute(db, "building")
    if attribute is None:
        return []
    column = getattr(models.EavValue, VALUE_COLUMNS[as_data_type(attribute.data_type)])
    rows = (
        db.query(column)
        .join(models.EavEntity, models.EavValue.entity_id == models.EavEntity.entity_id)
        .filter(
            models.EavEntity.entity_type == ROOM_ENTITY_TYPE,
            models.EavValue.attribute_id == attribute.attribute_id,
            column.isnot(None),
        )
        .distinct()
        .all()
    )
    return sorted({str(normalize_number(row[0])) for row in rows})


def get_room_types() -> List[str]:
    return list(ROOM_TYPES)
