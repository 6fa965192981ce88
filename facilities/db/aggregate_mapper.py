"""
Fold an entity row and its value rows into a room aggregate.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, FrozenSet, Iterable

from facilities.db import models, schemas
from facilities.db.repositories.values import ValueRow
from facilities.db.types import DataType

logger = logging.getLogger(__name__)

# Attributes stored as JSON text by the room repository.
JSON_ATTRIBUTES: FrozenSet[str] = frozenset({"equipment", "amenities", "type_specific"})

LOCATION_ATTRIBUTES: Dict[str, str] = {
    "building": "building",
    "floor": "floor",
    "room_number": "room_number",
}
TYPE_ATTRIBUTES: FrozenSet[str] = frozenset({"room_type", "type"})


def _decode_json(attribute_name: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        logger.debug(f"Attribute '{attribute_name}' is not valid JSON; keeping raw string")
        return value


def _location_value(value: Any) -> Any:
    # Location parts are identifiers even when stored under a number attribute.
    if value is None or isinstance(value, str):
        return value
    return str(value)


def map_room(entity: models.EavEntity, value_rows: Iterable[ValueRow]) -> schemas.Room:
    location: Dict[str, Any] = {}
    room_type = None
    attributes: Dict[str, Any] = {}

    for row in value_rows:
        name = row.attribute_name
        value = row.value.value
        if name in JSON_ATTRIBUTES and row.data_type in (DataType.STRING, DataType.TEXT):
            value = _decode_json(name, value)

        if name in LOCATION_ATTRIBUTES:
            location[LOCATION_ATTRIBUTES[name]] = _location_value(value)
        elif name in TYPE_ATTRIBUTES:
            room_type = value
        else:
            attributes[name] = value

    return schemas.Room(
        id=entity.entity_id,
        name=entity.name,
        type=room_type,
        is_active=bool(entity.is_active),
        location=schemas.RoomLocation(**location),
        attributes=attributes,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
