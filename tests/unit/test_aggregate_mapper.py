from datetime import datetime

from facilities.db import models
from facilities.db.aggregate_mapper import map_room
from facilities.db.repositories.values import ValueRow
from facilities.db.types import TypedValue


def _entity(**overrides):
    fields = {
        "entity_id": 7,
        "entity_type": "room",
        "name": "Science 101",
        "is_active": True,
        "created_at": datetime(2024, 1, 1, 9, 0),
        "updated_at": datetime(2024, 1, 2, 9, 0),
    }
    fields.update(overrides)
    return models.EavEntity(**fields)


def _row(name, data_type, value):
    return ValueRow(entity_id=7, attribute_name=name, value=TypedValue(data_type, value))


def test_routes_location_type_and_attributes():
    rows = [
        _row("building", "string", "Science"),
        _row("floor", "number", 2),
        _row("room_number", "string", "101"),
        _row("room_type", "string", "laboratory"),
        _row("capacity", "number", 30),
        _row("maintenance_notes", "text", "Filters replaced"),
    ]
    room = map_room(_entity(), rows)

    assert room.id == 7
    assert room.name == "Science 101"
    assert room.type == "laboratory"
    assert room.location.model_dump() == {"building": "Science", "floor": "2", "room_number": "101"}
    assert room.attributes == {"capacity": 30, "maintenance_notes": "Filters replaced"}
    assert room.capacity == 30


def test_decodes_json_attributes():
    rows = [
        _row("equipment", "text", '["projector", {"name": "hood", "count": 2}]'),
        _row("type_specific", "text", '{"fume_hoods": 2}'),
    ]
    room = map_room(_entity(), rows)

    assert room.equipment == ["projector", {"name": "hood", "count": 2}]
    assert room.attributes["type_specific"] == {"fume_hoods": 2}


def test_invalid_json_is_kept_as_raw_string():
    room = map_room(_entity(), [_row("amenities", "text", "wifi, whiteboard")])
    assert room.attributes["amenities"] == "wifi, whiteboard"


def test_json_shaped_free_text_is_not_decoded():
    room = map_room(_entity(), [_row("maintenance_notes", "text", '["not", "parsed"]')])
    assert room.attributes["maintenance_notes"] == '["not", "parsed"]'


def test_entity_without_values_maps_to_empty_aggregate():
    room = map_room(_entity(is_active=False), [])
    assert room.is_active is False
    assert room.type is None
    assert room.attributes == {}
    assert room.equipment == []
    assert room.location.building is None
