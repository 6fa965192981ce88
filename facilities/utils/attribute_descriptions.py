"""Human readable descriptions for attribute definitions."""

from typing import Dict

_KNOWN_DESCRIPTIONS: Dict[str, str] = {
    "building": "Building where the room is located",
    "floor": "Floor level of the room",
    "room_number": "Room number identifier",
    "room_type": "Type of room (classroom, laboratory, lecture hall, etc.)",
    "capacity": "Maximum capacity of the room",
    "description": "Additional notes or description",
    "equipment": "List of equipment available",
    "amenities": "List of amenities available",
    "type_specific": "Type-specific attributes",
    "maintenance_notes": "Notes from the latest maintenance visit",
    "last_maintenance_date": "Date of the last maintenance visit",
    "next_maintenance_date": "Date of the next scheduled maintenance visit",
    "is_available": "Availability status",
}


def describe_attribute(attribute_name: str) -> str:
    """Return a description for ``attribute_name``.

    Known room attributes get a curated sentence; anything else is derived
    from the name itself (``maintenance_window`` -> ``Attribute: maintenance
    window``).
    """
    if attribute_name in _KNOWN_DESCRIPTIONS:
        return _KNOWN_DESCRIPTIONS[attribute_name]
    return f"Attribute: {attribute_name.replace('_', ' ')}"
