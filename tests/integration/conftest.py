import pytest
from sqlalchemy.orm import Session

from facilities.db.repositories import rooms as repo_rooms


@pytest.fixture
def room_factory(db: Session):
    counter = {"n": 0}

    def _create(**overrides):
        counter["n"] += 1
        payload = {
            "type": "classroom",
            "capacity": 30,
            "location": {"building": "Main", "floor": "1", "room_number": str(100 + counter["n"])},
        }
        payload.update(overrides)
        return repo_rooms.create_room(db, payload)

    return _create
