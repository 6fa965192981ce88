"""Copy rooms from the legacy fixed-column ``rooms`` table into the EAV store."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
import time
from contextlib import suppress
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from facilities.db import database
from facilities.db.repositories import rooms as repo_rooms
from facilities.utils.settings import configure_logging


logger = logging.getLogger("facilities.scripts.migrate_rooms_to_eav")


# Access SessionLocal dynamically so test fixtures that rebind the
# sessionmaker are respected.
SessionLocal = lambda: database.SessionLocal()

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Legacy columns without a dedicated room field; copied as free-form attributes.
_EXTRA_COLUMNS = (
    "maintenance_schedule",
    "last_inspection_date",
    "accessibility",
    "booking_rules",
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate legacy rooms into the EAV tables")
    parser.add_argument(
        "--source-table",
        default="rooms",
        help="Legacy table to read rooms from (default: rooms)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be migrated without writing anything",
    )
    return parser.parse_args(argv)


def _as_list(value: Any) -> List[Any] | None:
    """Legacy list columns hold either a JSON array or a comma separated string."""
    if value is None:
        return None
    if isinstance(value, list):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    with suppress(ValueError):
        parsed = json.loads(raw)
        if isinstance(parsed, list):
            return parsed
    return [part.strip() for part in raw.split(",") if part.strip()]


def legacy_row_to_room(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Map one legacy ``rooms`` row onto a room create payload."""
    is_available = row.get("is_available")
    amenities = _as_list(row.get("features"))
    room: Dict[str, Any] = {
        "location": {
            "building": row.get("building_name") or row.get("building"),
            "floor": row.get("floor"),
            "room_number": row.get("room_number"),
        },
        "type": row.get("room_type"),
        "capacity": row.get("capacity"),
        "description": row.get("notes"),
        "equipment": _as_list(row.get("equipment_list")),
        "amenities": [str(item) for item in amenities] if amenities is not None else None,
        "is_active": True if is_available is None else bool(is_available),
        "attributes": {},
    }
    for column in _EXTRA_COLUMNS:
        value = row.get(column)
        if value is not None and value != "":
            room["attributes"][column] = value
    return room


def fetch_legacy_rooms(session, source_table: str) -> List[Dict[str, Any]]:
    if not _IDENTIFIER.match(source_table):
        raise ValueError(f"Invalid source table name: {source_table!r}")
    result = session.execute(text(f"SELECT * FROM {source_table} ORDER BY id"))
    return [dict(row) for row in result.mappings().all()]


def migrate(source_table: str, dry_run: bool) -> int:
    session = SessionLocal()
    try:
        run_started = time.perf_counter()
        legacy_rooms = fetch_legacy_rooms(session, source_table)
        logger.info(f"Found {len(legacy_rooms)} rooms in '{source_table}' (dry_run={dry_run})")

        migrated = skipped = failed = 0
        for row in legacy_rooms:
            payload = legacy_row_to_room(row)
            location = payload["location"]
            building, number = location["building"], location["room_number"]
            if building and number is not None:
                if repo_rooms.get_room_by_number(session, building, str(number)) is not None:
                    logger.info(f"Room already exists: {building} {number}")
                    skipped += 1
                    continue
            if dry_run:
                migrated += 1
                continue
            try:
                room = repo_rooms.create_room(session, payload)
            except Exception as e:
                logger.error(f"Error migrating legacy room {row.get('id')}: {e}")
                failed += 1
                continue
            logger.info(f"Migrated legacy room {row.get('id')} as room {room.id} ('{room.name}')")
            migrated += 1

        duration = time.perf_counter() - run_started
        verb = "Would migrate" if dry_run else "Migrated"
        print(f"{verb} {migrated} rooms; skipped {skipped} existing; failed {failed}.")
        logger.info(
            f"Room migration finished in {duration:.3f}s: "
            f"migrated={migrated} skipped={skipped} failed={failed}"
        )
        if failed:
            print(f"{failed} rooms could not be migrated; see the log for details.", file=sys.stderr)
            return 1
        return 0
    finally:
        session.close()


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    return migrate(source_table=args.source_table, dry_run=args.dry_run)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
