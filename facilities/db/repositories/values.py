"""
Value store functions.

One typed value row per (entity, attribute) pair. Writes are upserts that
overwrite every typed column, so a row never carries a stale value in a
column its attribute no longer uses.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from sqlalchemy import delete
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

from facilities.db import models
from facilities.db.types import DataType, TypedValue, as_data_type

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ["entity_id", "attribute_id"]


@dataclass(frozen=True)
class ValueRow:
    """One attribute value of an entity, as read back from the store."""

    entity_id: int
    attribute_name: str
    value: TypedValue

    @property
    def data_type(self) -> DataType:
        return self.value.data_type


def _upsert_statement(db: Session, entity_id: int, attribute_id: int, columns: Dict[str, Any]):
    dialect = db.get_bind().dialect.name
    row = {"entity_id": entity_id, "attribute_id": attribute_id, **columns}
    if dialect == "postgresql":
        stmt = postgresql.insert(models.EavValue).values(**row)
        return stmt.on_conflict_do_update(index_elements=_CONFLICT_KEYS, set_=columns)
    if dialect == "sqlite":
        stmt = sqlite.insert(models.EavValue).values(**row)
        return stmt.on_conflict_do_update(index_elements=_CONFLICT_KEYS, set_=columns)
    if dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(models.EavValue).values(**row)
        return stmt.on_duplicate_key_update(**columns)
    return None


def put_value(
    db: Session,
    entity_id: int,
    attribute_id: int,
    data_type: DataType | str,
    value: Any,
) -> bool:
    """Write ``value`` for the pair; ``None`` is skipped and leaves the row untouched.

    Returns True when a row was written. Does not commit.
    """
    if value is None:
        return False

    typed = TypedValue.of(as_data_type(data_type), value)
    columns = typed.as_columns()

    stmt = _upsert_statement(db, entity_id, attribute_id, columns)
    if stmt is not None:
        db.execute(stmt)
        return True

    existing = (
        db.query(models.EavValue)
        .filter(
            models.EavValue.entity_id == entity_id,
            models.EavValue.attribute_id == attribute_id,
        )
        .first()
    )
    if existing is None:
        db.add(models.EavValue(entity_id=entity_id, attribute_id=attribute_id, **columns))
    else:
        for key, column_value in columns.items():
            setattr(existing, key, column_value)
    db.flush()
    return True


def delete_values(db: Session, entity_id: int, attribute_ids: Iterable[int]) -> int:
    """Remove the value rows of ``entity_id`` for ``attribute_ids``. Does not commit."""
    ids = list(attribute_ids)
    if not ids:
        return 0
    result = db.execute(
        delete(models.EavValue).where(
            models.EavValue.entity_id == entity_id,
            models.EavValue.attribute_id.in_(ids),
        )
    )
    return result.rowcount or 0


def fetch_values(db: Session, entity_ids: Iterable[int]) -> Dict[int, List[ValueRow]]:
    """Load every value row of ``entity_ids`` in one query, grouped by entity id."""
    ids = list(dict.fromkeys(entity_ids))
    grouped: Dict[int, List[ValueRow]] = defaultdict(list)
    if not ids:
        return grouped

    rows = (
        db.query(
            models.EavValue.entity_id,
            models.EavAttribute.attribute_name,
            models.EavAttribute.data_type,
            models.EavValue.value_string,
            models.EavValue.value_number,
            models.EavValue.value_text,
            models.EavValue.value_boolean,
            models.EavValue.value_date,
        )
        .join(models.EavAttribute, models.EavValue.attribute_id == models.EavAttribute.attribute_id)
        .filter(models.EavValue.entity_id.in_(ids))
        .order_by(models.EavValue.entity_id, models.EavValue.value_id)
        .all()
    )
    for row in rows:
        grouped[row.entity_id].append(
            ValueRow(
                entity_id=row.entity_id,
                attribute_name=row.attribute_name,
                value=TypedValue.from_columns(row.data_type, row._mapping),
            )
        )
    logger.debug(f"Fetched {len(rows)} value rows for {len(ids)} entities")
    return grouped
