"""
Attribute registry functions.

Resolves attribute names to stable ids, creating the definition on first
reference. Creation relies on the unique constraint on ``attribute_name``:
a writer that loses a concurrent insert race re-reads the winner's row.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from facilities.db import models
from facilities.db.types import DataType, as_data_type
from facilities.utils.attribute_descriptions import describe_attribute

logger = logging.getLogger(__name__)


def _normalize_name(attribute_name: str) -> str:
    name = (attribute_name or "").strip()
    if not name:
        raise ValueError("Attribute name must not be empty")
    return name


def get_attribute(db: Session, attribute_name: str) -> Optional[models.EavAttribute]:
    return (
        db.query(models.EavAttribute)
        .filter(models.EavAttribute.attribute_name == _normalize_name(attribute_name))
        .first()
    )


def resolve_attribute_definition(
    db: Session,
    attribute_name: str,
    data_type: DataType | str = DataType.STRING,
    description: Optional[str] = None,
) -> models.EavAttribute:
    """Return the definition for ``attribute_name``, creating it if needed.

    An existing definition is returned as stored; ``data_type`` only applies
    to newly created attributes.
    """
    name = _normalize_name(attribute_name)
    existing = get_attribute(db, name)
    if existing is not None:
        return existing

    dtype = as_data_type(data_type)
    attribute = models.EavAttribute(
        attribute_name=name,
        data_type=dtype.value,
        description=description or describe_attribute(name),
    )
    try:
        # Savepoint: a lost race must not roll back the caller's transaction.
        with db.begin_nested():
            db.add(attribute)
    except IntegrityError:
        logger.info(f"Attribute '{name}' was created concurrently; re-reading existing definition")
        existing = get_attribute(db, name)
        if existing is None:
            raise
        return existing

    logger.info(f"Registered attribute '{name}' ({dtype.value}) with id {attribute.attribute_id}")
    return attribute


def resolve_attribute(
    db: Session,
    attribute_name: str,
    data_type: DataType | str = DataType.STRING,
) -> int:
    """Get-or-create ``attribute_name`` and return its attribute id."""
    return resolve_attribute_definition(db, attribute_name, data_type).attribute_id
