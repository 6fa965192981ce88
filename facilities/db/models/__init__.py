"""
SQLAlchemy models for the entity-attribute-value store.

Exposes `Base`, `now_utc`, and the three EAV tables: entities, attribute
definitions, and typed value rows.
"""

from .base import Base, now_utc  # re-export

from .eav import EavEntity, EavAttribute, EavValue

__all__ = [
    "Base",
    "now_utc",
    "EavEntity",
    "EavAttribute",
    "EavValue",
]
