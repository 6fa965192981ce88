"""
Filtered, paginated queries over EAV entities.

Each attribute-level filter joins the value table through its own alias,
together with the attribute definition the value belongs to, so filters on
different attributes compose as independent joins. Predicates compare the
column named by the definition's ``data_type`` rather than a fixed one. The
count statement is built from the same joins and predicates as the list
statement, which keeps ``total`` consistent with the page contents.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import String, and_, cast, distinct, false, func, or_, select, text
from sqlalchemy.orm import aliased

from facilities.db import models, schemas
from facilities.db.types import VALUE_COLUMNS, DataType, coerce_value
from facilities.utils.settings import get_settings

logger = logging.getLogger(__name__)

ROOM_ENTITY_TYPE = "room"

# Attribute names backing each filter key.
TYPE_ATTRIBUTE = "room_type"
BUILDING_ATTRIBUTE = "building"
CAPACITY_ATTRIBUTE = "capacity"
SEARCHABLE_ATTRIBUTES: Tuple[str, ...] = ("building", "room_number", "room_type")

_ALL = "all"


@dataclass(frozen=True)
class ComposedQuery:
    count: Any
    items: Any
    page: int
    limit: int
    offset: int


def normalize_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp a 1-indexed page and a page size into their accepted ranges."""
    settings = get_settings()
    page = page if page and page > 0 else 1
    if limit is None or limit < 1:
        limit = settings.default_page_size
    return page, min(limit, settings.max_page_size)


def attribute_id_subquery(attribute_name: str):
    """``(SELECT attribute_id FROM eav_attributes WHERE attribute_name = :name LIMIT 1)``"""
    return (
        select(models.EavAttribute.attribute_id)
        .where(models.EavAttribute.attribute_name == attribute_name)
        .limit(1)
        .scalar_subquery()
    )


def typed_equals(value_alias, attribute_alias, value: Any):
    """Match ``value`` in whichever column the attribute's data type names.

    One branch per data type the value can be coerced to; a type the value
    cannot take (``"B1"`` as a number) cannot match and is left out.
    """
    branches = []
    for data_type, column in VALUE_COLUMNS.items():
        try:
            coerced = coerce_value(data_type, value)
        except ValueError:
            continue
        branches.append(
            and_(attribute_alias.data_type == data_type.value, getattr(value_alias, column) == coerced)
        )
    return or_(*branches) if branches else false()


def typed_contains(value_alias, attribute_alias, pattern: str):
    """Case-insensitive ``LIKE`` against the textual form of the typed column."""
    return or_(
        and_(attribute_alias.data_type == DataType.STRING.value, value_alias.value_string.ilike(pattern)),
        and_(attribute_alias.data_type == DataType.TEXT.value, value_alias.value_text.ilike(pattern)),
        and_(
            attribute_alias.data_type == DataType.NUMBER.value,
            cast(value_alias.value_number, String).ilike(pattern),
        ),
        and_(
            attribute_alias.data_type == DataType.DATE.value,
            cast(value_alias.value_date, String).ilike(pattern),
        ),
    )


class _JoinPlan:
    """Accumulates value-table joins and WHERE clauses against entity alias ``e``."""

    def __init__(self, entity_type: str):
        self.e = aliased(models.EavEntity, name="e")
        self.joins: List[Tuple[Any, Any, bool]] = []
        self.attribute_joins = 0
        self.conditions: List[Any] = [text("1=1"), self.e.entity_type == entity_type]

    def join_attribute(self, attribute_name: str, *, outer: bool = False):
        """Join the value of ``attribute_name`` (alias ``vN``) and its definition (``aN``)."""
        n = self.attribute_joins
        self.attribute_joins += 1
        value = aliased(models.EavValue, name=f"v{n}")
        attribute = aliased(models.EavAttribute, name=f"a{n}")
        self.joins.append(
            (
                value,
                and_(
                    value.entity_id == self.e.entity_id,
                    value.attribute_id == attribute_id_subquery(attribute_name),
                ),
                outer,
            )
        )
        self.joins.append((attribute, attribute.attribute_id == value.attribute_id, outer))
        return value, attribute

    def where(self, clause) -> None:
        self.conditions.append(clause)

    def apply(self, stmt):
        for alias, onclause, outer in self.joins:
            stmt = stmt.join(alias, onclause, isouter=outer)
        return stmt.where(and_(*self.conditions))


def _active_flag(value: Union[bool, str, None]) -> Optional[bool]:
    if value is None or value == _ALL:
        return None
    return bool(value)


def _strict_value(value: Optional[str]) -> Optional[str]:
    if value is None or value == _ALL:
        return None
    return value


def _build_plan(filters: schemas.RoomFilters, entity_type: str) -> _JoinPlan:
    plan = _JoinPlan(entity_type)
    e = plan.e

    active = _active_flag(filters.is_active)
    if active is not None:
        plan.where(e.is_active == active)

    if filters.search:
        pattern = f"%{filters.search}%"
        matches = [e.name.ilike(pattern)]
        for attribute_name in SEARCHABLE_ATTRIBUTES:
            v, a = plan.join_attribute(attribute_name, outer=True)
            matches.append(typed_contains(v, a, pattern))
        plan.where(or_(*matches))

    room_type = _strict_value(filters.type)
    if room_type is not None:
        v, a = plan.join_attribute(TYPE_ATTRIBUTE)
        plan.where(typed_equals(v, a, room_type))

    building = _strict_value(filters.building)
    if building is not None:
        v, a = plan.join_attribute(BUILDING_ATTRIBUTE)
        plan.where(typed_equals(v, a, building))

    if filters.capacity is not None or filters.max_capacity is not None:
        # Range filters only apply to numeric capacities.
        v, a = plan.join_attribute(CAPACITY_ATTRIBUTE)
        plan.where(a.data_type == DataType.NUMBER.value)
        if filters.capacity is not None:
            plan.where(v.value_number >= filters.capacity)
        if filters.max_capacity is not None:
            plan.where(v.value_number <= filters.max_capacity)

    return plan


def compose(
    filters: Union[schemas.RoomFilters, Dict[str, Any], None] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    entity_type: str = ROOM_ENTITY_TYPE,
) -> ComposedQuery:
    """Build the count and page statements for ``filters``.

    ``count`` yields ``COUNT(DISTINCT e.entity_id)``; ``items`` yields distinct
    entities newest first for the requested 1-indexed page.
    """
    if filters is None:
        filters = schemas.RoomFilters()
    elif not isinstance(filters, schemas.RoomFilters):
        filters = schemas.RoomFilters.model_validate(filters)

    page, limit = normalize_pagination(page, limit)
    offset = (page - 1) * limit
    plan = _build_plan(filters, entity_type)
    e = plan.e

    count_stmt = plan.apply(select(func.count(distinct(e.entity_id))).select_from(e))
    items_stmt = (
        plan.apply(select(e).distinct())
        .order_by(e.created_at.desc(), e.entity_id.desc())
        .limit(limit)
        .offset(offset)
    )
    logger.debug(
        f"Composed {entity_type} query with {plan.attribute_joins} attribute joins "
        f"(page={page}, limit={limit})"
    )
    return ComposedQuery(count=count_stmt, items=items_stmt, page=page, limit=limit, offset=offset)


def compose_unpaginated(
    filters: Union[schemas.RoomFilters, Dict[str, Any], None],
    entity_type: str = ROOM_ENTITY_TYPE,
):
    """Every matching entity, newest first, for single-predicate lookups."""
    if not isinstance(filters, schemas.RoomFilters):
        filters = schemas.RoomFilters.model_validate(filters or {})
    plan = _build_plan(filters, entity_type)
    e = plan.e
    return plan.apply(select(e).distinct()).order_by(e.created_at.desc(), e.entity_id.desc())


def compose_attribute_match(
    matches: Dict[str, Any],
    entity_type: str = ROOM_ENTITY_TYPE,
):
    """Entities whose attributes equal every ``name -> value`` in ``matches``, newest first."""
    plan = _JoinPlan(entity_type)
    e = plan.e
    for attribute_name, value in matches.items():
        v, a = plan.join_attribute(attribute_name)
        plan.where(typed_equals(v, a, value))
    return plan.apply(select(e).distinct()).order_by(e.created_at.desc(), e.entity_id.desc())
