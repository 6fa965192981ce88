"""Typed attribute values used by the EAV persistence layer.

Every value row carries five nullable columns; the owning attribute's
``data_type`` names the single column that is meaningful. ``TypedValue`` is
the tagged union readers and writers pass around instead of guessing which
column is populated.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Mapping

MAX_STRING_LENGTH = 255


class DataType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"


VALUE_COLUMNS: Dict[DataType, str] = {
    DataType.STRING: "value_string",
    DataType.NUMBER: "value_number",
    DataType.TEXT: "value_text",
    DataType.BOOLEAN: "value_boolean",
    DataType.DATE: "value_date",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def as_data_type(value: DataType | str) -> DataType:
    if isinstance(value, DataType):
        return value
    try:
        return DataType(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Invalid data type: {value!r}") from None


def coerce_value(data_type: DataType | str, value: Any) -> Any:
    """Convert ``value`` into the storage type of the ``data_type`` column."""
    dtype = as_data_type(data_type)
    if value is None:
        return None

    if dtype in (DataType.STRING, DataType.TEXT):
        if isinstance(value, (list, dict)):
            text = json.dumps(value)
        elif isinstance(value, (date, datetime)):
            text = value.isoformat()
        else:
            text = str(value)
        if dtype is DataType.STRING and len(text) > MAX_STRING_LENGTH:
            raise ValueError(
                f"Value of {len(text)} characters exceeds the {MAX_STRING_LENGTH} character limit "
                "of a string attribute"
            )
        return text

    if dtype is DataType.NUMBER:
        if isinstance(value, bool):
            raise ValueError("Boolean values cannot be stored in a number attribute")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Cannot store {value!r} in a number attribute") from None

    if dtype is DataType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in _TRUE_STRINGS:
                return True
            if normalized in _FALSE_STRINGS:
                return False
        raise ValueError(f"Cannot store {value!r} in a boolean attribute")

    # DataType.DATE
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValueError(f"Cannot store {value!r} in a date attribute") from None
    raise ValueError(f"Cannot store {value!r} in a date attribute")


def infer_data_type(value: Any) -> DataType:
    """Pick a data type for a value whose attribute has no declared type."""
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, (int, float)):
        return DataType.NUMBER
    if isinstance(value, (date, datetime)):
        return DataType.DATE
    if isinstance(value, (list, dict)):
        return DataType.TEXT
    if isinstance(value, str) and len(value) > MAX_STRING_LENGTH:
        return DataType.TEXT
    return DataType.STRING


def normalize_number(value: Any) -> Any:
    """Return whole floats as ints; numbers come back from the store as floats."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class TypedValue:
    data_type: DataType
    value: Any

    @property
    def column(self) -> str:
        return VALUE_COLUMNS[self.data_type]

    @classmethod
    def of(cls, data_type: DataType | str, value: Any) -> "TypedValue":
        dtype = as_data_type(data_type)
        return cls(dtype, coerce_value(dtype, value))

    @classmethod
    def from_columns(cls, data_type: DataType | str, row: Any) -> "TypedValue":
        """Read the column named by ``data_type`` from a row or mapping."""
        dtype = as_data_type(data_type)
        column = VALUE_COLUMNS[dtype]
        if isinstance(row, Mapping):
            raw = row.get(column)
        else:
            raw = getattr(row, column, None)
        if dtype is DataType.NUMBER:
            raw = normalize_number(raw)
        return cls(dtype, raw)

    def as_columns(self) -> Dict[str, Any]:
        """All five value columns, with only the applicable one populated."""
        columns: Dict[str, Any] = {name: None for name in VALUE_COLUMNS.values()}
        columns[self.column] = self.value
        return columns
