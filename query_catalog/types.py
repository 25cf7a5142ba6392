"""
Field Types and References

Models passed by callers when reading values out of an attached cursor.

Models:
    - FieldType: Which accessor to use when extracting a cell
    - ByLabel / ByIndex: Column identifier (label or 1-based ordinal)
    - TypedValue: A value paired with the FieldType it was read as
    - Strictness: How driver failures are reported
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Semantic type requested for a single cell read."""

    OBJECT = "object"  # Driver's native value, SQL NULL -> None
    STRING = "string"
    ARRAY = "array"
    BOOLEAN = "boolean"
    INTEGER = "integer"


class Strictness(str, Enum):
    """
    Failure policy for cursor interaction.

    LENIENT logs driver failures and substitutes a default (no more rows,
    absent value, absent query text). STRICT raises them as DriverError.
    """

    LENIENT = "lenient"
    STRICT = "strict"


class ByLabel(BaseModel):
    """Column referenced by its label, resolved through the cursor."""

    model_config = ConfigDict(frozen=True)

    label: str

    def __str__(self) -> str:
        return self.label


class ByIndex(BaseModel):
    """Column referenced by its 1-based ordinal."""

    model_config = ConfigDict(frozen=True, strict=True)

    index: int

    def __str__(self) -> str:
        return str(self.index)


FieldRef = Union[ByLabel, ByIndex]


def as_field_ref(ref: FieldRef | str | int) -> FieldRef:
    """
    Coerce a bare label or ordinal into a FieldRef.

    Raises:
        TypeError: If ref is neither a FieldRef, str nor int (bool is rejected)
    """
    if isinstance(ref, (ByLabel, ByIndex)):
        return ref
    if isinstance(ref, bool):
        raise TypeError("bool is not a valid field reference")
    if isinstance(ref, int):
        return ByIndex(index=ref)
    if isinstance(ref, str):
        return ByLabel(label=ref)
    raise TypeError(f"Unsupported field reference type: {type(ref).__name__}")


class TypedValue(BaseModel):
    """
    A cell value together with the type it was extracted as.

    Attributes:
        type: FieldType used for extraction
        value: Extracted value (None for SQL NULL or a degraded read)
        label: Column label when known
    """

    model_config = ConfigDict(frozen=True)

    type: FieldType
    value: Any = None
    label: str | None = Field(default=None)
