"""
DB-API 2.0 Cursor Adapter

Wraps any PEP 249 cursor (sqlite3, duckdb, psycopg, ...) in the RowCursor
contract. The wrapped cursor doubles as the statement handle.

Accessor semantics:
    get_string   str(value); SQL NULL -> None
    get_integer  int(value); SQL NULL -> 0
    get_boolean  0/"0"/"false" -> False, 1/"1"/"true" -> True; SQL NULL -> False
    get_array    list(value) for list/tuple/set values; SQL NULL -> None
    get_object   the driver's value unchanged
"""

from __future__ import annotations

from typing import Any

from query_catalog.drivers.base import RowCursor

_TRUE_STRINGS = frozenset({"1", "true", "t", "yes", "y"})
_FALSE_STRINGS = frozenset({"0", "false", "f", "no", "n", ""})


class DBAPICursor(RowCursor):
    """
    RowCursor over a PEP 249 cursor that has already executed a query.

    Example:
        >>> stmt = connection.cursor()
        >>> stmt.execute("SELECT 1 AS id, 'Ann' AS name")
        >>> cursor = DBAPICursor(stmt)
        >>> cursor.advance()
        True
        >>> cursor.get_string(cursor.find_column("name"))
        'Ann'
    """

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self._row: tuple[Any, ...] | None = None
        self._exhausted = False
        self._closed = False

    @property
    def statement(self) -> Any:
        return self._cursor

    @property
    def closed(self) -> bool:
        return self._closed

    def _description(self) -> list[tuple[Any, ...]]:
        description = self._cursor.description
        if description is None:
            raise RuntimeError("Cursor has no result metadata (statement returned no rows)")
        return list(description)

    def column_count(self) -> int:
        return len(self._description())

    def column_labels(self) -> list[str]:
        return [str(column[0]) for column in self._description()]

    def find_column(self, label: str) -> int:
        """Case-insensitive label lookup; the first matching column wins."""
        wanted = label.lower()
        for ordinal, name in enumerate(self.column_labels(), start=1):
            if name.lower() == wanted:
                return ordinal
        raise LookupError(f"No column labelled [{label}]")

    def advance(self) -> bool:
        if self._closed:
            raise RuntimeError("Cursor is closed")
        if self._exhausted:
            return False
        row = self._cursor.fetchone()
        if row is None:
            self._row = None
            self._exhausted = True
            return False
        self._row = tuple(row)
        return True

    def _value(self, ordinal: int) -> Any:
        if self._closed:
            raise RuntimeError("Cursor is closed")
        if self._row is None:
            raise RuntimeError("No current row: call advance() first")
        if ordinal < 1 or ordinal > len(self._row):
            raise IndexError(f"Column ordinal {ordinal} out of range 1..{len(self._row)}")
        return self._row[ordinal - 1]

    # -------------------------------------------------------------------------
    # Typed Accessors
    # -------------------------------------------------------------------------

    def get_string(self, ordinal: int) -> str | None:
        value = self._value(ordinal)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def get_array(self, ordinal: int) -> list[Any] | None:
        value = self._value(ordinal)
        if value is None:
            return None
        if isinstance(value, (list, tuple, set, frozenset)):
            return list(value)
        raise TypeError(f"Column {ordinal} holds {type(value).__name__}, not an array")

    def get_boolean(self, ordinal: int) -> bool:
        value = self._value(ordinal)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        raise TypeError(f"Column {ordinal} value {value!r} is not convertible to boolean")

    def get_integer(self, ordinal: int) -> int:
        value = self._value(ordinal)
        if value is None:
            return 0
        if isinstance(value, str):
            return int(value.strip())
        return int(value)

    def get_object(self, ordinal: int) -> Any:
        return self._value(ordinal)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._row = None

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("exhausted" if self._exhausted else "open")
        return f"DBAPICursor({type(self._cursor).__name__}, {state})"
