"""
NamedQuery

One stored SQL text plus at most one attached execution result (a statement
handle and a row cursor). Field reads are typed by a FieldType chosen by the
caller at each call.

Example:
    >>> query = catalog.get("users.by_id")
    >>> query.execute(connection, (42,))
    >>> while query.advance():
    ...     user_id = query.field(ByIndex(index=1), FieldType.INTEGER)
    ...     name = query.field(ByLabel(label="name"), FieldType.STRING)
    >>> query.close(True, True)

Failure policy:
    Driver failures while advancing or extracting are logged and turned into
    "no more rows" / None in LENIENT mode, and raised as DriverError in
    STRICT mode. Field references that do not name a valid column always
    raise BoundsError. close() never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from query_catalog.drivers.base import RowCursor
from query_catalog.drivers.dbapi import DBAPICursor
from query_catalog.errors import BoundsError, DriverError, QueryCatalogError
from query_catalog.types import (
    ByIndex,
    ByLabel,
    FieldRef,
    FieldType,
    Strictness,
    TypedValue,
    as_field_ref,
)

logger = logging.getLogger(__name__)

NO_COLUMNS = -1


class NamedQuery:
    """
    A named SQL text with optionally attached statement and cursor.

    Attributes:
        name: Registry key the query was loaded under (diagnostics only)
        strictness: Failure policy for cursor interaction

    Thread safety:
        Attached state is not locked. At most one consumer may drive a given
        NamedQuery at a time.
    """

    def __init__(
        self,
        text: str | None,
        name: str | None = None,
        strictness: Strictness | str = Strictness.LENIENT,
    ) -> None:
        self._text = text
        self.name = name
        self.strictness = Strictness(strictness)
        self._statement: Any = None
        self._cursor: RowCursor | None = None
        self._column_count = NO_COLUMNS

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def text(self) -> str | None:
        """The SQL text, exactly as read from its resource."""
        return self._text

    @property
    def statement(self) -> Any:
        return self._statement

    @property
    def cursor(self) -> RowCursor | None:
        return self._cursor

    @property
    def column_count(self) -> int:
        """Column count of the attached cursor, or -1 if none is valid."""
        return self._column_count

    def has_cursor(self) -> bool:
        return self._cursor is not None

    def has_statement(self) -> bool:
        return self._statement is not None

    def set_statement(self, statement: Any) -> None:
        """Attach a statement handle. The previous one is not released."""
        self._statement = statement

    def set_cursor(self, cursor: RowCursor | None) -> None:
        """
        Attach a cursor and recompute the column count from its metadata.

        A metadata failure leaves the column count at -1 so that every field
        read fails with BoundsError; it is logged, never raised.
        """
        self._cursor = cursor
        self._column_count = NO_COLUMNS
        if cursor is None:
            return
        try:
            self._column_count = cursor.column_count()
        except Exception as e:
            logger.error(f"Could not read column metadata for {self!r}: {e}")

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self, connection: Any, parameters: Any = None) -> "NamedQuery":
        """
        Run the SQL text on a DB-API connection and attach the result.

        Any currently attached cursor and statement are released first.
        Parameters are handed to the driver untouched.

        Args:
            connection: PEP 249 connection
            parameters: Driver-native parameters (sequence or mapping)

        Returns:
            self, for chaining

        Raises:
            QueryCatalogError: If the query has no text
            Exception: Whatever the driver raises from execute()
        """
        if self._text is None:
            raise QueryCatalogError(f"{self!r} has no SQL text to execute")

        self.close(True, True)

        statement = connection.cursor()
        try:
            if parameters is None:
                statement.execute(self._text)
            else:
                statement.execute(self._text, parameters)
        except Exception:
            statement.close()
            raise

        self.set_statement(statement)
        self.set_cursor(DBAPICursor(statement))
        return self

    def advance(self) -> bool:
        """
        Move the cursor to the next row.

        Returns:
            True if a new current row exists. In LENIENT mode any failure,
            including having no cursor attached, also returns False.

        Raises:
            DriverError: In STRICT mode, if the cursor fails or is missing
        """
        if self._cursor is None:
            return self._degrade("advance", RuntimeError("no cursor attached"), False, logging.DEBUG)
        try:
            return bool(self._cursor.advance())
        except Exception as e:
            return self._degrade("advance", e, False, logging.DEBUG)

    # -------------------------------------------------------------------------
    # Field Access
    # -------------------------------------------------------------------------

    def _resolve_label(self, ref: ByLabel) -> int | None:
        if self._cursor is None:
            logger.debug(f"Cannot resolve label [{ref.label}]: no cursor attached to {self!r}")
            return None
        try:
            return self._cursor.find_column(ref.label)
        except Exception as e:
            logger.debug(f"Label [{ref.label}] did not resolve on {self!r}: {e}")
            return None

    def _accessor(self, cursor: RowCursor, field_type: FieldType) -> Callable[[int], Any]:
        accessors: dict[FieldType, Callable[[int], Any]] = {
            FieldType.STRING: cursor.get_string,
            FieldType.ARRAY: cursor.get_array,
            FieldType.BOOLEAN: cursor.get_boolean,
            FieldType.INTEGER: cursor.get_integer,
            FieldType.OBJECT: cursor.get_object,
        }
        return accessors.get(field_type, cursor.get_object)

    def field(
        self,
        ref: FieldRef | str | int,
        field_type: FieldType | str = FieldType.OBJECT,
    ) -> Any:
        """
        Read one cell of the current row.

        Args:
            ref: ByLabel / ByIndex (a bare str or int is coerced)
            field_type: Accessor to use for extraction

        Returns:
            The extracted value. None for SQL NULL string/array/object cells,
            and in LENIENT mode for a failed extraction.

        Raises:
            BoundsError: If ref does not resolve to an ordinal in
                1..column_count
            DriverError: In STRICT mode, if extraction fails
        """
        valid_range = (1, self._column_count)

        try:
            ref = as_field_ref(ref)
        except (TypeError, ValueError) as e:
            logger.debug(f"Unusable field reference {ref!r}: {e}")
            raise BoundsError(repr(ref), valid_range, BoundsError.UNRESOLVED) from e

        field_type = FieldType(field_type)

        if isinstance(ref, ByLabel):
            ordinal = self._resolve_label(ref)
            if ordinal is None:
                raise BoundsError(ref.label, valid_range, BoundsError.UNRESOLVED)
        else:
            ordinal = ref.index

        cursor = self._cursor
        if cursor is None or ordinal < 1 or ordinal > self._column_count:
            raise BoundsError(ordinal, valid_range, BoundsError.OUT_OF_RANGE)

        try:
            return self._accessor(cursor, field_type)(ordinal)
        except Exception as e:
            return self._degrade(f"{field_type.value} read of column {ordinal}", e, None)

    def typed_field(
        self,
        ref: FieldRef | str | int,
        field_type: FieldType | str = FieldType.OBJECT,
    ) -> TypedValue:
        """Like field(), but pair the value with the type it was read as."""
        field_type = FieldType(field_type)
        value = self.field(ref, field_type)
        label = ref.label if isinstance(ref, ByLabel) else ref if isinstance(ref, str) else None
        return TypedValue(type=field_type, value=value, label=label)

    def row(self, types: Mapping[str | int, FieldType] | None = None) -> list[TypedValue]:
        """
        Read every column of the current row.

        Args:
            types: FieldType per column label or ordinal (default OBJECT)

        Returns:
            One TypedValue per column, in ordinal order. Empty when no
            cursor metadata is available.
        """
        types = types or {}
        if self._cursor is None or self._column_count < 1:
            return []

        try:
            labels: list[str | None] = list(self._cursor.column_labels())
        except Exception as e:
            logger.debug(f"Column labels unavailable on {self!r}: {e}")
            labels = [None] * self._column_count

        values = []
        for ordinal in range(1, self._column_count + 1):
            label = labels[ordinal - 1] if ordinal <= len(labels) else None
            field_type = FieldType(types.get(label, types.get(ordinal, FieldType.OBJECT)))
            value = self.field(ByIndex(index=ordinal), field_type)
            values.append(TypedValue(type=field_type, value=value, label=label))
        return values

    # -------------------------------------------------------------------------
    # Release
    # -------------------------------------------------------------------------

    def close(self, release_cursor: bool = True, release_statement: bool = True) -> None:
        """
        Release the attached cursor and/or its statement.

        The statement is closed before the cursor. Failures are logged and
        swallowed so close() is safe on already-closed resources. Without an
        attached cursor this is a no-op.
        """
        cursor = self._cursor
        if cursor is None:
            return

        if release_statement:
            statements = []
            try:
                statements.append(cursor.statement)
            except Exception as e:
                logger.warning(f"Could not reach statement of {self!r}: {e}")
            if self._statement is not None and all(s is not self._statement for s in statements):
                statements.append(self._statement)
            for statement in statements:
                if statement is None:
                    continue
                try:
                    statement.close()
                except Exception as e:
                    logger.warning(f"Failed to close statement of {self!r}: {e}")
            self._statement = None

        if release_cursor:
            try:
                cursor.close()
            except Exception as e:
                logger.warning(f"Failed to close cursor of {self!r}: {e}")
            self._cursor = None
            self._column_count = NO_COLUMNS

    def __enter__(self) -> "NamedQuery":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close(True, True)

    def __del__(self) -> None:
        cursor = getattr(self, "_cursor", None)
        statement = getattr(self, "_statement", None)
        if cursor is None and statement is None:
            return
        logger.warning(f"Garbage collector reached {self!r} with an attached cursor or statement; closing it")
        if cursor is not None:
            self.close(True, True)
            return
        # close() only acts through a cursor, so release a lone statement here
        try:
            statement.close()
        except Exception as e:
            logger.warning(f"Closing statement of {self!r} failed: {e}")
        self._statement = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _degrade(
        self,
        operation: str,
        error: BaseException,
        default: Any,
        level: int = logging.WARNING,
    ) -> Any:
        if self.strictness is Strictness.STRICT:
            raise DriverError(operation, error) from error
        logger.log(level, f"{operation} failed on {self!r}: {error}")
        return default

    def __repr__(self) -> str:
        return f"NamedQuery(name={self.name!r}, columns={self._column_count})"
