"""
Abstract Row Cursor Interface

Defines the contract a NamedQuery needs from a tabular-data driver.
"""

from abc import ABC, abstractmethod
from typing import Any


class RowCursor(ABC):
    """
    Row-iteration handle over a tabular result.

    Ordinals are 1-based. A fresh cursor is positioned before the first row;
    the first call to advance() makes the first row current.

    Lifecycle:
        cursor = DBAPICursor(dbapi_cursor)
        while cursor.advance():
            cursor.get_string(1)
        cursor.statement.close()
        cursor.close()
    """

    @property
    @abstractmethod
    def statement(self) -> Any:
        """Return the statement handle that produced this cursor."""
        ...

    @abstractmethod
    def advance(self) -> bool:
        """Move to the next row. Return False when there are no more rows."""
        ...

    @abstractmethod
    def find_column(self, label: str) -> int:
        """Return the ordinal of the column with this label (LookupError if absent)."""
        ...

    @abstractmethod
    def column_count(self) -> int:
        """Return the number of columns described by the result metadata."""
        ...

    @abstractmethod
    def column_labels(self) -> list[str]:
        """Return column labels in ordinal order."""
        ...

    # -------------------------------------------------------------------------
    # Typed Accessors
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_string(self, ordinal: int) -> str | None:
        ...

    @abstractmethod
    def get_array(self, ordinal: int) -> list[Any] | None:
        ...

    @abstractmethod
    def get_boolean(self, ordinal: int) -> bool:
        ...

    @abstractmethod
    def get_integer(self, ordinal: int) -> int:
        ...

    @abstractmethod
    def get_object(self, ordinal: int) -> Any:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the cursor. Closing twice must be harmless."""
        ...
