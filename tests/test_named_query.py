"""Tests for NamedQuery cursor handling and typed field access."""

import logging
import sqlite3
from unittest.mock import MagicMock

import pytest

from query_catalog.drivers.base import RowCursor
from query_catalog.errors import BoundsError, DriverError, QueryCatalogError
from query_catalog.query import NamedQuery, attached
from query_catalog.types import ByIndex, ByLabel, FieldType, Strictness, TypedValue


class FakeCursor(RowCursor):
    """In-memory RowCursor with optional injected failures."""

    def __init__(self, columns, rows, fail_advance=False, fail_metadata=False, fail_get=False):
        self.columns = list(columns)
        self.rows = list(rows)
        self.position = -1
        self.fail_advance = fail_advance
        self.fail_metadata = fail_metadata
        self.fail_get = fail_get
        self.closed = False
        self._statement = MagicMock(name="statement")

    @property
    def statement(self):
        return self._statement

    def advance(self):
        if self.fail_advance:
            raise RuntimeError("connection reset")
        self.position += 1
        return self.position < len(self.rows)

    def find_column(self, label):
        try:
            return self.columns.index(label) + 1
        except ValueError:
            raise LookupError(label)

    def column_count(self):
        if self.fail_metadata:
            raise RuntimeError("metadata unavailable")
        return len(self.columns)

    def column_labels(self):
        return list(self.columns)

    def _value(self, ordinal):
        if self.fail_get:
            raise RuntimeError("read failed")
        return self.rows[self.position][ordinal - 1]

    def get_string(self, ordinal):
        value = self._value(ordinal)
        return None if value is None else str(value)

    def get_array(self, ordinal):
        return list(self._value(ordinal))

    def get_boolean(self, ordinal):
        return bool(self._value(ordinal))

    def get_integer(self, ordinal):
        return int(self._value(ordinal))

    def get_object(self, ordinal):
        return self._value(ordinal)

    def close(self):
        self.closed = True


@pytest.fixture
def ann_cursor():
    """Cursor over columns id, name with a single row (1, "Ann")."""
    return FakeCursor(["id", "name"], [(1, "Ann")])


@pytest.fixture
def query(ann_cursor):
    q = NamedQuery("SELECT id, name FROM people", name="people.all")
    q.set_cursor(ann_cursor)
    yield q
    q.close(True, True)


class TestNamedQueryState:
    """Tests for text and attached-handle bookkeeping."""

    def test_text_is_returned_unchanged(self):
        """text returns the stored SQL exactly."""
        sql = "SELECT *\n  FROM t -- trailing comment\n"
        assert NamedQuery(sql).text == sql

    def test_text_is_read_only(self):
        """text cannot be reassigned."""
        q = NamedQuery("SELECT 1")
        with pytest.raises(AttributeError):
            q.text = "SELECT 2"

    def test_fresh_query_has_nothing_attached(self):
        """A new query has no cursor, no statement and column count -1."""
        q = NamedQuery("SELECT 1")
        assert q.has_cursor() is False
        assert q.has_statement() is False
        assert q.column_count == -1

    def test_set_statement(self):
        """set_statement attaches the handle without touching the old one."""
        q = NamedQuery("SELECT 1")
        first, second = MagicMock(), MagicMock()
        q.set_statement(first)
        q.set_statement(second)
        assert q.has_statement() is True
        assert q.statement is second
        first.close.assert_not_called()

    def test_column_count_follows_cursor(self):
        """Replacing the cursor recomputes the column count."""
        q = NamedQuery("SELECT 1")
        q.set_cursor(FakeCursor(["a", "b", "c", "d"], []))
        assert q.column_count == 4
        q.set_cursor(FakeCursor(["a", "b"], []))
        assert q.column_count == 2

    def test_metadata_failure_sets_no_columns(self, caplog):
        """Unreadable metadata gives column count -1 and is logged."""
        q = NamedQuery("SELECT 1")
        q.set_cursor(FakeCursor(["a", "b"], []))
        with caplog.at_level(logging.ERROR):
            q.set_cursor(FakeCursor(["a"], [], fail_metadata=True))
        assert q.has_cursor() is True
        assert q.column_count == -1
        assert "column metadata" in caplog.text

    def test_detach_cursor(self):
        """set_cursor(None) detaches and invalidates the column count."""
        q = NamedQuery("SELECT 1")
        q.set_cursor(FakeCursor(["a"], []))
        q.set_cursor(None)
        assert q.has_cursor() is False
        assert q.column_count == -1


class TestAdvance:
    """Tests for NamedQuery.advance()."""

    def test_single_row(self, query):
        """advance() is True once, then False."""
        assert query.advance() is True
        assert query.advance() is False

    def test_failure_is_no_more_rows(self, caplog):
        """A failing cursor reads as exhausted in lenient mode."""
        q = NamedQuery("SELECT 1")
        q.set_cursor(FakeCursor(["a"], [(1,)], fail_advance=True))
        with caplog.at_level(logging.DEBUG, logger="query_catalog.query.named_query"):
            assert q.advance() is False
        records = [r for r in caplog.records if "connection reset" in r.getMessage()]
        assert [r.levelno for r in records] == [logging.DEBUG]

    def test_no_cursor_is_no_more_rows(self):
        """Advancing without a cursor returns False in lenient mode."""
        assert NamedQuery("SELECT 1").advance() is False

    def test_strict_failure_raises(self):
        """Strict mode surfaces cursor failures as DriverError."""
        q = NamedQuery("SELECT 1", strictness=Strictness.STRICT)
        q.set_cursor(FakeCursor(["a"], [(1,)], fail_advance=True))
        with pytest.raises(DriverError) as exc_info:
            q.advance()
        assert exc_info.value.operation == "advance"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_strict_without_cursor_raises(self):
        q = NamedQuery("SELECT 1", strictness="strict")
        with pytest.raises(DriverError):
            q.advance()


class TestField:
    """Tests for NamedQuery.field()."""

    def test_by_index_integer(self, query):
        query.advance()
        assert query.field(ByIndex(index=1), FieldType.INTEGER) == 1

    def test_by_label_string(self, query):
        query.advance()
        assert query.field(ByLabel(label="name"), FieldType.STRING) == "Ann"

    def test_bare_references_are_coerced(self, query):
        """Plain int and str work as ByIndex and ByLabel."""
        query.advance()
        assert query.field(2, FieldType.STRING) == "Ann"
        assert query.field("id", "integer") == 1

    def test_default_type_is_object(self, query):
        query.advance()
        assert query.field(ByIndex(index=1)) == 1

    def test_index_past_end(self, query):
        """An ordinal past the last column raises BoundsError."""
        query.advance()
        with pytest.raises(BoundsError) as exc_info:
            query.field(ByIndex(index=3), FieldType.STRING)
        assert exc_info.value.attempted == 3
        assert exc_info.value.valid_range == (1, 2)
        assert exc_info.value.reason == BoundsError.OUT_OF_RANGE

    @pytest.mark.parametrize("attach", [True, False])
    def test_index_zero_always_fails(self, ann_cursor, attach):
        """Ordinal 0 is out of range with or without a cursor."""
        q = NamedQuery("SELECT 1")
        if attach:
            q.set_cursor(ann_cursor)
            q.advance()
        with pytest.raises(BoundsError):
            q.field(ByIndex(index=0), FieldType.OBJECT)
        q.close()

    def test_unknown_label(self, query):
        """A label the cursor cannot find is reported as unresolved."""
        query.advance()
        with pytest.raises(BoundsError) as exc_info:
            query.field(ByLabel(label="missing"), FieldType.STRING)
        assert exc_info.value.attempted == "missing"
        assert exc_info.value.reason == BoundsError.UNRESOLVED

    def test_label_without_cursor(self):
        with pytest.raises(BoundsError) as exc_info:
            NamedQuery("SELECT 1").field("id")
        assert exc_info.value.reason == BoundsError.UNRESOLVED
        assert exc_info.value.valid_range == (1, -1)

    def test_wrong_reference_kind(self, query):
        """Unsupported reference types fail like an unresolved field."""
        query.advance()
        with pytest.raises(BoundsError):
            query.field(1.5)
        with pytest.raises(BoundsError):
            query.field(True)

    def test_bounds_error_is_index_error(self, query):
        with pytest.raises(IndexError):
            query.field(99)

    def test_extraction_failure_returns_none(self, caplog):
        """A failing accessor yields None in lenient mode."""
        q = NamedQuery("SELECT 1")
        q.set_cursor(FakeCursor(["a"], [(1,)], fail_get=True))
        q.advance()
        with caplog.at_level(logging.WARNING):
            assert q.field(1, FieldType.INTEGER) is None
        assert "read failed" in caplog.text
        q.close()

    def test_extraction_failure_strict(self):
        q = NamedQuery("SELECT 1", strictness=Strictness.STRICT)
        q.set_cursor(FakeCursor(["a"], [(1,)], fail_get=True))
        q.advance()
        with pytest.raises(DriverError):
            q.field(1, FieldType.INTEGER)
        q.close()

    def test_each_type_uses_its_accessor(self):
        """Every FieldType dispatches to the matching accessor."""
        cursor = MagicMock(spec=RowCursor)
        cursor.column_count.return_value = 1
        cursor.get_string.return_value = "s"
        cursor.get_array.return_value = [1, 2]
        cursor.get_boolean.return_value = True
        cursor.get_integer.return_value = 7
        cursor.get_object.return_value = object()
        q = NamedQuery("SELECT 1")
        q.set_cursor(cursor)

        assert q.field(1, FieldType.STRING) == "s"
        assert q.field(1, FieldType.ARRAY) == [1, 2]
        assert q.field(1, FieldType.BOOLEAN) is True
        assert q.field(1, FieldType.INTEGER) == 7
        assert q.field(1, FieldType.OBJECT) is cursor.get_object.return_value
        cursor.get_string.assert_called_once_with(1)
        q.set_cursor(None)

    def test_typed_field(self, query):
        query.advance()
        value = query.typed_field("name", FieldType.STRING)
        assert value == TypedValue(type=FieldType.STRING, value="Ann", label="name")

    def test_row(self, query):
        """row() reads all columns with per-column types."""
        query.advance()
        cells = query.row({"id": FieldType.STRING})
        assert [c.label for c in cells] == ["id", "name"]
        assert [c.value for c in cells] == ["1", "Ann"]
        assert cells[0].type == FieldType.STRING
        assert cells[1].type == FieldType.OBJECT

    def test_row_without_cursor(self):
        assert NamedQuery("SELECT 1").row() == []


class TestClose:
    """Tests for NamedQuery.close() and scoped release."""

    def test_close_without_cursor_is_noop(self):
        """close() with nothing attached neither raises nor changes state."""
        q = NamedQuery("SELECT 1")
        statement = MagicMock()
        q.set_statement(statement)
        q.close(True, True)
        statement.close.assert_not_called()
        assert q.has_statement() is True
        q.set_statement(None)

    def test_close_releases_statement_then_cursor(self, ann_cursor):
        order = []
        ann_cursor.statement.close.side_effect = lambda: order.append("statement")
        ann_cursor.close = lambda: order.append("cursor")
        q = NamedQuery("SELECT 1")
        q.set_statement(ann_cursor.statement)
        q.set_cursor(ann_cursor)

        q.close(True, True)

        assert order == ["statement", "cursor"]
        assert q.has_cursor() is False
        assert q.has_statement() is False
        assert q.column_count == -1

    def test_close_cursor_only(self, ann_cursor):
        q = NamedQuery("SELECT 1")
        q.set_cursor(ann_cursor)
        q.close(release_cursor=True, release_statement=False)
        assert ann_cursor.closed is True
        ann_cursor.statement.close.assert_not_called()

    def test_close_statement_only(self, ann_cursor):
        q = NamedQuery("SELECT 1")
        q.set_cursor(ann_cursor)
        q.close(release_cursor=False, release_statement=True)
        ann_cursor.statement.close.assert_called_once()
        assert ann_cursor.closed is False
        assert q.has_cursor() is True
        q.close()

    def test_close_swallows_failures(self, ann_cursor, caplog):
        """Release failures are logged, never raised, even in strict mode."""
        ann_cursor.statement.close.side_effect = RuntimeError("already closed")
        q = NamedQuery("SELECT 1", strictness=Strictness.STRICT)
        q.set_cursor(ann_cursor)
        with caplog.at_level(logging.WARNING):
            q.close(True, True)
        assert ann_cursor.closed is True
        assert "already closed" in caplog.text

    def test_close_twice(self, ann_cursor):
        q = NamedQuery("SELECT 1")
        q.set_cursor(ann_cursor)
        q.close()
        q.close()

    def test_context_manager_closes(self, ann_cursor):
        q = NamedQuery("SELECT 1")
        with q:
            q.set_cursor(ann_cursor)
        assert ann_cursor.closed is True
        assert q.has_cursor() is False

    def test_finalizer_closes_and_warns(self, caplog):
        """An unreachable query with a cursor logs a diagnostic and closes it."""
        cursor = FakeCursor(["a"], [])
        q = NamedQuery("SELECT 1", name="leaky")
        q.set_cursor(cursor)
        with caplog.at_level(logging.WARNING):
            q.__del__()
        assert cursor.closed is True
        assert "leaky" in caplog.text

    def test_finalizer_releases_lone_statement(self, caplog):
        """A statement attached without a cursor is still reported and closed."""
        statement = MagicMock()
        q = NamedQuery("SELECT 1", name="stmt-only")
        q.set_statement(statement)
        with caplog.at_level(logging.WARNING):
            q.__del__()
        statement.close.assert_called_once()
        assert q.has_statement() is False
        assert "stmt-only" in caplog.text


class TestExecute:
    """Tests for executing against a real DB-API connection."""

    @pytest.fixture
    def connection(self):
        conn = sqlite3.connect(":memory:")
        conn.execute("CREATE TABLE people (id INTEGER, name TEXT)")
        conn.executemany("INSERT INTO people VALUES (?, ?)", [(1, "Ann"), (2, "Bo")])
        yield conn
        conn.close()

    def test_execute_attaches_statement_and_cursor(self, connection):
        q = NamedQuery("SELECT id, name FROM people ORDER BY id")
        q.execute(connection)
        assert q.has_statement() is True
        assert q.has_cursor() is True
        assert q.column_count == 2

        names = []
        while q.advance():
            names.append(q.field("name", FieldType.STRING))
        assert names == ["Ann", "Bo"]
        q.close()

    def test_execute_passes_parameters(self, connection):
        q = NamedQuery("SELECT name FROM people WHERE id = ?")
        q.execute(connection, (2,))
        assert q.advance() is True
        assert q.field(1, FieldType.STRING) == "Bo"
        q.close()

    def test_re_execute_releases_previous_result(self, connection):
        q = NamedQuery("SELECT id FROM people")
        q.execute(connection)
        first = q.cursor
        q.execute(connection)
        assert first.closed is True
        assert q.cursor is not first
        q.close()

    def test_execute_without_text(self, connection):
        with pytest.raises(QueryCatalogError):
            NamedQuery(None, name="broken").execute(connection)

    def test_driver_error_propagates(self, connection):
        q = NamedQuery("SELECT nope FROM nowhere")
        with pytest.raises(sqlite3.OperationalError):
            q.execute(connection)
        assert q.has_cursor() is False

    def test_attached_releases_on_error(self, connection):
        """attached() closes the result even when the body raises."""
        q = NamedQuery("SELECT id FROM people")
        with pytest.raises(ValueError):
            with attached(q, connection) as active:
                assert active is q
                assert q.advance() is True
                raise ValueError("boom")
        assert q.has_cursor() is False
        assert q.has_statement() is False
