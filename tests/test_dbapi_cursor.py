"""Tests for the DB-API 2.0 cursor adapter."""

import sqlite3

import duckdb
import pytest

from query_catalog.drivers import DBAPICursor


def _sqlite_cursor(sql, params=()):
    conn = sqlite3.connect(":memory:")
    stmt = conn.cursor()
    stmt.execute(sql, params)
    return DBAPICursor(stmt)


class TestMetadata:
    """Column metadata and label lookup."""

    def test_column_count_and_labels(self):
        cursor = _sqlite_cursor("SELECT 1 AS id, 'Ann' AS name")
        assert cursor.column_count() == 2
        assert cursor.column_labels() == ["id", "name"]

    def test_find_column_is_case_insensitive(self):
        cursor = _sqlite_cursor("SELECT 1 AS Id, 'Ann' AS Name")
        assert cursor.find_column("name") == 2
        assert cursor.find_column("ID") == 1

    def test_find_column_first_match_wins(self):
        cursor = _sqlite_cursor("SELECT 1 AS x, 2 AS x")
        assert cursor.find_column("x") == 1

    def test_unknown_label(self):
        cursor = _sqlite_cursor("SELECT 1 AS id")
        with pytest.raises(LookupError):
            cursor.find_column("missing")

    def test_no_result_set(self):
        """Statements without a result set have no metadata."""
        cursor = _sqlite_cursor("CREATE TABLE t (a INTEGER)")
        with pytest.raises(RuntimeError):
            cursor.column_count()

    def test_statement_is_wrapped_cursor(self):
        conn = sqlite3.connect(":memory:")
        stmt = conn.cursor()
        stmt.execute("SELECT 1")
        assert DBAPICursor(stmt).statement is stmt


class TestAdvance:
    """Row iteration."""

    def test_rows_then_exhausted(self):
        cursor = _sqlite_cursor("SELECT 1 UNION ALL SELECT 2")
        assert cursor.advance() is True
        assert cursor.get_integer(1) == 1
        assert cursor.advance() is True
        assert cursor.get_integer(1) == 2
        assert cursor.advance() is False
        assert cursor.advance() is False

    def test_read_before_advance(self):
        cursor = _sqlite_cursor("SELECT 1")
        with pytest.raises(RuntimeError):
            cursor.get_object(1)

    def test_read_after_exhaustion(self):
        cursor = _sqlite_cursor("SELECT 1")
        cursor.advance()
        cursor.advance()
        with pytest.raises(RuntimeError):
            cursor.get_object(1)

    def test_closed_cursor(self):
        cursor = _sqlite_cursor("SELECT 1")
        cursor.close()
        cursor.close()
        assert cursor.closed is True
        with pytest.raises(RuntimeError):
            cursor.advance()


class TestAccessors:
    """Typed accessor conversions."""

    @pytest.fixture
    def cursor(self):
        cursor = _sqlite_cursor(
            "SELECT 42 AS num, '7' AS digits, NULL AS absent, '1' AS flag_on, 'false' AS flag_off, 3.9 AS ratio"
        )
        cursor.advance()
        return cursor

    def test_get_string(self, cursor):
        assert cursor.get_string(1) == "42"
        assert cursor.get_string(3) is None

    def test_get_integer(self, cursor):
        assert cursor.get_integer(1) == 42
        assert cursor.get_integer(2) == 7
        assert cursor.get_integer(3) == 0
        assert cursor.get_integer(6) == 3

    def test_get_boolean(self, cursor):
        assert cursor.get_boolean(1) is True
        assert cursor.get_boolean(3) is False
        assert cursor.get_boolean(4) is True
        assert cursor.get_boolean(5) is False

    def test_get_boolean_rejects_text(self):
        cursor = _sqlite_cursor("SELECT 'maybe'")
        cursor.advance()
        with pytest.raises(TypeError):
            cursor.get_boolean(1)

    def test_get_object(self, cursor):
        assert cursor.get_object(1) == 42
        assert cursor.get_object(3) is None

    def test_get_array_rejects_scalar(self, cursor):
        with pytest.raises(TypeError):
            cursor.get_array(1)
        assert cursor.get_array(3) is None

    def test_ordinal_out_of_range(self, cursor):
        with pytest.raises(IndexError):
            cursor.get_object(7)


class TestDuckDB:
    """The adapter against DuckDB, which returns native list values."""

    def test_array_and_labels(self):
        conn = duckdb.connect()
        stmt = conn.cursor()
        stmt.execute("SELECT [1, 2, 3] AS xs, true AS flag, 'Ann' AS name")
        cursor = DBAPICursor(stmt)

        assert cursor.column_labels() == ["xs", "flag", "name"]
        assert cursor.advance() is True
        assert cursor.get_array(1) == [1, 2, 3]
        assert cursor.get_boolean(2) is True
        assert cursor.get_string(cursor.find_column("NAME")) == "Ann"
        assert cursor.advance() is False

        cursor.close()
        stmt.close()
        conn.close()
