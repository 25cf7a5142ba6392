"""
Scoped result acquisition.

    with attached(catalog.get("users.all"), connection) as query:
        while query.advance():
            ...

The cursor and statement are released on every exit path.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from query_catalog.query.named_query import NamedQuery


@contextmanager
def attached(query: NamedQuery, connection: Any, parameters: Any = None) -> Iterator[NamedQuery]:
    """Execute query on connection and release its result on exit."""
    query.execute(connection, parameters)
    try:
        yield query
    finally:
        query.close(True, True)
