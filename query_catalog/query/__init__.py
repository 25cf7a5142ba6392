"""
Named Queries

Modules:
    named_query: NamedQuery (SQL text + attached statement/cursor)
    scope: attached() context manager for guaranteed release
"""

from query_catalog.query.named_query import NamedQuery
from query_catalog.query.scope import attached

__all__ = ["NamedQuery", "attached"]
