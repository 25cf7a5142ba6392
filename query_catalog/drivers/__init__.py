"""
Driver Adapters

Modules:
    base: RowCursor contract used by NamedQuery
    dbapi: Adapter for PEP 249 (DB-API 2.0) cursors
"""

from query_catalog.drivers.base import RowCursor
from query_catalog.drivers.dbapi import DBAPICursor

__all__ = ["RowCursor", "DBAPICursor"]
