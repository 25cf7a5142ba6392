"""
query_catalog - Named SQL Query Registry

Loads named SQL texts from resources listed in a mapping file, hands them out
by name, and gives typed, resource-scoped access to their results.

Example:
    >>> from query_catalog import QueryCatalog, FieldType, attached
    >>> catalog = QueryCatalog()
    >>> with attached(catalog.get("users.all"), connection) as query:
    ...     while query.advance():
    ...         print(query.field("name", FieldType.STRING))

Main Classes:
    QueryCatalog: Registry of named queries
    NamedQuery: SQL text plus attached statement/cursor
    CatalogConfig: Configuration management
"""

__version__ = "0.2.0"

_QUERY_EXPORTS = ("NamedQuery", "attached")
_TYPE_EXPORTS = ("FieldType", "ByLabel", "ByIndex", "TypedValue", "Strictness")
_ERROR_EXPORTS = (
    "QueryCatalogError",
    "ConfigLoadError",
    "ResourceLoadError",
    "NotFoundError",
    "BoundsError",
    "DriverError",
)
_CATALOG_EXPORTS = ("QueryCatalog", "default_catalog", "reset_default_catalog", "get_query")


# Public API - lazy imports so the CLI dependencies load only when used
def __getattr__(name: str):
    """Lazy import public API components."""

    if name in _CATALOG_EXPORTS:
        from query_catalog import catalog
        return getattr(catalog, name)

    if name in _QUERY_EXPORTS:
        from query_catalog import query
        return getattr(query, name)

    if name == "CatalogConfig":
        from query_catalog.config.settings import CatalogConfig
        return CatalogConfig

    if name in ("RowCursor", "DBAPICursor"):
        from query_catalog import drivers
        return getattr(drivers, name)

    if name in _TYPE_EXPORTS:
        from query_catalog import types
        return getattr(types, name)

    if name in _ERROR_EXPORTS:
        from query_catalog import errors
        return getattr(errors, name)

    raise AttributeError(f"module 'query_catalog' has no attribute {name!r}")


__all__ = [
    # Main classes
    "QueryCatalog",
    "NamedQuery",
    "CatalogConfig",

    # Catalog access
    "default_catalog",
    "reset_default_catalog",
    "get_query",
    "attached",

    # Drivers
    "RowCursor",
    "DBAPICursor",

    # Types
    "FieldType",
    "ByLabel",
    "ByIndex",
    "TypedValue",
    "Strictness",

    # Errors
    "QueryCatalogError",
    "ConfigLoadError",
    "ResourceLoadError",
    "NotFoundError",
    "BoundsError",
    "DriverError",

    # Version
    "__version__",
]
