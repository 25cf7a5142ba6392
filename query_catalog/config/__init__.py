"""
Configuration System

Manages configuration for query_catalog with a layered approach.

Configuration Priority (highest to lowest):
    1. Programmatic (passed to CatalogConfig(), or read by CatalogConfig.from_file)
    2. Environment variables (QUERY_CATALOG_* prefix)
    3. Built-in defaults

Modules:
    settings: CatalogConfig class
"""

from query_catalog.config.settings import CatalogConfig

__all__ = ["CatalogConfig"]
