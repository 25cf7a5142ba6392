"""
Resource Access

Modules:
    loader: ResourceLoader (search paths + package resources)
    mapping: Readers for the query name -> resource path mapping
"""

from query_catalog.resources.loader import ResourceLoader
from query_catalog.resources.mapping import (
    load_mapping,
    normalize_mapping_name,
    parse_properties,
    parse_toml,
    parse_yaml,
)

__all__ = [
    "ResourceLoader",
    "load_mapping",
    "normalize_mapping_name",
    "parse_properties",
    "parse_toml",
    "parse_yaml",
]
