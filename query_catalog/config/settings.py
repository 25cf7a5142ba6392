"""
CatalogConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> catalog = QueryCatalog()

    >>> # Explicit configuration
    >>> config = CatalogConfig(
    ...     mapping_resource="sql/queries.toml",
    ...     search_paths=["./conf"],
    ...     strictness="strict",
    ... )
    >>> catalog = QueryCatalog(config)

    >>> # From config file
    >>> config = CatalogConfig.from_file("./catalog.toml")

Environment Variables:
    QUERY_CATALOG_MAPPING - Resource holding the name -> path mapping
    QUERY_CATALOG_PATH - Search directories, separated by os.pathsep
    QUERY_CATALOG_PACKAGE - Python package to search after the directories
    QUERY_CATALOG_ENCODING - Text encoding of query resources
    QUERY_CATALOG_STRICTNESS - "lenient" or "strict"
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, cast

from query_catalog.types import Strictness

# TOML support: tomllib is built-in for Python 3.11+, use tomli for 3.10
try:
    import tomllib

    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return cast(dict[str, Any], tomllib.load(f))

except ImportError:
    import tomli

    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return cast(dict[str, Any], tomli.load(f))


class CatalogConfig:
    """Configuration for QueryCatalog."""

    # === Mapping ===

    mapping_resource: str = "queries.properties"
    """Resource name of the query mapping (.properties, .toml, .yaml)"""

    # === Resource Lookup ===

    search_paths: list[str] = ["."]
    """Directories searched, in order, for the mapping and query resources"""

    resource_package: str | None = None
    """Importable package searched after search_paths (e.g. "myapp.sql")"""

    encoding: str = "utf-8"
    """Encoding used to decode query resources"""

    # === Failure Policy ===

    strictness: Strictness = Strictness.LENIENT
    """LENIENT logs and degrades driver failures, STRICT raises them"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option

        Raises:
            ValueError: On unknown options or an invalid strictness value
        """
        self.search_paths = list(type(self).search_paths)

        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

        self.strictness = Strictness(self.strictness)
        self.search_paths = [str(p) for p in self.search_paths]

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        if mapping := os.getenv("QUERY_CATALOG_MAPPING"):
            self.mapping_resource = mapping
        if paths := os.getenv("QUERY_CATALOG_PATH"):
            self.search_paths = [p for p in paths.split(os.pathsep) if p]
        if package := os.getenv("QUERY_CATALOG_PACKAGE"):
            self.resource_package = package
        if encoding := os.getenv("QUERY_CATALOG_ENCODING"):
            self.encoding = encoding
        if strictness := os.getenv("QUERY_CATALOG_STRICTNESS"):
            self.strictness = Strictness(strictness.lower())

    @property
    def is_strict(self) -> bool:
        return self.strictness is Strictness.STRICT

    @classmethod
    def from_file(cls, path: str | Path) -> "CatalogConfig":
        """
        Load configuration from TOML file.

        Nested sections are flattened. Relative search paths are resolved
        against the directory holding the config file.

        Example TOML:
            [catalog]
            mapping_resource = "queries.properties"
            strictness = "strict"

            [resources]
            search_paths = ["sql", "conf"]
            package = "myapp.sql"
            encoding = "utf-8"

        Args:
            path: Path to TOML configuration file

        Returns:
            CatalogConfig instance with values from file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        data = _load_toml(path)
        flat_config: dict[str, Any] = {}

        for key, value in data.get("catalog", {}).items():
            flat_config[key] = value

        for key, value in data.get("resources", {}).items():
            if key == "package":
                flat_config["resource_package"] = value
            else:
                flat_config[key] = value

        # Also support flat top-level keys
        for key, value in data.items():
            if not isinstance(value, dict):
                flat_config[key] = value

        if "search_paths" in flat_config:
            flat_config["search_paths"] = [
                str(p) if Path(p).is_absolute() else str(path.parent / p)
                for p in flat_config["search_paths"]
            ]

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "CatalogConfig":
        """Load configuration from environment variables only."""
        return cls()

    def with_overrides(self, **kwargs: Any) -> "CatalogConfig":
        """Return new config with specified overrides."""
        new_config = CatalogConfig.__new__(CatalogConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)) and key != "is_strict":
                setattr(new_config, key, getattr(self, key))
        new_config.search_paths = list(self.search_paths)
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        new_config.strictness = Strictness(new_config.strictness)
        return new_config

    def __repr__(self) -> str:
        return (
            f"CatalogConfig(mapping_resource={self.mapping_resource!r}, "
            f"search_paths={self.search_paths!r}, "
            f"resource_package={self.resource_package!r}, "
            f"strictness={self.strictness.value!r})"
        )
