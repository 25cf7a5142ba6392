"""
QueryCatalog

Registry of NamedQuery objects loaded from a mapping resource.

The catalog is built lazily: the first get() reads the mapping, reads every
referenced query resource and wraps each text in a NamedQuery. The build
runs exactly once per catalog, even under concurrent first access. After
the build the set of names never changes.

Example:
    >>> catalog = QueryCatalog(CatalogConfig(search_paths=["./sql"]))
    >>> query = catalog.get("users.by_id")
    >>> query.text
    'SELECT id, name FROM users WHERE id = ?\\n'

Process-wide access:
    >>> from query_catalog import get_query
    >>> get_query("users.by_id")  # builds default_catalog() on first use
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Iterator, Mapping

from query_catalog.config import CatalogConfig
from query_catalog.errors import NotFoundError, ResourceLoadError
from query_catalog.query.named_query import NamedQuery
from query_catalog.resources.loader import ResourceLoader
from query_catalog.resources.mapping import load_mapping, normalize_mapping_name

logger = logging.getLogger(__name__)


class QueryCatalog:
    """
    Name -> NamedQuery registry.

    Attributes:
        config: Configuration the catalog was created with
        loader: ResourceLoader used for the mapping and query resources

    Thread safety:
        build() is guarded by a lock; concurrent lookups after the build are
        safe. The NamedQuery objects themselves are not locked.
    """

    def __init__(
        self,
        config: CatalogConfig | None = None,
        loader: ResourceLoader | None = None,
    ) -> None:
        self.config = config or CatalogConfig()
        self.loader = loader or ResourceLoader.from_config(self.config)
        self._lock = threading.Lock()
        self._built = False
        self._queries: Mapping[str, NamedQuery] = MappingProxyType({})
        self._paths: Mapping[str, str] = MappingProxyType({})

    @property
    def config_resource(self) -> str:
        """Normalized name of the mapping resource."""
        return normalize_mapping_name(self.config.mapping_resource)

    @property
    def is_built(self) -> bool:
        return self._built

    def build(self) -> "QueryCatalog":
        """
        Load the mapping and every query it references.

        Calling build() again after a successful build does nothing.

        Returns:
            self

        Raises:
            ConfigLoadError: If the mapping resource cannot be loaded. The
                catalog stays unbuilt and the next call retries.
            ResourceLoadError: In STRICT mode, if a query resource cannot be
                read. In LENIENT mode the entry gets text None instead.
        """
        if self._built:
            return self

        with self._lock:
            if self._built:
                return self

            mapping = load_mapping(self.loader, self.config.mapping_resource)
            queries: dict[str, NamedQuery] = {}

            for name, path in mapping.items():
                text = self._read_query(name, path)
                queries[name] = NamedQuery(text, name=name, strictness=self.config.strictness)

            self._queries = MappingProxyType(queries)
            self._paths = MappingProxyType(dict(mapping))
            self._built = True

        logger.debug(f"Query catalog built from [{self.config_resource}]: {len(queries)} queries")
        return self

    def _read_query(self, name: str, path: str) -> str | None:
        try:
            return self.loader.read_text(path)
        except ResourceLoadError as e:
            if self.config.is_strict:
                raise
            logger.error(f"Query [{name}] will have no SQL text: {e}")
            return None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, name: str) -> NamedQuery:
        """
        Return the NamedQuery registered under name.

        Raises:
            NotFoundError: If no query is registered under name
            ConfigLoadError: If this call triggers the build and it fails
        """
        self.build()
        query = self._queries.get(name)
        if query is None:
            raise NotFoundError(name, self.config_resource)
        return query

    def names(self) -> frozenset[str]:
        self.build()
        return frozenset(self._queries)

    def resource_path(self, name: str) -> str:
        """Return the resource path name was mapped to."""
        self.build()
        if name not in self._paths:
            raise NotFoundError(name, self.config_resource)
        return self._paths[name]

    def __contains__(self, name: object) -> bool:
        self.build()
        return name in self._queries

    def __len__(self) -> int:
        self.build()
        return len(self._queries)

    def __iter__(self) -> Iterator[str]:
        self.build()
        return iter(sorted(self._queries))

    def __repr__(self) -> str:
        state = f"{len(self._queries)} queries" if self._built else "not built"
        return f"QueryCatalog({self.config_resource!r}, {state})"


# -----------------------------------------------------------------------------
# Process-wide default catalog
# -----------------------------------------------------------------------------

_default_catalog: QueryCatalog | None = None
_default_lock = threading.Lock()


def default_catalog(config: CatalogConfig | None = None) -> QueryCatalog:
    """
    Return the process-wide catalog, creating it on first use.

    config is only used by the call that creates the catalog.
    """
    global _default_catalog
    catalog = _default_catalog
    if catalog is not None:
        return catalog
    with _default_lock:
        if _default_catalog is None:
            _default_catalog = QueryCatalog(config)
        return _default_catalog


def reset_default_catalog() -> None:
    """Forget the process-wide catalog; the next access creates a new one."""
    global _default_catalog
    with _default_lock:
        _default_catalog = None


def get_query(name: str) -> NamedQuery:
    """Shortcut for default_catalog().get(name)."""
    return default_catalog().get(name)
