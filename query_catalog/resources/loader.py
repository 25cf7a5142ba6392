"""
Resource Loader

Resolves classpath-like resource names against a list of directories and,
optionally, an importable package.

Resolution order for a name such as "sql/users_by_id.sql":
    1. The name itself, if it is an absolute path to an existing file
    2. Each search path directory, in order (a leading "/" is ignored)
    3. Files shipped inside resource_package (importlib.resources)
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Iterable

from query_catalog.errors import ResourceLoadError

logger = logging.getLogger(__name__)


class ResourceLoader:
    """
    Reads text resources by name.

    Attributes:
        search_paths: Directories tried in order
        package: Dotted package name tried after the directories
        encoding: Text encoding for decoded resources
    """

    def __init__(
        self,
        search_paths: Iterable[str | Path] = (".",),
        package: str | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self.search_paths = [Path(p) for p in search_paths]
        self.package = package
        self.encoding = encoding

    @classmethod
    def from_config(cls, config) -> "ResourceLoader":
        """Build a loader from a CatalogConfig."""
        return cls(
            search_paths=config.search_paths,
            package=config.resource_package,
            encoding=config.encoding,
        )

    def locate(self, name: str) -> Path | None:
        """Return the filesystem path a name resolves to, if any."""
        candidate = Path(name)
        if candidate.is_absolute() and candidate.is_file():
            return candidate

        relative = name.lstrip("/")
        for directory in self.search_paths:
            path = directory / relative
            if path.is_file():
                return path
        return None

    def read_text(self, name: str) -> str:
        """
        Read the full content of a resource.

        Args:
            name: Resource name, relative to the search paths

        Returns:
            Decoded resource content, unmodified

        Raises:
            ResourceLoadError: If the resource cannot be found or decoded
        """
        if not name:
            raise ResourceLoadError(repr(name), "empty resource name")

        try:
            path = self.locate(name)
            if path is not None:
                logger.debug(f"Reading resource [{name}] from {path}")
                return path.read_text(encoding=self.encoding)

            if self.package:
                packaged = resources.files(self.package).joinpath(name.lstrip("/"))
                if packaged.is_file():
                    logger.debug(f"Reading resource [{name}] from package {self.package}")
                    return packaged.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError, ModuleNotFoundError) as e:
            raise ResourceLoadError(name, str(e)) from e

        searched = ", ".join(str(p) for p in self.search_paths) or "<none>"
        if self.package:
            searched += f", package {self.package}"
        raise ResourceLoadError(name, f"not found (searched: {searched})")

    def __repr__(self) -> str:
        return (
            f"ResourceLoader(search_paths={[str(p) for p in self.search_paths]!r}, "
            f"package={self.package!r})"
        )
