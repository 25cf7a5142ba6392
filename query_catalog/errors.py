"""
Error Taxonomy

    QueryCatalogError
    ├── ConfigLoadError     mapping resource unreadable (fatal for the catalog)
    ├── ResourceLoadError   a single query resource unreadable
    ├── NotFoundError       unknown query name (also a LookupError)
    ├── BoundsError         unresolved or out-of-range field (also an IndexError)
    └── DriverError         driver failure surfaced in strict mode
"""

from __future__ import annotations


class QueryCatalogError(Exception):
    """Base class for all errors raised by query_catalog."""


class ConfigLoadError(QueryCatalogError):
    """The query mapping resource could not be loaded or parsed."""

    def __init__(self, resource: str, reason: str | None = None) -> None:
        self.resource = resource
        self.reason = reason
        message = f"Could not load query mapping [{resource}]"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ResourceLoadError(QueryCatalogError):
    """A query text resource could not be read."""

    def __init__(self, resource: str, reason: str | None = None) -> None:
        self.resource = resource
        self.reason = reason
        message = f"Could not read resource [{resource}]"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NotFoundError(QueryCatalogError, LookupError):
    """No query is registered under the requested name."""

    def __init__(self, name: str, config_resource: str) -> None:
        self.name = name
        self.config_resource = config_resource
        super().__init__(
            f"Query not found: [{name}]. "
            f"Check if such key is defined in {config_resource}."
        )


class BoundsError(QueryCatalogError, IndexError):
    """
    A field reference did not resolve to a valid column.

    Attributes:
        attempted: The label or ordinal the caller asked for
        valid_range: Inclusive (first, last) ordinals; (1, -1) when no cursor
        reason: "unresolved" if the reference never became an ordinal,
            "out_of_range" if it did but fell outside valid_range
    """

    UNRESOLVED = "unresolved"
    OUT_OF_RANGE = "out_of_range"

    def __init__(
        self,
        attempted: int | str,
        valid_range: tuple[int, int],
        reason: str = OUT_OF_RANGE,
    ) -> None:
        self.attempted = attempted
        self.valid_range = valid_range
        self.reason = reason
        first, last = valid_range
        if reason == self.UNRESOLVED:
            message = f"Field [{attempted}] could not be resolved to a column"
        else:
            message = f"The provided index [{attempted}] is less than {first} or greater than {last}"
        super().__init__(f"{message} (the column count is {last}).")


class DriverError(QueryCatalogError):
    """A cursor operation failed and strict mode is active."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        message = f"Driver failure during {operation}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
