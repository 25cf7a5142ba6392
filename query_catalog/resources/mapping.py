"""
Query Mapping Readers

Parse the resource that maps query names to query resource paths.

Supported formats (chosen by suffix):
    .properties   Java-style "name = path" lines (default)
    .toml         a [queries] table, or flat top-level string keys
    .yaml / .yml  a "queries:" mapping, or a flat mapping

Example queries.properties:
    # name = resource path
    users.by_id = sql/users_by_id.sql
    users.all   : sql/users_all.sql
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import yaml

from query_catalog.errors import ConfigLoadError, ResourceLoadError

try:
    import tomllib as _toml
except ImportError:
    import tomli as _toml

logger = logging.getLogger(__name__)

PROPERTIES_SUFFIX = ".properties"
TOML_SUFFIXES = (".toml",)
YAML_SUFFIXES = (".yaml", ".yml")

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def normalize_mapping_name(name: str) -> str:
    """
    Normalize a mapping resource name.

    TOML and YAML names are returned unchanged. Anything else is treated as a
    properties resource: "." may be used as a path separator and the
    ".properties" suffix is optional, so "conf.queries", "conf/queries" and
    "/conf/queries.properties" all name the same resource. An absolute path to
    an existing file is returned unchanged.
    """
    if name.endswith(TOML_SUFFIXES + YAML_SUFFIXES):
        return name
    if Path(name).is_absolute() and Path(name).is_file():
        return name

    base = name.lstrip("/")
    if base.endswith(PROPERTIES_SUFFIX):
        base = base[: -len(PROPERTIES_SUFFIX)]
    return base.replace(".", "/") + PROPERTIES_SUFFIX


def _unescape(text: str) -> str:
    out: list[str] = []
    chars = iter(text)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append(_ESCAPES.get(nxt, nxt))
    return "".join(out)


def _logical_lines(text: str):
    """Join physical lines ending in an odd number of backslashes."""
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip() if pending else raw.strip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java properties syntax into an ordered dict."""
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key_end = len(line)
        value_start = len(line)
        escaped = False
        for i, ch in enumerate(line):
            if escaped:
                escaped = False
                continue
            if ch == "\\":
                escaped = True
            elif ch in "=:" or ch.isspace():
                key_end = i
                rest = line[i:].lstrip()
                if ch.isspace() and rest[:1] in ("=", ":"):
                    rest = rest[1:].lstrip()
                elif not ch.isspace():
                    rest = line[i + 1:].lstrip()
                value_start = len(line) - len(rest)
                break
        key = _unescape(line[:key_end])
        value = _unescape(line[value_start:]).strip()
        result[key] = value
    return result


def _select_queries(data: Any, resource: str) -> dict[str, str]:
    if not isinstance(data, dict):
        raise ConfigLoadError(resource, "mapping must be a table of name -> path")

    section = data.get("queries", data)
    if not isinstance(section, dict):
        raise ConfigLoadError(resource, "'queries' must be a table of name -> path")

    mapping: dict[str, str] = {}
    for key, value in section.items():
        if isinstance(value, dict) and section is data:
            # Other top-level tables belong to other tools sharing the file
            continue
        if not isinstance(value, str):
            raise ConfigLoadError(
                resource, f"resource path for [{key}] must be a string, got {type(value).__name__}"
            )
        mapping[str(key)] = value
    return mapping


def parse_toml(text: str, resource: str = "<toml>") -> dict[str, str]:
    try:
        data = _toml.loads(text)
    except _toml.TOMLDecodeError as e:
        raise ConfigLoadError(resource, str(e)) from e
    return _select_queries(data, resource)


def parse_yaml(text: str, resource: str = "<yaml>") -> dict[str, str]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError(resource, str(e)) from e
    return _select_queries(data if data is not None else {}, resource)


def _parser_for(name: str) -> Callable[[str, str], dict[str, str]]:
    if name.endswith(TOML_SUFFIXES):
        return parse_toml
    if name.endswith(YAML_SUFFIXES):
        return parse_yaml
    return lambda text, _resource: parse_properties(text)


def load_mapping(loader, name: str) -> dict[str, str]:
    """
    Read and parse the query mapping resource.

    Args:
        loader: ResourceLoader used to read the resource
        name: Mapping resource name

    Returns:
        Ordered dict of query name -> query resource path

    Raises:
        ConfigLoadError: If the resource cannot be read or parsed
    """
    resource = normalize_mapping_name(name)
    try:
        text = loader.read_text(resource)
    except ResourceLoadError as e:
        raise ConfigLoadError(resource, e.reason) from e

    mapping = _parser_for(resource)(text, resource)
    logger.debug(f"Loaded {len(mapping)} query mappings from [{resource}]")
    return mapping
