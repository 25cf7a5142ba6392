"""
Command-Line Interface

CLI commands for inspecting and running catalogued queries.

Commands:
    query-catalog list  - List registered query names and their resources
    query-catalog show  - Print the SQL text of a query
    query-catalog run   - Execute a query on a DuckDB database

Usage:
    # List queries from ./sql/queries.properties
    query-catalog list --path ./sql

    # Show one query
    query-catalog show users.by_id --path ./sql

    # Run against a database file
    query-catalog run users.all --path ./sql --database app.duckdb --limit 20

Settings may also come from QUERY_CATALOG_* environment variables, a .env
file in the working directory, or a TOML file passed with --config.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

__all__ = ["main", "app"]

app = typer.Typer(
    name="query-catalog",
    help="Named SQL query registry",
    no_args_is_help=True,
)
console = Console()


def _build_catalog(
    mapping: Optional[str],
    paths: Optional[List[Path]],
    config_file: Optional[Path],
    verbose: bool,
):
    from query_catalog.catalog import QueryCatalog
    from query_catalog.config import CatalogConfig

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = CatalogConfig.from_file(config_file) if config_file else CatalogConfig()
    overrides: dict[str, object] = {}
    if mapping:
        overrides["mapping_resource"] = mapping
    if paths:
        overrides["search_paths"] = [str(p) for p in paths]
    if overrides:
        config = config.with_overrides(**overrides)
    return QueryCatalog(config)


def _load_or_exit(catalog, name: Optional[str] = None):
    from query_catalog.errors import ConfigLoadError, NotFoundError, ResourceLoadError

    try:
        catalog.build()
        return catalog.get(name) if name is not None else None
    except (ConfigLoadError, ResourceLoadError) as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=2)
    except NotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)


def _require_text(query, name: str) -> str:
    if query.text is None:
        console.print(f"[red]Query {escape(repr(name))} has no SQL text (resource unreadable)[/]")
        raise typer.Exit(code=1)
    return query.text


MappingOption = typer.Option(None, "--mapping", "-m", help="Mapping resource name")
PathOption = typer.Option(None, "--path", "-p", help="Resource search directory (repeatable)")
ConfigOption = typer.Option(None, "--config", "-c", help="TOML configuration file", exists=True)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


@app.command("list")
def list_queries(
    mapping: Optional[str] = MappingOption,
    path: Optional[List[Path]] = PathOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List registered queries."""
    catalog = _build_catalog(mapping, path, config, verbose)
    _load_or_exit(catalog)

    table = Table(title=f"Queries: {catalog.config_resource}")
    table.add_column("Name", style="cyan")
    table.add_column("Resource", style="dim")
    table.add_column("Status", justify="right")

    for name in catalog:
        loaded = catalog.get(name).text is not None
        table.add_row(
            escape(name),
            escape(catalog.resource_path(name)),
            "[green]ok[/]" if loaded else "[red]unreadable[/]",
        )

    console.print(table)


@app.command()
def show(
    name: str = typer.Argument(..., help="Query name"),
    mapping: Optional[str] = MappingOption,
    path: Optional[List[Path]] = PathOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the SQL text of a query."""
    catalog = _build_catalog(mapping, path, config, verbose)
    query = _load_or_exit(catalog, name)
    text = _require_text(query, name)

    console.print(Syntax(text, "sql", theme="ansi_dark", word_wrap=True))


@app.command()
def run(
    name: str = typer.Argument(..., help="Query name"),
    database: str = typer.Option(
        ":memory:",
        "--database", "-d",
        help="DuckDB database file",
    ),
    limit: int = typer.Option(
        50,
        "--limit", "-n",
        help="Maximum rows to display",
        min=1,
    ),
    mapping: Optional[str] = MappingOption,
    path: Optional[List[Path]] = PathOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Execute a query on a DuckDB database and display the rows."""
    import duckdb

    from query_catalog.query.scope import attached

    catalog = _build_catalog(mapping, path, config, verbose)
    query = _load_or_exit(catalog, name)
    _require_text(query, name)

    connection = duckdb.connect(database)
    try:
        with attached(query, connection) as result:
            if result.column_count < 1:
                console.print("[yellow]Statement returned no result set[/]")
                return

            table = Table(title=name)
            for label in result.cursor.column_labels():
                table.add_column(escape(label), style="cyan")

            shown = 0
            while shown < limit and result.advance():
                cells = result.row()
                table.add_row(*("NULL" if c.value is None else escape(str(c.value)) for c in cells))
                shown += 1

            console.print(table)
            console.print(f"\n[dim]{shown} row(s) shown[/]")
    except duckdb.Error as e:
        console.print(f"[red]Query failed: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    finally:
        connection.close()


def main() -> None:
    """Entry point for the CLI."""
    load_dotenv()
    app()
