"""Command line interface for ERD Toolkit."""

import logging
import sys
from json import JSONDecodeError, dumps, loads
from math import isfinite
from pathlib import Path
from sys import stdout
from typing import Literal

from cyclopts import App
from diagram import (
    ErdConfig,
    GraphAssembler,
    apply_positions,
    graph_to_html,
    load_config,
)
from diagram.schema_types import DiagramSchema
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = App(help="ERD Toolkit CLI tool")

type Format = Literal["json", "table", "html"]

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure_logging(*, verbose: bool) -> None:
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def prepare(config_location: Path | None, *, verbose: bool) -> ErdConfig:
    """Load configuration and make the model packages importable."""
    configure_logging(verbose=verbose)

    if config_location is not None and not config_location.is_file():
        print_error(f"Configuration file does not exist: {config_location}")
        sys.exit(1)

    try:
        config = load_config(config_location)
    except (ValueError, OSError) as e:
        print_error(f"Invalid configuration: {e}")
        sys.exit(1)

    for entry in reversed(config.prepend_sys_path):
        path = str((config.base_path / entry).resolve())
        if path not in sys.path:
            sys.path.insert(0, path)

    return config


def is_position(value: object) -> bool:
    """Check for an {"x": number, "y": number} mapping."""
    if not isinstance(value, dict):
        return False
    return all(
        isinstance(coordinate, int | float)
        and not isinstance(coordinate, bool)
        and isfinite(coordinate)
        for coordinate in (value.get("x"), value.get("y"))
    )


def read_positions(positions: Path) -> dict[str, dict[str, int]]:
    """Read node position overrides from a JSON file."""
    try:
        data = loads(positions.read_text())
    except (OSError, JSONDecodeError) as e:
        print_error(f"Cannot read positions file {positions}: {e}")
        sys.exit(1)

    if not isinstance(data, dict) or not all(map(is_position, data.values())):
        print_error("Positions file must map table names to numeric {'x': .., 'y': ..}")
        sys.exit(1)
    return data


def format_diagram_table(diagram: DiagramSchema) -> None:
    """Format tables and relationships as rich tables."""
    tables = Table(title="Tables")
    tables.add_column("Table", style="bold cyan")
    tables.add_column("Model")
    tables.add_column("Columns", justify="right")
    tables.add_column("Primary Key", style="bold yellow")
    for table in diagram["tables"]:
        tables.add_row(
            table["name"],
            table["model"],
            str(len(table["columns"])),
            table["primary_key"],
        )
    console.print(tables)

    names = {table["id"]: table["name"] for table in diagram["tables"]}
    relationships = Table(title="Relationships")
    relationships.add_column("From", style="bold cyan")
    relationships.add_column("Relationship")
    relationships.add_column("To", style="bold cyan")
    for relationship in diagram["relationships"]:
        relationships.add_row(
            names[relationship["source"]],
            relationship["label"],
            names[relationship["target"]],
        )
    console.print(relationships)


def emit(
    diagram: DiagramSchema,
    fmt: Format,
    positions: Path | None,
    *,
    debug: bool,
) -> None:
    """Write the diagram to stdout and report its outcome on stderr."""
    metadata = diagram["metadata"]
    if metadata.get("error"):
        print_error(metadata.get("message", "Failed to generate ERD"))
        if debug and (detail := metadata.get("detail")):
            print_error(detail)
        sys.exit(1)

    if positions is not None:
        diagram = apply_positions(diagram, read_positions(positions))

    if fmt == "json":
        stdout.write(dumps(diagram))
    elif fmt == "html":
        stdout.write(graph_to_html(diagram))
    elif fmt == "table":
        format_diagram_table(diagram)

    if message := metadata.get("message"):
        print_info(message)
    print_success(
        f"{metadata['total_tables']} tables, "
        f"{metadata['total_relationships']} relationships",
    )


def run(assembler: GraphAssembler, *, refresh: bool) -> DiagramSchema:
    """Generate the diagram behind a progress spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Analyzing models...", total=None)
        if refresh:
            return assembler.refresh()
        return assembler.generate_safely()


@app.command
def generate(
    config: Path | None = None,
    fmt: Format = "json",
    *,
    positions: Path | None = None,
    debug: bool = False,
    verbose: bool = False,
) -> None:
    """Generate the ER diagram of the configured models."""
    erd_config = prepare(config, verbose=verbose)
    print_info(f"Model paths: {', '.join(map(str, erd_config.search_roots))}")
    print_info(f"Output format: {fmt}")

    diagram = run(GraphAssembler.from_config(erd_config), refresh=False)
    emit(diagram, fmt, positions, debug=debug)


@app.command
def refresh(
    config: Path | None = None,
    fmt: Format = "json",
    *,
    positions: Path | None = None,
    debug: bool = False,
    verbose: bool = False,
) -> None:
    """Clear cached results and regenerate the ER diagram."""
    erd_config = prepare(config, verbose=verbose)
    diagram = run(GraphAssembler.from_config(erd_config), refresh=True)
    emit(diagram, fmt, positions, debug=debug)


@app.command
def models(config: Path | None = None, *, verbose: bool = False) -> None:
    """List the mapped models that would be analyzed."""
    erd_config = prepare(config, verbose=verbose)
    assembler = GraphAssembler.from_config(erd_config)
    discovered = assembler.discover_models()

    if not discovered:
        print_info("No mapped models found")
        return

    for model in discovered:
        console.print(model)
    print_success(f"Found {len(discovered)} models")


@app.command
def clear_cache(config: Path | None = None, *, verbose: bool = False) -> None:
    """Forget all cached introspection results."""
    erd_config = prepare(config, verbose=verbose)
    if erd_config.cache_store == "memory":
        print_info("The memory cache only lives for one run, there is nothing to clear")
        return

    GraphAssembler.from_config(erd_config).clear_cache()
    print_success(f"Cache cleared at {erd_config.cache_url}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
