"""CLI entry point for infergraph.

Invoked as::

    infergraph [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m infergraph.cli.main

Commands
--------
build       Infer a schema from a records file
conflicts   Show the field type conflicts found in a records file
fields      List the (flattened) field names of one record kind
version     Show version information
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from infergraph.config import InferenceConfig
    from infergraph.schema import SchemaResult
    from infergraph.store import MemoryRecordStore

console = Console()
err_console = Console(stderr=True)


def _load_store_or_exit(path: str) -> "MemoryRecordStore":
    """Load a records file, printing errors and exiting on failure."""
    from infergraph.store.loaders import LoaderNotFoundError, RecordLoadError, load_records

    try:
        return load_records(path)
    except (RecordLoadError, LoaderNotFoundError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _load_config_or_exit(path: str | None) -> "InferenceConfig":
    """Load a YAML config file (or the defaults), exiting on failure."""
    from infergraph.config import ConfigError, InferenceConfig

    if path is None:
        return InferenceConfig()
    try:
        return InferenceConfig.load(path)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)
    except ConfigError as exc:
        err_console.print(f"[red]Config error[/red] in {path}: {exc}")
        sys.exit(1)


def _build_or_exit(records: str, config_path: str | None) -> "SchemaResult":
    """Run one build pass, printing inference errors and exiting on failure."""
    from infergraph.errors import InferenceError
    from infergraph.schema import build_schema

    store = _load_store_or_exit(records)
    config = _load_config_or_exit(config_path)
    try:
        return build_schema(store, config)
    except InferenceError as exc:
        err_console.print(f"[red]Inference error:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="infergraph")
def cli() -> None:
    """Infer a typed schema from heterogeneous records."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from infergraph import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]infergraph[/bold]", f"v{__version__}")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Python", python_version)
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# build command
# ---------------------------------------------------------------------------


@cli.command(name="build")
@click.argument("records", type=click.Path(exists=False))
@click.option("--config", "-c", "config_path", default=None, help="YAML inference config.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["sdl", "json", "yaml"], case_sensitive=False),
    default="sdl",
    help="Output format (default: sdl).",
)
@click.option("--output", "-o", default=None, help="Write the schema to this file.")
def build_command(
    records: str, config_path: str | None, output_format: str, output: str | None
) -> None:
    """Infer a schema from a records file.

    RECORDS is a JSON, JSON Lines or YAML file holding a list of records.

    Examples:

    \b
        infergraph build records.json
        infergraph build records.yaml --config infer.yaml --format json -o schema.json
    """
    from infergraph.formatter import format_schema
    from infergraph.model.serializer import TypeSerializer

    result = _build_or_exit(records, config_path)

    output_format = output_format.lower()
    if output_format == "json":
        text = TypeSerializer().to_json(result.types) + "\n"
    elif output_format == "yaml":
        text = TypeSerializer().to_yaml(result.types)
    else:
        text = format_schema(result.types)

    for kind, exc in sorted(result.skipped.items()):
        err_console.print(f"[yellow]Skipped kind[/yellow] {kind}: {exc}")
    if result.conflicts:
        err_console.print(
            f"[yellow]Warning:[/yellow] {len(result.conflicts)} conflicting field(s) were "
            "omitted. Run 'infergraph conflicts' for details."
        )

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]Written:[/green] {output}")
    else:
        click.echo(text, nl=False)


# ---------------------------------------------------------------------------
# conflicts command
# ---------------------------------------------------------------------------


@cli.command(name="conflicts")
@click.argument("records", type=click.Path(exists=False))
@click.option("--config", "-c", "config_path", default=None, help="YAML inference config.")
def conflicts_command(records: str, config_path: str | None) -> None:
    """Show the field type conflicts found in a records file.

    RECORDS is a JSON, JSON Lines or YAML file holding a list of records.
    """
    result = _build_or_exit(records, config_path)

    if not result.conflicts:
        console.print(f"[green]OK[/green] {records}: no conflicting field types")
        sys.exit(0)

    table = Table(title=f"Conflicts: {records}", show_lines=True)
    table.add_column("Field", style="bold", min_width=12)
    table.add_column("Type", min_width=8)
    table.add_column("Example")
    table.add_column("Record", min_width=8)

    for selector, samples in result.conflicts:
        for sample in samples:
            table.add_row(selector, sample.type_name, repr(sample.sample), sample.origin or "-")

    console.print(table)
    console.print(
        f"\n[bold]Summary:[/bold] {len(result.conflicts)} field(s) omitted from the schema"
    )


# ---------------------------------------------------------------------------
# fields command
# ---------------------------------------------------------------------------


@cli.command(name="fields")
@click.argument("records", type=click.Path(exists=False))
@click.option("--kind", "-k", required=True, help="Record kind to inspect.")
@click.option(
    "--enum",
    "as_enum",
    is_flag=True,
    default=False,
    help="Show sanitized enum keys for fields with usable data.",
)
def fields_command(records: str, kind: str, as_enum: bool) -> None:
    """List the flattened field names of one record kind.

    Nested object fields are shown as ``outer___inner``.
    """
    from infergraph.merger import build_field_enum_values, extract_field_names

    store = _load_store_or_exit(records)
    rows = store.records_of_kind(kind)
    if not rows:
        err_console.print(
            f"[red]Error:[/red] No records of kind {kind!r}. "
            f"Available kinds: {', '.join(store.kinds()) or '(none)'}"
        )
        sys.exit(1)

    if as_enum:
        table = Table(title=f"Field enum: {kind}")
        table.add_column("Key", style="bold")
        table.add_column("Field")
        for key, name in sorted(build_field_enum_values(rows).items()):
            table.add_row(key, name)
        console.print(table)
        return

    for name in sorted(extract_field_names(rows)):
        console.print(name)


if __name__ == "__main__":
    cli()
