"""
Command-line interface for ddl_erd.

Provides parse and info commands for inferring and inspecting schemas.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ddl_erd import __version__
from ddl_erd.config import InferenceConfig, ManyToManyMode, load_config
from ddl_erd.models import ParseResult, Severity
from ddl_erd.output import SchemaWriter, load_schema
from ddl_erd.pipeline import SchemaInferencePipeline

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
@click.version_option(version=__version__, prog_name="ddl-erd")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    DDL ERD - Relational schema inference from SQL DDL

    Extract tables, constraints and relationships from CREATE TABLE scripts.
    """
    setup_logging(verbose)


@cli.command()
@click.argument(
    "sql_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with inference options",
)
@click.option(
    "--many-to-many",
    "many_to_many",
    type=click.Choice([m.value for m in ManyToManyMode]),
    default=None,
    help="Emit junction links once (single) or in both directions (bidirectional)",
)
@click.option(
    "--no-conventions",
    is_flag=True,
    default=False,
    help="Disable naming-convention relationship inference",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the inferred schema to this file",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["yaml", "json"]),
    default=None,
    help="Output format (default: from file suffix, else yaml)",
)
def parse(
    sql_file: Path,
    config_file: Optional[Path],
    many_to_many: Optional[str],
    no_conventions: bool,
    output: Optional[Path],
    fmt: Optional[str],
) -> None:
    """
    Infer tables and relationships from a SQL DDL script.

    Examples:

        # Show tables and relationships
        ddl-erd parse schema.sql

        # Emit many-to-many links in both directions and save as JSON
        ddl-erd parse schema.sql --many-to-many bidirectional \\
            --output schema.json

        # Use a config file with extra naming variants
        ddl-erd parse schema.sql --config inference.yaml --output schema.yaml
    """
    if config_file:
        try:
            config = load_config(config_file)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--config") from e
    else:
        config = InferenceConfig()

    if many_to_many:
        config.many_to_many_mode = ManyToManyMode(many_to_many)
    if no_conventions:
        config.enable_convention_pass = False

    console.print("[bold blue]DDL ERD - Schema Inference[/bold blue]")
    console.print(f"Script: {sql_file}")

    sql = sql_file.read_text()
    result = SchemaInferencePipeline(config).parse(sql)

    _print_result(result)

    if output:
        writer = SchemaWriter.for_path(output, fmt)
        writer.write(result, output)
        console.print(f"\n[green]Saved schema to: {output}[/green]")


@cli.command()
@click.argument(
    "schema_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def info(schema_file: Path) -> None:
    """
    Display a schema file written by ``parse --output``.

    Example:

        ddl-erd info schema.yaml
    """
    console.print("[bold blue]Schema Information[/bold blue]")

    try:
        result = load_schema(schema_file)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SCHEMA_FILE") from e

    _print_result(result)


def _print_result(result: ParseResult) -> None:
    """Render tables, relationships and diagnostics as rich tables."""
    junctions = set(result.junction_tables)

    tables_table = Table(title="Tables")
    tables_table.add_column("Table", style="cyan")
    tables_table.add_column("Columns", style="green", justify="right")
    tables_table.add_column("PK", style="yellow")
    tables_table.add_column("FKs", style="magenta", justify="right")
    tables_table.add_column("Junction", style="blue")

    for table in result.tables:
        pk_cols = [c.name for c in table.columns if c.primary_key]
        fk_count = sum(1 for c in table.columns if c.foreign_key)
        tables_table.add_row(
            table.name,
            str(len(table.columns)),
            ", ".join(pk_cols) if pk_cols else "-",
            str(fk_count),
            "yes" if table.name in junctions else "",
        )

    console.print(tables_table)

    if result.relationships:
        rel_table = Table(title="Relationships")
        rel_table.add_column("From", style="cyan")
        rel_table.add_column("To", style="green")
        rel_table.add_column("Cardinality", style="yellow")
        rel_table.add_column("Via", style="magenta")
        rel_table.add_column("Origin", style="blue")

        for rel in result.relationships:
            rel_table.add_row(
                rel.source.qualified_name,
                rel.target.qualified_name,
                rel.cardinality.value,
                rel.junction_table or "-",
                rel.origin,
            )

        console.print(rel_table)
    else:
        console.print("\n[yellow]No relationships found.[/yellow]")

    if result.diagnostics:
        diag_table = Table(title="Diagnostics")
        diag_table.add_column("Statement", style="cyan", justify="right")
        diag_table.add_column("Severity")
        diag_table.add_column("Message")

        for diag in result.diagnostics:
            style = "red" if diag.severity == Severity.ERROR else "yellow"
            diag_table.add_row(
                str(diag.statement_index + 1) if diag.statement_index is not None else "-",
                f"[{style}]{diag.severity.value}[/{style}]",
                escape(diag.message),
            )

        console.print(diag_table)

    summary = f"{len(result.tables)} tables, {len(result.relationships)} relationships"
    if result.is_complete:
        console.print(f"\n[green]{summary}[/green]")
    else:
        console.print(f"\n[yellow]{summary} (partial: see diagnostics)[/yellow]")


if __name__ == "__main__":
    cli()
