"""Rendering of extracted schemas for the terminal and for files."""

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table as RichTable

from schemascope.models import Schema

console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS = ("json", "yaml")


def schema_to_dict(schema: Schema) -> dict[str, Any]:
    """Convert a Schema to plain data, adding the inferred flags to each column"""
    data = schema.model_dump(mode="json")
    for table_data, table in zip(data["tables"], schema.tables, strict=True):
        for column_data, column in zip(table_data["columns"], table.columns, strict=True):
            column_data["inferred_as_boolean"] = column.inferred_as_boolean
            column_data["inferred_as_guid"] = column.inferred_as_guid
    return data


def render_json(data: dict[str, Any], pretty: bool = False) -> str:
    """Serialize schema data as JSON, indented when pretty is set"""
    return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False)


def render_yaml(data: dict[str, Any]) -> str:
    """Serialize schema data as block-style YAML, keeping key order"""
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False) or ""


def output_schema(
    schema: Schema,
    output_path: Path | None = None,
    output_format: str = "json",
    pretty: bool = False,
) -> None:
    """Write a schema to a file, or highlight it on stdout.

    Args:
        schema: Extracted schema
        output_path: Destination file; stdout when None
        output_format: One of OUTPUT_FORMATS
        pretty: Indent JSON output

    Raises:
        typer.Exit: If the format is unknown
    """
    if output_format not in OUTPUT_FORMATS:
        error_message(f"Unknown output format: {output_format}", hint="Use json or yaml")
        raise typer.Exit(1)

    data = schema_to_dict(schema)
    rendered = render_yaml(data) if output_format == "yaml" else render_json(data, pretty=pretty)

    if output_path is None:
        console.print(Syntax(rendered, output_format, theme="monokai", word_wrap=True))
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered, encoding="utf-8")
    success_message(f"Schema written to {output_path}")


def print_summary(schema: Schema) -> None:
    """Print a per-table summary of the extracted schema to stderr"""
    table = RichTable(title="Extracted schema")
    table.add_column("Table")
    for heading in ("Columns", "Boolean", "GUID", "Indexes", "Outgoing"):
        table.add_column(heading, justify="right")

    for entry in schema.tables:
        table.add_row(
            f"{entry.full_name} (view)" if entry.is_view else entry.full_name,
            str(len(entry.columns)),
            str(sum(1 for c in entry.columns if c.inferred_as_boolean)),
            str(sum(1 for c in entry.columns if c.inferred_as_guid)),
            str(len(entry.indexes)),
            str(len(entry.outgoing_relationships)),
        )

    err_console.print(table)
    err_console.print(
        f"{len(schema.relationships)} relationships, {len(schema.scalar_functions)} functions, "
        f"{len(schema.stored_procedures)} procedures"
    )


def error_message(message: str, hint: str | None = None) -> None:
    """Report a failure on stderr, with an optional suggestion on the next line"""
    typer.secho(f"✗ Error: {message}", fg=typer.colors.RED, err=True)
    if hint:
        typer.secho(f"  Hint: {hint}", fg=typer.colors.YELLOW, err=True)


def success_message(message: str) -> None:
    """Report a completed action on stderr"""
    typer.secho(f"✓ {message}", fg=typer.colors.GREEN, err=True)
