"""CSV schema description command."""

from pathlib import Path

import typer

from cli.config import get_extraction_defaults, get_output_defaults
from cli.output import error_message, output_schema, print_summary
from schemascope.csv_schema import load_schema_from_csv
from schemascope.database.extraction import apply_inference
from schemascope.errors import SchemaFileError


def csv_schema(
    schema_file: Path = typer.Argument(
        ..., help="Columns file: schema,table,column,nullable,type,comment", exists=True, dir_okay=False
    ),
    relationships_file: Path | None = typer.Option(
        None,
        "--relationships",
        "-r",
        help="Relationships file: name,schema_from,schema_to,table_from,table_to,key,foreign",
        exists=True,
        dir_okay=False,
    ),
    indexes_file: Path | None = typer.Option(
        None, "--indexes", "-i", help="Indexes file: schema,table,name,key,type", exists=True, dir_okay=False
    ),
    type_inference: bool | None = typer.Option(
        None, "--type-inference/--no-type-inference", help="Infer boolean and GUID columns from names"
    ),
    legacy_relationships: bool | None = typer.Option(
        None,
        "--legacy-relationships/--no-legacy-relationships",
        help="Infer relationships from naming conventions when the file lists none",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file path (default: stdout)", dir_okay=False, resolve_path=True
    ),
    output_format: str | None = typer.Option(None, "--format", "-f", help="Output format: json or yaml"),
    pretty: bool | None = typer.Option(None, "--pretty", help="Pretty-print JSON output"),
    summary: bool = typer.Option(False, "--summary", help="Print a per-table summary to stderr"),
) -> None:
    """Load a schema from CSV description files and infer column semantics.

    Example:
        schemascope csv columns.csv --relationships relationships.csv --output schema.json
    """
    try:
        extraction_defaults = get_extraction_defaults()
        output_defaults = get_output_defaults()

        update = {}
        if type_inference is not None:
            update["type_inference"] = type_inference
        if legacy_relationships is not None:
            update["legacy_relationships"] = legacy_relationships
        options = extraction_defaults.model_copy(update=update).to_options()

        if output_format is None:
            output_format = output_defaults.format
        if pretty is None:
            pretty = output_defaults.pretty

        schema = load_schema_from_csv(schema_file, relationships_file, indexes_file)
        apply_inference(schema, options)

        if summary:
            print_summary(schema)
        output_schema(schema, output_path=output, output_format=output_format, pretty=pretty)

    except SchemaFileError as e:
        error_message(str(e), hint="Check the CSV headers and column lists")
        raise typer.Exit(1) from e
    except ValueError as e:
        error_message(str(e), hint="Check the file format and the config file")
        raise typer.Exit(1) from e
    except typer.Exit:
        raise
    except Exception as e:
        error_message(f"Failed to load schema: {e}")
        raise typer.Exit(1) from e
