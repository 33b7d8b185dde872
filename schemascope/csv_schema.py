"""Load a Schema from CSV schema description files."""

import csv
import logging
from collections.abc import Iterator
from pathlib import Path

from schemascope.errors import SchemaFileError
from schemascope.models import Column, Index, IndexType, Relationship, Schema, Table

logger = logging.getLogger(__name__)

_REQUIRED_COLUMN_HEADERS = ("table", "column", "type")
_REQUIRED_RELATIONSHIP_HEADERS = ("table_from", "table_to", "key", "foreign")
_REQUIRED_INDEX_HEADERS = ("table", "name", "key")

_TRUE_VALUES = frozenset({"true", "yes", "y", "1"})


def detect_file_encoding(file_path: Path) -> str:
    """Detect file encoding"""
    for encoding in ("utf-8-sig", "latin-1", "cp1252"):
        try:
            with file_path.open(encoding=encoding) as f:
                f.read()
        except (UnicodeDecodeError, UnicodeError):
            continue
        else:
            return encoding
    return "utf-8"


def detect_delimiter(file_path: Path, encoding: str) -> str:
    """Detect CSV delimiter"""
    with file_path.open(encoding=encoding) as f:
        sample = f.read(1024)
    try:
        return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        return ","


def _read_rows(file_path: Path, required: tuple[str, ...]) -> Iterator[dict[str, str]]:
    if not file_path.exists():
        raise SchemaFileError(f"File not found: {file_path}")

    encoding = detect_file_encoding(file_path)
    delimiter = detect_delimiter(file_path, encoding)

    with file_path.open(encoding=encoding, newline="") as f:
        reader = csv.reader(f, delimiter=delimiter)
        header = next(reader, None)
        if header is None:
            raise SchemaFileError(f"{file_path} is empty")

        names = [cell.strip().lower() for cell in header]
        missing = [name for name in required if name not in names]
        if missing:
            raise SchemaFileError(f"{file_path} is missing required columns: {', '.join(missing)}")

        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            # Short rows leave the trailing optional fields empty
            yield {name: (row[i].strip() if i < len(row) else "") for i, name in enumerate(names)}


def _split_columns(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_nullable(value: str) -> bool:
    """Interpret a nullable cell; blank means nullable"""
    if not value.strip():
        return True
    return value.strip().lower() in _TRUE_VALUES


def parse_index_type(value: str) -> IndexType:
    """Map an index type cell to an IndexType"""
    normalized = value.strip().lower()
    match normalized:
        case "unique":
            return IndexType.UNIQUE
        case "" | "btree" | "nonclustered" | "clustered":
            return IndexType.BTREE
        case "hash":
            return IndexType.HASH
        case "fulltext":
            return IndexType.FULLTEXT
        case _:
            return IndexType.OTHER


def read_columns(file_path: Path) -> list[Column]:
    """Read a columns file (schema,table,column,nullable,type,comment)"""
    return [
        Column(
            schema_name=row.get("schema", ""),
            table_name=row["table"],
            name=row["column"],
            data_type=row["type"],
            nullable=parse_nullable(row.get("nullable", "")),
            comment=row.get("comment", ""),
        )
        for row in _read_rows(file_path, _REQUIRED_COLUMN_HEADERS)
    ]


def read_relationships(file_path: Path) -> list[Relationship]:
    """Read a relationships file (name,schema_from,schema_to,table_from,table_to,key,foreign).

    ``key`` and ``foreign`` hold comma-separated column lists in matching order.

    Raises:
        SchemaFileError: If a row pairs a different number of key and foreign columns
    """
    relationships = []
    for line_number, row in enumerate(_read_rows(file_path, _REQUIRED_RELATIONSHIP_HEADERS), start=2):
        keys = _split_columns(row["key"])
        foreigns = _split_columns(row["foreign"])
        if not keys or len(keys) != len(foreigns):
            raise SchemaFileError(
                f"{file_path} row {line_number}: key and foreign must list the same number of columns"
            )
        relationships.append(
            Relationship(
                name=row.get("name") or f"fk_{row['table_from']}_{row['table_to']}",
                schema_from=row.get("schema_from", ""),
                schema_to=row.get("schema_to", ""),
                table_from=row["table_from"],
                table_to=row["table_to"],
                keys=keys,
                foreigns=foreigns,
            )
        )
    return relationships


def read_indexes(file_path: Path) -> list[Index]:
    """Read an indexes file (schema,table,name,key,type)"""
    return [
        Index(
            schema_name=row.get("schema", ""),
            table_name=row["table"],
            name=row["name"],
            columns=_split_columns(row["key"]),
            type=parse_index_type(row.get("type", "")),
        )
        for row in _read_rows(file_path, _REQUIRED_INDEX_HEADERS)
    ]


def load_schema_from_csv(
    schema_path: str | Path,
    relationships_path: str | Path | None = None,
    indexes_path: str | Path | None = None,
) -> Schema:
    """Build a Schema from CSV description files.

    Columns are grouped into tables by (schema, table) in first-seen order.
    Indexes are attached to their tables; indexes on unknown tables are
    dropped with a warning.

    Args:
        schema_path: Columns file
        relationships_path: Optional relationships file
        indexes_path: Optional indexes file

    Returns:
        The Schema, with relationship views derived

    Raises:
        SchemaFileError: If a file is missing or lacks required columns
    """
    schema = Schema()
    tables: dict[tuple[str, str], Table] = {}

    for column in read_columns(Path(schema_path)):
        key = (column.schema_name.lower(), column.table_name.lower())
        table = tables.get(key)
        if table is None:
            table = Table(schema_name=column.schema_name, name=column.table_name)
            tables[key] = table
            schema.tables.append(table)
        table.columns.append(column)

    if indexes_path is not None:
        for index in read_indexes(Path(indexes_path)):
            table = schema.get_table(index.table_name, index.schema_name or None)
            if table is None:
                logger.warning(f"Index {index.name} references unknown table {index.table_name}, skipping")
                continue
            table.indexes.append(index)

    relationships = read_relationships(Path(relationships_path)) if relationships_path is not None else []
    schema.set_relationships(relationships)

    logger.info(f"Loaded {len(schema.tables)} tables and {len(relationships)} relationships from CSV")
    return schema
