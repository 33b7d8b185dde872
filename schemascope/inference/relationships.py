"""Relationship inference from column and table naming conventions.

Used only when the database declares no foreign keys. Pure: works on the
in-memory tables and issues no queries.
"""

import logging
from collections.abc import Iterable

from schemascope.models import Relationship, Table

logger = logging.getLogger(__name__)

DEFAULT_TARGET_KEY = "id"


def candidate_table_name(column_name: str) -> str | None:
    """Strip the first matching foreign-key naming pattern from a column name.

    Patterns are tried in order and only the first match is used:
    suffix ``_id``, suffix ``id`` (longer than 2 chars), suffix ``_fk``,
    prefix ``fk_``.

    Args:
        column_name: Column name

    Returns:
        The lowercased candidate table name, or None if no pattern matches
    """
    name = column_name.lower()
    if name.endswith("_id"):
        return name[:-3]
    if name.endswith("id") and len(name) > 2:
        return name[:-2]
    if name.endswith("_fk"):
        return name[:-3]
    if name.startswith("fk_"):
        return name[3:]
    return None


def resolve_table(candidate: str, tables_by_name: dict[str, Table]) -> Table | None:
    """Resolve a candidate name to a table.

    Tries, in order: exact match, candidate + 's', candidate without a
    trailing 's', candidate without underscores. Names are compared
    lowercased. Irregular plurals such as 'company'/'companies' do not resolve.

    Args:
        candidate: Candidate table name
        tables_by_name: Tables keyed by lowercased name

    Returns:
        The first table found, or None
    """
    normalized = candidate.lower()
    if not normalized:
        return None

    attempts = [normalized, normalized + "s"]
    if normalized.endswith("s"):
        attempts.append(normalized[:-1])
    attempts.append(normalized.replace("_", ""))

    for attempt in attempts:
        table = tables_by_name.get(attempt)
        if table is not None:
            return table
    return None


def target_key_column(table: Table) -> str:
    """Pick the referenced key column on a target table.

    Returns the table's column named ``id`` or ``<table>_id``, or the literal
    DEFAULT_TARGET_KEY when it has neither.
    """
    for key_name in (DEFAULT_TARGET_KEY, f"{table.name}_id"):
        column = table.get_column(key_name)
        if column is not None:
            return column.name
    logger.debug(f"Table {table.name} has no id column, inferred relationships default to '{DEFAULT_TARGET_KEY}'")
    return DEFAULT_TARGET_KEY


def infer_relationships(tables: Iterable[Table]) -> list[Relationship]:
    """Synthesize relationships from naming conventions.

    For every column other than ``id`` and ``<table>_id``, strip the first
    matching foreign-key pattern and look the remainder up as a table.

    Args:
        tables: Tables with their columns

    Returns:
        One single-column relationship per resolved column, in table and
        column order
    """
    tables = list(tables)
    tables_by_name: dict[str, Table] = {}
    for table in tables:
        tables_by_name.setdefault(table.name.lower(), table)

    relationships = []
    for table in tables:
        own_key = f"{table.name.lower()}_id"
        for column in table.columns:
            column_name = column.name.lower()
            if column_name in (DEFAULT_TARGET_KEY, own_key):
                continue

            candidate = candidate_table_name(column_name)
            if candidate is None:
                continue

            target = resolve_table(candidate, tables_by_name)
            if target is None:
                continue

            relationship = Relationship(
                name=f"inferred_fk_{table.name}_{column.name}",
                schema_from=table.schema_name,
                table_from=table.name,
                schema_to=target.schema_name,
                table_to=target.name,
                keys=[target_key_column(target)],
                foreigns=[column.name],
            )
            logger.debug(f"{relationship.full_table_from}.{column.name} references {relationship.full_table_to}")
            relationships.append(relationship)

    logger.debug(f"Inferred {len(relationships)} relationships from naming conventions")
    return relationships
