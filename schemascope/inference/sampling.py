"""Data sampling analyzers that confirm boolean and GUID semantics.

These are the only queries issued against user data rather than catalog
metadata. They run only for columns that name-based inference left
unresolved and whose declared type makes the candidate possible.
"""

import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.errors import SamplingQueryError
from schemascope.inference.name_patterns import is_guid_compatible_type, is_small_integer_type
from schemascope.models import Column, InferredSemantic, Table

logger = logging.getLogger(__name__)

BOOLEAN_SAMPLE_LIMIT = 3
GUID_SAMPLE_LIMIT = 100
MIN_VALID_GUIDS = 10


# ============================================================================
# Decisions
# ============================================================================


def is_boolean_sample(values: Iterable[Any]) -> bool:
    """Decide whether a column's distinct non-null values look boolean.

    Args:
        values: Distinct values read from the column

    Returns:
        True if the set is non-empty and every value is numerically 0 or 1.
        An all-NULL column is inconclusive and returns False.
    """
    distinct = {value for value in values if value is not None}
    if not distinct:
        return False
    # BIT columns come back as raw bytes from some drivers
    numbers = [int.from_bytes(value, "big") if isinstance(value, bytes) else value for value in distinct]
    return all(isinstance(value, (bool, int, Decimal)) and value in (0, 1) for value in numbers)


def _is_guid_text(value: str) -> bool:
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True


def is_guid_sample(values: Iterable[Any]) -> bool:
    """Decide whether sampled values look like GUIDs.

    Args:
        values: Values read from the column

    Returns:
        True if at least MIN_VALID_GUIDS values parse as GUIDs and none is
        blank or whitespace-only
    """
    valid = 0
    for value in values:
        if value is None:
            continue
        if isinstance(value, uuid.UUID):
            valid += 1
            continue
        text = value.decode(errors="replace") if isinstance(value, bytes) else str(value)
        if not text.strip():
            # A single blank value vetoes the column
            return False
        if _is_guid_text(text):
            valid += 1
    return valid >= MIN_VALID_GUIDS


# ============================================================================
# Queries
# ============================================================================


def build_boolean_query(session: CatalogSession, table: Table, column_name: str) -> str:
    """Build the DISTINCT query used to verify a boolean candidate"""
    quoted = session.quote(column_name)
    source = session.qualified_name(table.schema_name, table.name)
    if session.kind is BackendKind.SQLSERVER:
        return f"SELECT DISTINCT TOP {BOOLEAN_SAMPLE_LIMIT} {quoted} FROM {source} WHERE {quoted} IS NOT NULL"
    return f"SELECT DISTINCT {quoted} FROM {source} WHERE {quoted} IS NOT NULL LIMIT {BOOLEAN_SAMPLE_LIMIT}"


def build_guid_query(session: CatalogSession, table: Table, column_name: str) -> str:
    """Build the sampling query used to verify a GUID candidate"""
    quoted = session.quote(column_name)
    source = session.qualified_name(table.schema_name, table.name)
    if session.kind is BackendKind.SQLSERVER:
        return f"SELECT TOP {GUID_SAMPLE_LIMIT} {quoted} FROM {source} WHERE {quoted} IS NOT NULL"
    return f"SELECT {quoted} FROM {source} WHERE {quoted} IS NOT NULL LIMIT {GUID_SAMPLE_LIMIT}"


def sample_boolean_column(session: CatalogSession, table: Table, column: Column) -> bool:
    """Query a column's distinct values and decide whether it is boolean.

    More than two distinct values already rule the column out, so at most
    BOOLEAN_SAMPLE_LIMIT values are read.

    Raises:
        SamplingQueryError: If the query fails
    """
    values = session.sample(build_boolean_query(session, table, column.name), table=table.name, column=column.name)
    return is_boolean_sample(values)


def sample_guid_column(session: CatalogSession, table: Table, column: Column) -> bool:
    """Sample a column's values and decide whether it holds GUIDs.

    Raises:
        SamplingQueryError: If the query fails
    """
    values = session.sample(build_guid_query(session, table, column.name), table=table.name, column=column.name)
    return is_guid_sample(values)


# ============================================================================
# Analyzers
# ============================================================================


def _analyze(
    session: CatalogSession,
    table: Table,
    columns: Iterable[Column],
    semantic: InferredSemantic,
) -> list[str]:
    confirmed = []
    for column in columns:
        if column.is_resolved:
            continue
        try:
            if semantic is InferredSemantic.BOOLEAN:
                matches = sample_boolean_column(session, table, column)
            else:
                matches = sample_guid_column(session, table, column)
        except SamplingQueryError as e:
            logger.warning(f"{e}. Leaving {table.name}.{column.name} unresolved")
            session.recover()
            continue
        if matches:
            column.resolve(semantic)
            confirmed.append(column.name)
    return confirmed


def analyze_boolean_columns(session: CatalogSession, table: Table, columns: Iterable[Column]) -> list[str]:
    """Confirm boolean semantics for unresolved small-integer columns.

    A failed sampling query leaves that column unresolved and is logged as a
    warning; extraction continues.

    Args:
        session: The run's catalog session
        table: Table owning the columns
        columns: Candidate columns

    Returns:
        Names of the columns confirmed as boolean
    """
    candidates = [c for c in columns if not c.is_resolved and is_small_integer_type(c.data_type)]
    return _analyze(session, table, candidates, InferredSemantic.BOOLEAN)


def analyze_guid_columns(session: CatalogSession, table: Table, columns: Iterable[Column]) -> list[str]:
    """Confirm GUID semantics for unresolved GUID-compatible columns.

    Args:
        session: The run's catalog session
        table: Table owning the columns
        columns: Candidate columns

    Returns:
        Names of the columns confirmed as GUIDs
    """
    candidates = [c for c in columns if not c.is_resolved and is_guid_compatible_type(c.data_type)]
    return _analyze(session, table, candidates, InferredSemantic.GUID)
