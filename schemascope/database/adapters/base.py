"""The catalog adapter protocol and helpers shared by the backend adapters."""

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.models import (
    Column,
    Index,
    Parameter,
    ProcedureOutputType,
    Relationship,
    ResultColumn,
    ScalarFunction,
    StoredProcedure,
)


class CatalogAdapter(Protocol):
    """Catalog queries for one database engine.

    Implementations issue engine-native introspection statements through the
    session and normalize the results into the shared models.
    """

    kind: BackendKind

    def default_schema(self, session: CatalogSession) -> str: ...

    def list_tables(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]: ...

    def list_views(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]: ...

    def list_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Column]: ...

    def list_indexes(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Index]: ...

    def list_relationships(self, session: CatalogSession, schema_name: str) -> list[Relationship]: ...

    def list_scalar_functions(self, session: CatalogSession, schema_name: str) -> list[ScalarFunction]: ...

    def list_stored_procedures(self, session: CatalogSession, schema_name: str) -> list[StoredProcedure]: ...


def group_foreign_key_rows(rows: Iterable[Sequence[Any]]) -> list[Relationship]:
    """Group column-level foreign key rows into one Relationship per constraint.

    Rows must already be ordered by constraint and ordinal position. Each row is
    ``(constraint, schema_from, table_from, column_from, schema_to, table_to, column_to)``.
    Constraint names are only unique per table on some engines, so the source
    table is part of the grouping key.

    Args:
        rows: Foreign key rows

    Returns:
        Relationships in first-seen order
    """
    groups: dict[tuple[str, str, str], dict[str, Any]] = {}
    for constraint, schema_from, table_from, column_from, schema_to, table_to, column_to in rows:
        key = (schema_from or "", table_from, constraint)
        group = groups.get(key)
        if group is None:
            group = {
                "name": constraint,
                "schema_from": schema_from or "",
                "table_from": table_from,
                "schema_to": schema_to or schema_from or "",
                "table_to": table_to,
                "keys": [],
                "foreigns": [],
            }
            groups[key] = group
        group["keys"].append(column_to)
        group["foreigns"].append(column_from)

    return [Relationship(**group) for group in groups.values()]


def parameter_name(raw_name: str | None, ordinal: int) -> str:
    """Normalize a catalog parameter name, synthesizing one when missing"""
    if not raw_name:
        return f"p{ordinal}"
    return raw_name.lstrip("@")


def classify_by_output_parameters(parameters: list[Parameter]) -> tuple[ProcedureOutputType, list[ResultColumn]]:
    """Classify a procedure's output from its OUT/INOUT parameters.

    No output parameter means no output, one means a scalar, several form one
    result row whose columns are the output parameters.

    Args:
        parameters: The procedure's parameters in order

    Returns:
        The output type and, for tabular output, the result columns
    """
    outputs = [p for p in parameters if p.is_output]
    if not outputs:
        return ProcedureOutputType.NONE, []
    if len(outputs) == 1:
        return ProcedureOutputType.SCALAR, []
    columns = [
        ResultColumn(name=p.name, data_type=p.data_type, nullable=True, ordinal=position)
        for position, p in enumerate(outputs, start=1)
    ]
    return ProcedureOutputType.TABULAR, columns


def is_yes(value: Any) -> bool:
    """Interpret catalog 'YES'/'NO' style flags"""
    return str(value).strip().upper() in ("YES", "Y", "TRUE", "1")
