"""SQL Server catalog adapter (sys.* catalog views and INFORMATION_SCHEMA)."""

import logging
import re

from schemascope.database.adapters.base import group_foreign_key_rows, is_yes, parameter_name
from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.models import (
    Column,
    Index,
    IndexType,
    Parameter,
    ProcedureOutputType,
    Relationship,
    ResultColumn,
    ScalarFunction,
    StoredProcedure,
)

logger = logging.getLogger(__name__)

_LENGTH_TYPES = frozenset({"char", "nchar", "varchar", "nvarchar", "binary", "varbinary"})

_LINE_COMMENT = re.compile(r"--[^\r\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_STRING_LITERAL = re.compile(r"'[^']*'")
_STATEMENT_SELECT = re.compile(r"^\s*SELECT\s+(?!.*\sINTO\s)", re.MULTILINE)

_RESULT_SET_SQL = """
    SELECT name, system_type_name, is_nullable, column_ordinal
    FROM sys.dm_exec_describe_first_result_set_for_object(OBJECT_ID(:full_name), NULL)
    WHERE name IS NOT NULL AND error_number IS NULL
    ORDER BY column_ordinal
"""


def format_declared_type(data_type: str, max_length: int | None) -> str:
    """Combine an INFORMATION_SCHEMA type and length into a declared type.

    Args:
        data_type: DATA_TYPE, e.g. 'nvarchar'
        max_length: CHARACTER_MAXIMUM_LENGTH, -1 for MAX

    Returns:
        e.g. 'nvarchar(36)' or 'varchar(max)'; other types unchanged
    """
    if data_type.lower() not in _LENGTH_TYPES or max_length is None:
        return data_type
    return f"{data_type}(max)" if max_length == -1 else f"{data_type}({max_length})"


def has_tabular_select(definition: str) -> bool:
    """Guess from a procedure body whether it returns a result set.

    A statement-level SELECT counts unless the body only uses SELECT to feed
    INSERT INTO or SELECT INTO.
    """
    cleaned = _LINE_COMMENT.sub("", definition)
    cleaned = _BLOCK_COMMENT.sub("", cleaned)
    cleaned = _STRING_LITERAL.sub("''", cleaned).upper()
    if "INSERT INTO" in cleaned or "SELECT INTO" in cleaned:
        return False
    return bool(_STATEMENT_SELECT.search(cleaned))


def _index_type(is_unique: bool, type_desc: str) -> IndexType:
    if is_unique:
        return IndexType.UNIQUE
    match type_desc.upper():
        case "CLUSTERED" | "NONCLUSTERED":
            return IndexType.BTREE
        case "NONCLUSTERED HASH":
            return IndexType.HASH
        case _:
            return IndexType.OTHER


class SqlServerAdapter:
    """Catalog queries for Microsoft SQL Server"""

    kind = BackendKind.SQLSERVER

    def default_schema(self, session: CatalogSession) -> str:
        return "dbo"

    def list_tables(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT TABLE_NAME, TABLE_SCHEMA
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_TYPE = 'BASE TABLE' AND TABLE_SCHEMA = :schema
            ORDER BY TABLE_NAME
            """,
            {"schema": schema_name},
            stage="listing tables",
        )
        return [(row[0], row[1]) for row in rows]

    def list_views(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT TABLE_NAME, TABLE_SCHEMA
            FROM INFORMATION_SCHEMA.VIEWS
            WHERE TABLE_SCHEMA = :schema
            ORDER BY TABLE_NAME
            """,
            {"schema": schema_name},
            stage="listing views",
        )
        return [(row[0], row[1]) for row in rows]

    def list_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Column]:
        rows = session.fetch_all(
            """
            SELECT
                c.COLUMN_NAME,
                c.DATA_TYPE,
                c.CHARACTER_MAXIMUM_LENGTH,
                c.IS_NULLABLE,
                ISNULL(CAST(ep.value AS NVARCHAR(MAX)), '')
            FROM INFORMATION_SCHEMA.COLUMNS c
            LEFT JOIN sys.columns sc
                ON sc.name = c.COLUMN_NAME
                AND sc.object_id = OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME))
            LEFT JOIN sys.extended_properties ep
                ON ep.major_id = sc.object_id
                AND ep.minor_id = sc.column_id
                AND ep.name = 'MS_Description'
            WHERE c.TABLE_SCHEMA = :schema AND c.TABLE_NAME = :table
            ORDER BY c.ORDINAL_POSITION
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading columns of {schema_name}.{table_name}",
        )
        return [
            Column(
                schema_name=schema_name,
                table_name=table_name,
                name=name,
                data_type=format_declared_type(data_type, max_length),
                nullable=is_yes(nullable),
                comment=comment or "",
            )
            for name, data_type, max_length, nullable, comment in rows
        ]

    def list_indexes(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Index]:
        # Included columns are not part of the key
        rows = session.fetch_all(
            """
            SELECT i.name, c.name, i.is_unique, i.type_desc
            FROM sys.indexes i
            JOIN sys.index_columns ic ON ic.object_id = i.object_id AND ic.index_id = i.index_id
            JOIN sys.columns c ON c.object_id = ic.object_id AND c.column_id = ic.column_id
            JOIN sys.tables t ON t.object_id = i.object_id
            JOIN sys.schemas s ON s.schema_id = t.schema_id
            WHERE s.name = :schema
              AND t.name = :table
              AND i.is_primary_key = 0
              AND i.name IS NOT NULL
              AND ic.is_included_column = 0
            ORDER BY i.name, ic.key_ordinal
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading indexes of {schema_name}.{table_name}",
        )

        indexes: dict[str, Index] = {}
        for index_name, column_name, is_unique, type_desc in rows:
            index = indexes.get(index_name)
            if index is None:
                index = Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    name=index_name,
                    type=_index_type(bool(is_unique), type_desc or ""),
                )
                indexes[index_name] = index
            index.columns.append(column_name)
        return list(indexes.values())

    def list_relationships(self, session: CatalogSession, schema_name: str) -> list[Relationship]:
        rows = session.fetch_all(
            """
            SELECT
                fk.name,
                SCHEMA_NAME(t.schema_id),
                t.name,
                c.name,
                SCHEMA_NAME(rt.schema_id),
                rt.name,
                rc.name
            FROM sys.foreign_keys fk
            JOIN sys.foreign_key_columns fkc ON fkc.constraint_object_id = fk.object_id
            JOIN sys.tables t ON t.object_id = fkc.parent_object_id
            JOIN sys.columns c ON c.object_id = fkc.parent_object_id AND c.column_id = fkc.parent_column_id
            JOIN sys.tables rt ON rt.object_id = fkc.referenced_object_id
            JOIN sys.columns rc ON rc.object_id = fkc.referenced_object_id AND rc.column_id = fkc.referenced_column_id
            WHERE SCHEMA_NAME(t.schema_id) = :schema
            ORDER BY t.name, fk.name, fkc.constraint_column_id
            """,
            {"schema": schema_name},
            stage="reading foreign keys",
        )
        return group_foreign_key_rows(rows)

    def _parameters(self, session: CatalogSession, schema_name: str, object_name: str) -> list[Parameter]:
        rows = session.fetch_all(
            """
            SELECT p.name, TYPE_NAME(p.user_type_id), p.parameter_id, p.is_output, p.has_default_value
            FROM sys.parameters p
            JOIN sys.objects o ON o.object_id = p.object_id
            WHERE SCHEMA_NAME(o.schema_id) = :schema
              AND o.name = :name
              AND p.parameter_id > 0
            ORDER BY p.parameter_id
            """,
            {"schema": schema_name, "name": object_name},
            stage=f"reading parameters of {schema_name}.{object_name}",
        )
        return [
            Parameter(
                name=parameter_name(name, ordinal),
                data_type=data_type,
                ordinal=ordinal,
                is_output=bool(is_output),
                has_default=bool(has_default),
            )
            for name, data_type, ordinal, is_output, has_default in rows
        ]

    def list_scalar_functions(self, session: CatalogSession, schema_name: str) -> list[ScalarFunction]:
        rows = session.fetch_all(
            """
            SELECT SCHEMA_NAME(o.schema_id), o.name, TYPE_NAME(r.user_type_id)
            FROM sys.objects o
            JOIN sys.sql_modules m ON m.object_id = o.object_id
            LEFT JOIN sys.parameters r ON r.object_id = o.object_id AND r.parameter_id = 0
            WHERE o.type = 'FN' AND SCHEMA_NAME(o.schema_id) = :schema
            ORDER BY o.name
            """,
            {"schema": schema_name},
            stage="listing functions",
        )
        return [
            ScalarFunction(
                schema_name=function_schema,
                name=name,
                return_type=return_type or "sql_variant",
                parameters=self._parameters(session, function_schema, name),
            )
            for function_schema, name, return_type in rows
        ]

    def _result_columns(self, session: CatalogSession, schema_name: str, procedure_name: str) -> list[ResultColumn]:
        rows = session.fetch_all(
            _RESULT_SET_SQL,
            {"full_name": f"{session.quote(schema_name)}.{session.quote(procedure_name)}"},
            stage=f"describing result set of {schema_name}.{procedure_name}",
        )
        return [
            ResultColumn(name=name, data_type=data_type or "", nullable=bool(nullable), ordinal=ordinal)
            for name, data_type, nullable, ordinal in rows
        ]

    def _definition(self, session: CatalogSession, schema_name: str, procedure_name: str) -> str:
        definition = session.fetch_scalar(
            """
            SELECT m.definition
            FROM sys.sql_modules m
            JOIN sys.procedures p ON p.object_id = m.object_id
            WHERE SCHEMA_NAME(p.schema_id) = :schema AND p.name = :name
            """,
            {"schema": schema_name, "name": procedure_name},
            stage=f"reading definition of {schema_name}.{procedure_name}",
        )
        return definition or ""

    def _classify(
        self, session: CatalogSession, schema_name: str, procedure_name: str, parameters: list[Parameter]
    ) -> tuple[ProcedureOutputType, list[ResultColumn]]:
        if any(p.is_output for p in parameters):
            return ProcedureOutputType.SCALAR, []

        result_columns = self._result_columns(session, schema_name, procedure_name)
        if result_columns:
            return ProcedureOutputType.TABULAR, result_columns

        # Dynamic SQL and temp tables defeat result set description
        if has_tabular_select(self._definition(session, schema_name, procedure_name)):
            logger.debug(f"Procedure {schema_name}.{procedure_name} classified as tabular from its definition")
            return ProcedureOutputType.TABULAR, []
        return ProcedureOutputType.NONE, []

    def list_stored_procedures(self, session: CatalogSession, schema_name: str) -> list[StoredProcedure]:
        rows = session.fetch_all(
            """
            SELECT SCHEMA_NAME(p.schema_id), p.name
            FROM sys.procedures p
            WHERE SCHEMA_NAME(p.schema_id) = :schema
            ORDER BY p.name
            """,
            {"schema": schema_name},
            stage="listing procedures",
        )

        procedures = []
        for procedure_schema, name in rows:
            parameters = self._parameters(session, procedure_schema, name)
            output_type, result_columns = self._classify(session, procedure_schema, name, parameters)
            procedures.append(
                StoredProcedure(
                    schema_name=procedure_schema,
                    name=name,
                    parameters=parameters,
                    output_type=output_type,
                    result_columns=result_columns,
                )
            )
        return procedures
