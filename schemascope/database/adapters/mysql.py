"""MySQL / MariaDB catalog adapter (INFORMATION_SCHEMA)."""

from schemascope.database.adapters.base import (
    classify_by_output_parameters,
    group_foreign_key_rows,
    is_yes,
    parameter_name,
)
from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.models import (
    Column,
    Index,
    IndexType,
    Parameter,
    Relationship,
    ScalarFunction,
    StoredProcedure,
)


def _index_type(non_unique: int, index_type: str | None) -> IndexType:
    if not int(non_unique):
        return IndexType.UNIQUE
    match (index_type or "").upper():
        case "BTREE":
            return IndexType.BTREE
        case "HASH":
            return IndexType.HASH
        case "FULLTEXT":
            return IndexType.FULLTEXT
        case _:
            return IndexType.OTHER


class MySqlAdapter:
    """Catalog queries for MySQL and MariaDB, where a schema is a database"""

    kind = BackendKind.MYSQL

    def default_schema(self, session: CatalogSession) -> str:
        return session.fetch_scalar("SELECT DATABASE()", stage="reading current database") or ""

    def list_tables(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT TABLE_NAME
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = :schema AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            {"schema": schema_name},
            stage="listing tables",
        )
        return [(row[0], schema_name) for row in rows]

    def list_views(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT TABLE_NAME
            FROM INFORMATION_SCHEMA.VIEWS
            WHERE TABLE_SCHEMA = :schema
            ORDER BY TABLE_NAME
            """,
            {"schema": schema_name},
            stage="listing views",
        )
        return [(row[0], schema_name) for row in rows]

    def list_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Column]:
        # COLUMN_TYPE keeps length and modifiers (tinyint(1), char(36)); DATA_TYPE does not
        rows = session.fetch_all(
            """
            SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COALESCE(COLUMN_COMMENT, '')
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = :schema AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading columns of {schema_name}.{table_name}",
        )
        return [
            Column(
                schema_name=schema_name,
                table_name=table_name,
                name=name,
                data_type=column_type,
                nullable=is_yes(nullable),
                comment=comment or "",
            )
            for name, column_type, nullable, comment in rows
        ]

    def list_indexes(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Index]:
        rows = session.fetch_all(
            """
            SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_TYPE
            FROM INFORMATION_SCHEMA.STATISTICS
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_NAME = :table
              AND INDEX_NAME <> 'PRIMARY'
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading indexes of {schema_name}.{table_name}",
        )

        indexes: dict[str, Index] = {}
        for index_name, column_name, non_unique, index_type in rows:
            index = indexes.get(index_name)
            if index is None:
                index = Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    name=index_name,
                    type=_index_type(non_unique, index_type),
                )
                indexes[index_name] = index
            # Functional index parts have no column name
            if column_name is not None:
                index.columns.append(column_name)
        return list(indexes.values())

    def list_relationships(self, session: CatalogSession, schema_name: str) -> list[Relationship]:
        rows = session.fetch_all(
            """
            SELECT
                CONSTRAINT_NAME,
                TABLE_SCHEMA,
                TABLE_NAME,
                COLUMN_NAME,
                REFERENCED_TABLE_SCHEMA,
                REFERENCED_TABLE_NAME,
                REFERENCED_COLUMN_NAME
            FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
            WHERE TABLE_SCHEMA = :schema
              AND REFERENCED_TABLE_NAME IS NOT NULL
            ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION
            """,
            {"schema": schema_name},
            stage="reading foreign keys",
        )
        return group_foreign_key_rows(rows)

    def _routine_parameters(self, session: CatalogSession, schema_name: str, routine_name: str) -> list[Parameter]:
        # Ordinal 0 is a function's return value
        rows = session.fetch_all(
            """
            SELECT PARAMETER_NAME, DATA_TYPE, ORDINAL_POSITION, PARAMETER_MODE
            FROM INFORMATION_SCHEMA.PARAMETERS
            WHERE SPECIFIC_SCHEMA = :schema
              AND SPECIFIC_NAME = :routine
              AND ORDINAL_POSITION > 0
            ORDER BY ORDINAL_POSITION
            """,
            {"schema": schema_name, "routine": routine_name},
            stage=f"reading parameters of {routine_name}",
        )
        return [
            Parameter(
                name=parameter_name(name, ordinal),
                data_type=data_type,
                ordinal=ordinal,
                is_output=(mode or "IN") in ("OUT", "INOUT"),
            )
            for name, data_type, ordinal, mode in rows
        ]

    def list_scalar_functions(self, session: CatalogSession, schema_name: str) -> list[ScalarFunction]:
        rows = session.fetch_all(
            """
            SELECT ROUTINE_SCHEMA, ROUTINE_NAME, DTD_IDENTIFIER
            FROM INFORMATION_SCHEMA.ROUTINES
            WHERE ROUTINE_SCHEMA = :schema AND ROUTINE_TYPE = 'FUNCTION'
            ORDER BY ROUTINE_NAME
            """,
            {"schema": schema_name},
            stage="listing functions",
        )
        return [
            ScalarFunction(
                schema_name=routine_schema,
                name=name,
                return_type=return_type or "varchar",
                parameters=self._routine_parameters(session, routine_schema, name),
            )
            for routine_schema, name, return_type in rows
        ]

    def list_stored_procedures(self, session: CatalogSession, schema_name: str) -> list[StoredProcedure]:
        rows = session.fetch_all(
            """
            SELECT ROUTINE_SCHEMA, ROUTINE_NAME
            FROM INFORMATION_SCHEMA.ROUTINES
            WHERE ROUTINE_SCHEMA = :schema AND ROUTINE_TYPE = 'PROCEDURE'
            ORDER BY ROUTINE_NAME
            """,
            {"schema": schema_name},
            stage="listing procedures",
        )

        procedures = []
        for routine_schema, name in rows:
            parameters = self._routine_parameters(session, routine_schema, name)
            output_type, result_columns = classify_by_output_parameters(parameters)
            procedures.append(
                StoredProcedure(
                    schema_name=routine_schema,
                    name=name,
                    parameters=parameters,
                    output_type=output_type,
                    result_columns=result_columns,
                )
            )
        return procedures
