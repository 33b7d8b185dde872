"""PostgreSQL catalog adapter (pg_catalog and information_schema)."""

from typing import Any

from schemascope.database.adapters.base import classify_by_output_parameters, group_foreign_key_rows, parameter_name
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

_ROUTINES_SQL = """
    SELECT
        n.nspname,
        p.proname,
        p.proname || '_' || CAST(p.oid AS text) AS specific_name,
        pg_get_function_result(p.oid) AS return_type
    FROM pg_proc p
    JOIN pg_namespace n ON n.oid = p.pronamespace
    WHERE n.nspname = :schema
      AND p.prokind = :prokind
      AND NOT p.proretset
      AND NOT EXISTS (SELECT 1 FROM pg_aggregate ag WHERE ag.aggfnoid = p.oid)
    ORDER BY p.proname
"""


def _index_type(is_unique: bool, access_method: str) -> IndexType:
    if is_unique:
        return IndexType.UNIQUE
    match access_method:
        case "btree":
            return IndexType.BTREE
        case "hash":
            return IndexType.HASH
        case _:
            return IndexType.OTHER


class PostgresAdapter:
    """Catalog queries for PostgreSQL"""

    kind = BackendKind.POSTGRESQL

    def default_schema(self, session: CatalogSession) -> str:
        return "public"

    def list_tables(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT table_name, table_schema
            FROM information_schema.tables
            WHERE table_schema = :schema AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            {"schema": schema_name},
            stage="listing tables",
        )
        return [(row[0], row[1]) for row in rows]

    def list_views(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            """
            SELECT table_name, table_schema
            FROM information_schema.views
            WHERE table_schema = :schema
            ORDER BY table_name
            """,
            {"schema": schema_name},
            stage="listing views",
        )
        return [(row[0], row[1]) for row in rows]

    def list_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Column]:
        # format_type keeps the length modifier, e.g. character(36)
        rows = session.fetch_all(
            """
            SELECT
                a.attname,
                format_type(a.atttypid, a.atttypmod),
                NOT a.attnotnull,
                COALESCE(col_description(c.oid, a.attnum), '')
            FROM pg_attribute a
            JOIN pg_class c ON c.oid = a.attrelid
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = :schema
              AND c.relname = :table
              AND a.attnum > 0
              AND NOT a.attisdropped
            ORDER BY a.attnum
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading columns of {schema_name}.{table_name}",
        )
        return [
            Column(
                schema_name=schema_name,
                table_name=table_name,
                name=name,
                data_type=data_type,
                nullable=bool(nullable),
                comment=comment or "",
            )
            for name, data_type, nullable, comment in rows
        ]

    def list_indexes(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Index]:
        rows = session.fetch_all(
            """
            SELECT i.relname, a.attname, ix.indisunique, am.amname
            FROM pg_index ix
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_am am ON am.oid = i.relam
            CROSS JOIN LATERAL unnest(CAST(ix.indkey AS int2[])) WITH ORDINALITY AS k(attnum, position)
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = k.attnum
            WHERE n.nspname = :schema
              AND t.relname = :table
              AND NOT ix.indisprimary
            ORDER BY i.relname, k.position
            """,
            {"schema": schema_name, "table": table_name},
            stage=f"reading indexes of {schema_name}.{table_name}",
        )

        indexes: dict[str, Index] = {}
        for index_name, column_name, is_unique, access_method in rows:
            index = indexes.get(index_name)
            if index is None:
                index = Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    name=index_name,
                    type=_index_type(is_unique, access_method),
                )
                indexes[index_name] = index
            index.columns.append(column_name)
        return list(indexes.values())

    def list_relationships(self, session: CatalogSession, schema_name: str) -> list[Relationship]:
        # conkey/confkey are parallel arrays, so unnesting them together keeps the pairs aligned
        rows = session.fetch_all(
            """
            SELECT
                c.conname,
                ns.nspname,
                cl.relname,
                a.attname,
                fns.nspname,
                fcl.relname,
                fa.attname
            FROM pg_constraint c
            JOIN pg_class cl ON cl.oid = c.conrelid
            JOIN pg_namespace ns ON ns.oid = cl.relnamespace
            JOIN pg_class fcl ON fcl.oid = c.confrelid
            JOIN pg_namespace fns ON fns.oid = fcl.relnamespace
            CROSS JOIN LATERAL unnest(c.conkey, c.confkey) WITH ORDINALITY AS k(attnum, fattnum, position)
            JOIN pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
            JOIN pg_attribute fa ON fa.attrelid = c.confrelid AND fa.attnum = k.fattnum
            WHERE c.contype = 'f'
              AND ns.nspname = :schema
            ORDER BY cl.relname, c.conname, k.position
            """,
            {"schema": schema_name},
            stage="reading foreign keys",
        )
        return group_foreign_key_rows(rows)

    def _routine_parameters(self, session: CatalogSession, schema_name: str, specific_name: str) -> list[Parameter]:
        rows = session.fetch_all(
            """
            SELECT parameter_name, data_type, ordinal_position, parameter_mode, parameter_default
            FROM information_schema.parameters
            WHERE specific_schema = :schema AND specific_name = :specific_name
            ORDER BY ordinal_position
            """,
            {"schema": schema_name, "specific_name": specific_name},
            stage=f"reading parameters of {specific_name}",
        )
        return [
            Parameter(
                name=parameter_name(name, ordinal),
                data_type=data_type,
                ordinal=ordinal,
                is_output=mode in ("OUT", "INOUT"),
                has_default=default is not None,
            )
            for name, data_type, ordinal, mode, default in rows
        ]

    def _routines(self, session: CatalogSession, schema_name: str, prokind: str) -> list[Any]:
        return session.fetch_all(_ROUTINES_SQL, {"schema": schema_name, "prokind": prokind}, stage="listing routines")

    def list_scalar_functions(self, session: CatalogSession, schema_name: str) -> list[ScalarFunction]:
        functions = []
        for routine_schema, name, specific_name, return_type in self._routines(session, schema_name, "f"):
            parameters = self._routine_parameters(session, routine_schema, specific_name)
            functions.append(
                ScalarFunction(
                    schema_name=routine_schema,
                    name=name,
                    return_type=return_type or "",
                    # OUT parameters of a function make up its return value
                    parameters=[p for p in parameters if not p.is_output],
                )
            )
        return functions

    def list_stored_procedures(self, session: CatalogSession, schema_name: str) -> list[StoredProcedure]:
        procedures = []
        for routine_schema, name, specific_name, _ in self._routines(session, schema_name, "p"):
            parameters = self._routine_parameters(session, routine_schema, specific_name)
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
