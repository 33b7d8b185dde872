"""SQLite catalog adapter (sqlite_master and pragma table-valued functions)."""

from schemascope.database.adapters.base import group_foreign_key_rows
from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.models import Column, Index, IndexType, Relationship, ScalarFunction, StoredProcedure


class SqliteAdapter:
    """Catalog queries for SQLite"""

    kind = BackendKind.SQLITE

    def default_schema(self, session: CatalogSession) -> str:
        return "main"

    def _list_objects(self, session: CatalogSession, schema_name: str, object_type: str) -> list[tuple[str, str]]:
        rows = session.fetch_all(
            f"""
            SELECT name
            FROM {session.quote(schema_name)}.sqlite_master
            WHERE type = :object_type AND name NOT LIKE 'sqlite_%'
            ORDER BY name
            """,
            {"object_type": object_type},
            stage=f"listing {object_type}s",
        )
        return [(row[0], schema_name) for row in rows]

    def list_tables(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        return self._list_objects(session, schema_name, "table")

    def list_views(self, session: CatalogSession, schema_name: str) -> list[tuple[str, str]]:
        return self._list_objects(session, schema_name, "view")

    def list_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Column]:
        rows = session.fetch_all(
            "SELECT name, type, \"notnull\" FROM pragma_table_info(:table, :schema) ORDER BY cid",
            {"table": table_name, "schema": schema_name},
            stage=f"reading columns of {table_name}",
        )
        return [
            Column(
                schema_name=schema_name,
                table_name=table_name,
                name=name,
                data_type=declared_type or "",
                nullable=not notnull,
                comment="",
            )
            for name, declared_type, notnull in rows
        ]

    def list_indexes(self, session: CatalogSession, schema_name: str, table_name: str) -> list[Index]:
        index_rows = session.fetch_all(
            "SELECT name, \"unique\", origin FROM pragma_index_list(:table, :schema) ORDER BY seq",
            {"table": table_name, "schema": schema_name},
            stage=f"listing indexes of {table_name}",
        )

        indexes = []
        for index_name, unique, origin in index_rows:
            # Primary keys are not indexes in the model; auto-indexes back UNIQUE constraints
            if origin == "pk" or index_name.startswith("sqlite_autoindex_"):
                continue
            column_rows = session.fetch_all(
                "SELECT name FROM pragma_index_info(:index, :schema) ORDER BY seqno",
                {"index": index_name, "schema": schema_name},
                stage=f"reading columns of index {index_name}",
            )
            indexes.append(
                Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    name=index_name,
                    columns=[row[0] for row in column_rows if row[0] is not None],
                    type=IndexType.UNIQUE if unique else IndexType.BTREE,
                )
            )
        return indexes

    def _primary_key_columns(self, session: CatalogSession, schema_name: str, table_name: str) -> list[str]:
        rows = session.fetch_all(
            "SELECT name FROM pragma_table_info(:table, :schema) WHERE pk > 0 ORDER BY pk",
            {"table": table_name, "schema": schema_name},
            stage=f"reading primary key of {table_name}",
        )
        return [row[0] for row in rows]

    def list_relationships(self, session: CatalogSession, schema_name: str) -> list[Relationship]:
        fk_rows = []
        for table_name, _ in self.list_tables(session, schema_name):
            rows = session.fetch_all(
                """
                SELECT id, "table", "from", "to"
                FROM pragma_foreign_key_list(:table, :schema)
                ORDER BY id, seq
                """,
                {"table": table_name, "schema": schema_name},
                stage=f"reading foreign keys of {table_name}",
            )

            target_primary_keys: dict[str, list[str]] = {}
            for fk_id, referenced_table, from_column, to_column in rows:
                if to_column is None:
                    # REFERENCES parent without a column list targets the parent's primary key
                    if referenced_table not in target_primary_keys:
                        target_primary_keys[referenced_table] = self._primary_key_columns(
                            session, schema_name, referenced_table
                        )
                    pk_columns = target_primary_keys[referenced_table]
                    position = sum(1 for row in fk_rows if row[0] == f"fk_{table_name}_{referenced_table}_{fk_id}")
                    to_column = pk_columns[position] if position < len(pk_columns) else "id"
                fk_rows.append(
                    (
                        f"fk_{table_name}_{referenced_table}_{fk_id}",
                        schema_name,
                        table_name,
                        from_column,
                        schema_name,
                        referenced_table,
                        to_column,
                    )
                )
        return group_foreign_key_rows(fk_rows)

    def list_scalar_functions(self, session: CatalogSession, schema_name: str) -> list[ScalarFunction]:
        # SQLite functions are registered by the application at runtime, not stored in the file
        return []

    def list_stored_procedures(self, session: CatalogSession, schema_name: str) -> list[StoredProcedure]:
        return []
