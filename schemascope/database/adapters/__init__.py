"""Per-backend catalog adapters"""

from schemascope.database.adapters.base import CatalogAdapter
from schemascope.database.adapters.mysql import MySqlAdapter
from schemascope.database.adapters.postgresql import PostgresAdapter
from schemascope.database.adapters.sqlite import SqliteAdapter
from schemascope.database.adapters.sqlserver import SqlServerAdapter
from schemascope.database.backends import BackendKind
from schemascope.errors import UnsupportedBackendError

__all__ = [
    "CatalogAdapter",
    "MySqlAdapter",
    "PostgresAdapter",
    "SqlServerAdapter",
    "SqliteAdapter",
    "create_adapter",
]


def create_adapter(kind: BackendKind) -> CatalogAdapter:
    """Return the catalog adapter for a backend.

    Args:
        kind: The database backend

    Returns:
        A fresh adapter instance

    Raises:
        UnsupportedBackendError: For Oracle, which is not supported
    """
    match kind:
        case BackendKind.POSTGRESQL:
            return PostgresAdapter()
        case BackendKind.MYSQL:
            return MySqlAdapter()
        case BackendKind.SQLSERVER:
            return SqlServerAdapter()
        case BackendKind.SQLITE:
            return SqliteAdapter()
        case BackendKind.ORACLE:
            raise UnsupportedBackendError("Oracle is not supported. Use postgresql, mysql, sqlserver or sqlite.")
        case _:
            raise UnsupportedBackendError(f"No catalog adapter for database type '{kind}'")
