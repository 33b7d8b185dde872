"""Supported database backends."""

from enum import Enum

from schemascope.errors import UnsupportedBackendError


class BackendKind(str, Enum):
    """Database engines the extractor knows about"""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"
    ORACLE = "oracle"


# Names accepted on the command line and reported by SQLAlchemy dialects
_ALIASES: dict[str, BackendKind] = {
    "postgresql": BackendKind.POSTGRESQL,
    "postgres": BackendKind.POSTGRESQL,
    "mysql": BackendKind.MYSQL,
    "mariadb": BackendKind.MYSQL,
    "sqlserver": BackendKind.SQLSERVER,
    "mssql": BackendKind.SQLSERVER,
    "sqlite": BackendKind.SQLITE,
    "oracle": BackendKind.ORACLE,
}


def parse_backend_kind(name: str) -> BackendKind:
    """Map a backend or dialect name to a BackendKind.

    Args:
        name: Backend name such as 'postgresql', 'mssql' or 'sqlite'

    Returns:
        The matching BackendKind

    Raises:
        UnsupportedBackendError: If the name is not recognized
    """
    kind = _ALIASES.get(name.strip().lower())
    if kind is None:
        supported = ", ".join(sorted(_ALIASES))
        raise UnsupportedBackendError(f"Unknown database type: '{name}'. Must be one of: {supported}")
    return kind
