"""The single connection wrapper used for one extraction run."""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Connection, Row
from sqlalchemy.exc import SQLAlchemyError

from schemascope.database.backends import BackendKind
from schemascope.errors import CatalogQueryError, ExtractionCancelledError, SamplingQueryError

logger = logging.getLogger(__name__)


class CancelEvent(Protocol):
    """Anything with an ``is_set()`` method, e.g. ``threading.Event``"""

    def is_set(self) -> bool: ...


class CatalogSession:
    """Runs catalog and sampling statements on one open connection.

    Every statement of a run goes through this object, so cancellation is
    checked before each one and driver errors surface as schemascope errors.
    """

    def __init__(self, connection: Connection, kind: BackendKind, cancel_event: CancelEvent | None = None) -> None:
        self.connection = connection
        self.kind = kind
        self.cancel_event = cancel_event
        self.statement_count = 0

    def check_cancelled(self) -> None:
        """Raise ExtractionCancelledError if the caller asked to stop"""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ExtractionCancelledError("Schema extraction was cancelled")

    def fetch_all(self, sql: str, params: Mapping[str, Any] | None = None, *, stage: str) -> list[Row[Any]]:
        """Run a catalog query and return all rows.

        Args:
            sql: Statement text with ``:name`` bind parameters
            params: Bind parameter values
            stage: What the query is for, used in error messages

        Returns:
            All result rows

        Raises:
            CatalogQueryError: If the database rejects the query
            ExtractionCancelledError: If cancellation was requested
        """
        self.check_cancelled()
        self.statement_count += 1
        logger.debug(f"Catalog query ({stage})")
        try:
            return list(self.connection.execute(text(sql), dict(params or {})).fetchall())
        except SQLAlchemyError as e:
            raise CatalogQueryError(stage, str(e)) from e

    def fetch_scalar(self, sql: str, params: Mapping[str, Any] | None = None, *, stage: str) -> Any:
        """Run a catalog query and return the first column of the first row, or None"""
        rows = self.fetch_all(sql, params, stage=stage)
        return rows[0][0] if rows else None

    def sample(self, sql: str, *, table: str, column: str) -> list[Any]:
        """Run a sampling query against user data and return the first column.

        Raises:
            SamplingQueryError: If the database rejects the query
            ExtractionCancelledError: If cancellation was requested
        """
        self.check_cancelled()
        self.statement_count += 1
        logger.debug(f"Sampling {table}.{column}")
        try:
            return [row[0] for row in self.connection.execute(text(sql)).fetchall()]
        except SQLAlchemyError as e:
            raise SamplingQueryError(table, column, str(e)) from e

    def recover(self) -> None:
        """Roll back the current transaction after a failed statement.

        Some engines (PostgreSQL) refuse further statements in a transaction
        that saw an error.
        """
        self.connection.rollback()

    def quote(self, identifier: str) -> str:
        """Quote an identifier for this backend"""
        match self.kind:
            case BackendKind.MYSQL:
                return "`" + identifier.replace("`", "``") + "`"
            case BackendKind.SQLSERVER:
                return "[" + identifier.replace("]", "]]") + "]"
            case _:
                return '"' + identifier.replace('"', '""') + '"'

    def qualified_name(self, schema_name: str, table_name: str) -> str:
        """Quote a possibly schema-qualified table name"""
        if schema_name:
            return f"{self.quote(schema_name)}.{self.quote(table_name)}"
        return self.quote(table_name)
