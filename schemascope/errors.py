"""Exception hierarchy for schema extraction."""


class SchemascopeError(Exception):
    """Base class for all schemascope errors."""


class DatabaseConnectionError(SchemascopeError):
    """The database could not be reached or the login was rejected."""


class UnsupportedBackendError(SchemascopeError):
    """No catalog adapter exists for the requested backend."""


class CatalogQueryError(SchemascopeError):
    """A metadata query failed. Extraction cannot continue without it."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Catalog query failed while {stage}: {message}")


class SamplingQueryError(SchemascopeError):
    """A data verification query against a user table failed."""

    def __init__(self, table: str, column: str, message: str) -> None:
        self.table = table
        self.column = column
        super().__init__(f"Sampling query failed for {table}.{column}: {message}")


class ExtractionCancelledError(SchemascopeError):
    """The caller asked for the extraction to stop."""


class SchemaFileError(SchemascopeError):
    """A CSV schema description file is missing columns or unreadable."""
