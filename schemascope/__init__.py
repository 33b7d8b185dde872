"""Database schema introspection with column semantic inference.

Extracts tables, columns, indexes, relationships, functions and procedures
from PostgreSQL, MySQL, SQL Server and SQLite into one normalized model, then
infers boolean and GUID columns and, optionally, relationships from naming
conventions.
"""

from schemascope.csv_schema import load_schema_from_csv
from schemascope.database.extraction import apply_inference, extract_schema
from schemascope.errors import (
    CatalogQueryError,
    DatabaseConnectionError,
    ExtractionCancelledError,
    SamplingQueryError,
    SchemaFileError,
    SchemascopeError,
    UnsupportedBackendError,
)
from schemascope.models import (
    Column,
    ExtractionOptions,
    Index,
    IndexType,
    InferredSemantic,
    Parameter,
    ProcedureOutputType,
    Relationship,
    ResultColumn,
    ScalarFunction,
    Schema,
    StoredProcedure,
    Table,
)

__version__ = "0.1.0"

__all__ = [
    # Extraction
    "extract_schema",
    "apply_inference",
    "load_schema_from_csv",
    # Models
    "Column",
    "ExtractionOptions",
    "Index",
    "IndexType",
    "InferredSemantic",
    "Parameter",
    "ProcedureOutputType",
    "Relationship",
    "ResultColumn",
    "ScalarFunction",
    "Schema",
    "StoredProcedure",
    "Table",
    # Errors
    "CatalogQueryError",
    "DatabaseConnectionError",
    "ExtractionCancelledError",
    "SamplingQueryError",
    "SchemaFileError",
    "SchemascopeError",
    "UnsupportedBackendError",
]
