"""Schema extraction orchestration.

One run opens one connection, walks the catalog through a backend adapter,
applies the inference stages and returns the assembled Schema.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from schemascope.database.adapters import CatalogAdapter, create_adapter
from schemascope.database.backends import parse_backend_kind
from schemascope.database.engine import create_database_engine, detect_backend_kind, sanitize_connection_string
from schemascope.database.session import CancelEvent, CatalogSession
from schemascope.errors import DatabaseConnectionError
from schemascope.inference.name_patterns import apply_name_inference
from schemascope.inference.relationships import infer_relationships
from schemascope.inference.sampling import analyze_boolean_columns, analyze_guid_columns
from schemascope.models import ExtractionOptions, Schema, Table

logger = logging.getLogger(__name__)


def extract_schema(
    connection_string: str,
    options: ExtractionOptions | None = None,
    database_type: str | None = None,
    cancel_event: CancelEvent | None = None,
) -> Schema:
    """Extract the schema of a live database.

    Args:
        connection_string: SQLAlchemy connection URL
        options: Extraction options (defaults to ExtractionOptions())
        database_type: Backend name; detected from the URL when omitted
        cancel_event: Object whose ``is_set()`` requests cancellation

    Returns:
        The extracted Schema

    Raises:
        UnsupportedBackendError: If the backend has no adapter (checked before connecting)
        DatabaseConnectionError: If the database cannot be reached or its driver is missing
        CatalogQueryError: If a catalog query fails
        ExtractionCancelledError: If cancellation was requested
    """
    options = options or ExtractionOptions()
    kind = parse_backend_kind(database_type) if database_type else detect_backend_kind(connection_string)
    adapter = create_adapter(kind)
    safe_connection = sanitize_connection_string(connection_string)

    logger.info(f"Extracting {kind.value} schema from {safe_connection}")

    try:
        engine = create_database_engine(connection_string, kind)
    except ImportError as e:
        raise DatabaseConnectionError(f"No database driver for {safe_connection}: {e}") from e
    except SQLAlchemyError as e:
        raise DatabaseConnectionError(f"Cannot create engine for {safe_connection}: {e}") from e

    try:
        try:
            connection = engine.connect()
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(f"Cannot connect to {safe_connection}: {e}") from e

        with connection:
            session = CatalogSession(connection, kind, cancel_event)
            schema = run_extraction(adapter, session, options)
            logger.info(
                f"Extracted {len(schema.tables)} tables, {len(schema.relationships)} relationships "
                f"using {session.statement_count} statements"
            )
            return schema
    finally:
        engine.dispose()


def _extract_table(
    adapter: CatalogAdapter,
    session: CatalogSession,
    options: ExtractionOptions,
    table: Table,
) -> None:
    table.columns = adapter.list_columns(session, table.schema_name, table.name)

    if options.enable_type_inference:
        resolved = apply_name_inference(table.columns)
        if resolved:
            logger.debug(f"{table.full_name}: {resolved} columns resolved by name")
        # Only columns the names left unresolved are sampled
        if options.enable_data_sampling:
            analyze_boolean_columns(session, table, table.columns)
            analyze_guid_columns(session, table, table.columns)

    table.indexes = adapter.list_indexes(session, table.schema_name, table.name)


def run_extraction(adapter: CatalogAdapter, session: CatalogSession, options: ExtractionOptions) -> Schema:
    """Run every extraction step on an open session.

    Args:
        adapter: Catalog adapter for the session's backend
        session: Open catalog session
        options: Extraction options

    Returns:
        The assembled Schema
    """
    schema_name = options.schema_filter or adapter.default_schema(session)
    logger.debug(f"Using schema '{schema_name}'")

    entries = [(name, table_schema, False) for name, table_schema in adapter.list_tables(session, schema_name)]
    if options.include_views:
        entries.extend((name, view_schema, True) for name, view_schema in adapter.list_views(session, schema_name))

    schema = Schema()
    for name, table_schema, is_view in entries:
        session.check_cancelled()
        table = Table(schema_name=table_schema, name=name, is_view=is_view)
        _extract_table(adapter, session, options, table)
        schema.tables.append(table)

    if options.include_relationships:
        relationships = adapter.list_relationships(session, schema_name)
        if not relationships and options.enable_legacy_relationship_inference:
            logger.debug("No foreign keys found, inferring relationships from names")
            relationships = infer_relationships(schema.tables)
        schema.set_relationships(relationships)

    if options.include_user_defined_functions:
        schema.scalar_functions = adapter.list_scalar_functions(session, schema_name)

    if options.include_stored_procedures:
        schema.stored_procedures = adapter.list_stored_procedures(session, schema_name)

    return schema


def apply_inference(schema: Schema, options: ExtractionOptions | None = None) -> Schema:
    """Run the offline inference stages over an already built Schema.

    Used for schemas loaded from files, where there is no connection to
    sample data from.

    Args:
        schema: Schema to refine in place
        options: Extraction options (defaults to ExtractionOptions())

    Returns:
        The same Schema
    """
    options = options or ExtractionOptions()

    if options.enable_type_inference:
        for table in schema.tables:
            apply_name_inference(table.columns)

    if not options.include_relationships:
        schema.set_relationships([])
    elif not schema.relationships and options.enable_legacy_relationship_inference:
        schema.set_relationships(infer_relationships(schema.tables))
    else:
        schema.set_relationships(schema.relationships)

    return schema
