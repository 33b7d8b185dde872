"""Live database access: engines, catalog sessions, backend adapters and extraction.

Import the extraction entry point from ``schemascope.database.extraction``.
"""
