"""
Database package.

Provides the shared aiosqlite connection manager and schema initialization.

Public API:
    - db_connection: Module-level ConnectionManager singleton
    - SchemaManager: Table creation and schema version tracking
"""
