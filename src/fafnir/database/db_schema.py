"""
Database schema initialization.

Creates the warnings table, the mute role outbox, their triggers and the
schema version marker.
"""

import aiosqlite
from fafnir.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates and versions the database schema."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and triggers if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # One row per user with an active warning record
        await db.execute("""
            CREATE TABLE IF NOT EXISTS warnings (
                username TEXT PRIMARY KEY,
                count INTEGER NOT NULL CHECK (count >= 0),
                note TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Mute role changes that failed and still need to be applied
        await db.execute("""
            CREATE TABLE IF NOT EXISTS role_sync_outbox (
                username TEXT PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                action TEXT NOT NULL CHECK (action IN ('grant', 'revoke')),
                error TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        """Create triggers for automatic timestamp updates."""
        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_warnings_timestamp
            AFTER UPDATE OF count, note ON warnings
            FOR EACH ROW
            BEGIN
                UPDATE warnings SET updated_at = CURRENT_TIMESTAMP
                WHERE username = NEW.username;
            END
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
