import duckdb
import logging
from .connection import ConnectionHandler
from . import schema
from ..exceptions import DatabaseConnectionError, SchemaInitializationError
from .. import config as flashdeck_config

logger = logging.getLogger(__name__)


class SchemaManager:
    """Manages the database schema initialization and maintenance."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Initializes the database schema using a transaction. Skips if in read-only mode
        unless it's an in-memory DB. Can force recreation of tables, which will
        delete all existing data.
        """
        if self._handle_read_only_initialization(force_recreate_tables):
            return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if force_recreate_tables:
                    self._recreate_tables(cursor)
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
            logger.info(f"Database schema at {self._handler.db_path_resolved} initialized successfully (or already exists).")
        except duckdb.Error as e:
            logger.error(f"Error initializing database schema at {self._handler.db_path_resolved}: {e}")
            if conn and not getattr(conn, 'closed', True):
                try:
                    conn.rollback()
                    logger.info("Transaction rolled back due to schema initialization error.")
                except duckdb.Error as rb_err:
                    logger.error(f"Failed to rollback transaction: {rb_err}")
            raise SchemaInitializationError(f"Failed to initialize schema: {e}", original_exception=e) from e

    def _handle_read_only_initialization(self, force_recreate_tables: bool) -> bool:
        """Returns True if initialization should be skipped because the DB is read-only."""
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError("Cannot force_recreate_tables in read-only mode.")
            if not self._handler.is_memory:
                logger.warning("Attempting to initialize schema in read-only mode. Skipping.")
                return True
        return False

    def _perform_safety_check(self, cursor: duckdb.DuckDBPyConnection) -> None:
        """Refuses to drop tables that still hold decks or cards."""
        if self._handler.is_memory or flashdeck_config.settings.testing_mode:
            return

        try:
            existing = {
                row[0]
                for row in cursor.execute(
                    "SELECT table_name FROM information_schema.tables "
                    "WHERE table_name IN ('decks', 'cards');"
                ).fetchall()
            }
            counts = {
                table: cursor.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in sorted(existing)
            }
        except duckdb.Error as e:
            error_msg = f"CRITICAL: Cannot verify if tables contain data before dropping. Refusing to proceed to prevent data loss. Error: {e}"
            logger.error(error_msg)
            raise SchemaInitializationError(error_msg, original_exception=e) from e

        deck_count = counts.get("decks", 0)
        card_count = counts.get("cards", 0)
        if deck_count > 0 or card_count > 0:
            error_msg = f"CRITICAL: Attempted to drop tables with existing data! Decks: {deck_count}, Cards: {card_count}. This would cause permanent data loss."
            logger.error(error_msg)
            raise SchemaInitializationError(error_msg)

    def _recreate_tables(self, cursor: duckdb.DuckDBPyConnection) -> None:
        """Drops all tables to force recreation."""
        self._perform_safety_check(cursor)

        logger.warning(f"Forcing table recreation for {self._handler.db_path_resolved}. ALL EXISTING DATA WILL BE LOST.")

        cursor.execute("DROP TABLE IF EXISTS cards CASCADE;")
        cursor.execute("DROP TABLE IF EXISTS decks CASCADE;")
