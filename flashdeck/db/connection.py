import duckdb
import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


class ConnectionHandler:
    """
    Owns the single DuckDB connection of a deck store.

    `db_path` is a file path or ":memory:". The connection is opened lazily
    by `get_connection` and can be reopened after `close_connection`.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        if isinstance(db_path, str) and db_path.lower() == MEMORY_DB:
            self.db_path_resolved = Path(MEMORY_DB)
        else:
            self.db_path_resolved = Path(db_path).resolve()
        logger.debug(f"Deck store location: {self.db_path_resolved}")

        self.read_only: bool = read_only
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        # True when the last connect created the database (always for memory).
        self.is_new_db: bool = False

    @property
    def is_memory(self) -> bool:
        return str(self.db_path_resolved) == MEMORY_DB

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Return the open connection, connecting first if needed.

        Raises:
            DatabaseConnectionError: If DuckDB cannot open the database, e.g.
                a read-only open of a file that does not exist.
        """
        if self._connection is not None:
            return self._connection

        if self.is_memory:
            self.is_new_db = True
        else:
            self.is_new_db = not self.db_path_resolved.exists()
            # A read-only open never creates anything on disk.
            if not self.read_only:
                self.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = duckdb.connect(
                database=str(self.db_path_resolved),
                read_only=self.read_only,
            )
        except duckdb.Error as e:
            raise DatabaseConnectionError(
                f"Cannot open deck store at {self.db_path_resolved}: {e}",
                original_exception=e,
            ) from e
        logger.info(
            f"Opened deck store at {self.db_path_resolved}"
            f"{' (read-only)' if self.read_only else ''}."
        )
        return self._connection

    def close_connection(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.info(f"Closed deck store at {self.db_path_resolved}.")
        except duckdb.Error as e:
            logger.error(f"Error closing deck store: {e}")
        finally:
            self._connection = None
