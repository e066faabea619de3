"""
Persistence client contract and its DuckDB implementation.

The deck repository is written against `PersistenceClient`: filtered reads,
inserts and deletes on the `decks` and `cards` collections plus a lookup of
the current identity. Each call is independent; nothing spans calls.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import duckdb

from ..exceptions import (
    DatabaseConnectionError,
    RecordNotFoundError,
    StoreError,
)
from ..identity import IdentitySession
from .connection import ConnectionHandler
from .schema import COLLECTION_COLUMNS
from .schema_manager import SchemaManager

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Filters = Mapping[str, Any]


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Record]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class PersistenceClient(ABC):
    """
    Abstract access handle to the remote deck store.

    Implementations raise `StoreError` (or a subclass) for store failures and
    `UnauthenticatedError` when no identity is available.
    """

    @abstractmethod
    async def fetch_one(self, collection: str, filters: Filters) -> Record:
        """Return the single row matching `filters`.

        Raises RecordNotFoundError when nothing matches and StoreError when
        more than one row does.
        """

    @abstractmethod
    async def fetch_many(
        self,
        collection: str,
        filters: Filters,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Record]: ...

    @abstractmethod
    async def insert(
        self, collection: str, records: Union[Record, Sequence[Record]]
    ) -> List[Record]:
        """Insert one or more rows and return them as stored."""

    @abstractmethod
    async def delete(self, collection: str, filters: Filters) -> int:
        """Delete matching rows and return how many were removed."""

    @abstractmethod
    async def current_identity(self) -> str: ...


class DuckDBPersistenceClient(PersistenceClient):
    """
    `PersistenceClient` backed by a DuckDB database.

    Blocking DuckDB calls run in a worker thread, each on its own cursor.
    Multi-row inserts and deletes are atomic per call. The store assigns `id`
    to every inserted row and `created_at` to decks.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        identity: Optional[IdentitySession] = None,
        read_only: bool = False,
    ):
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        self.identity = identity if identity is not None else IdentitySession()
        logger.info(
            f"DuckDBPersistenceClient initialized for DB at: {self._handler.db_path_resolved}"  # noqa: E501
        )

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    def __enter__(self) -> "DuckDBPersistenceClient":
        """Open the connection, creating the schema for a new writable DB."""
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()

    # --- PersistenceClient ---

    async def fetch_one(self, collection: str, filters: Filters) -> Record:
        conn = self._connection_or_store_error()
        rows = await asyncio.to_thread(
            self._fetch_sync, conn, collection, filters, None, True, 2
        )
        if not rows:
            raise RecordNotFoundError(
                f"No row in '{collection}' matches {dict(filters)}."
            )
        if len(rows) > 1:
            raise StoreError(
                f"More than one row in '{collection}' matches {dict(filters)}."
            )
        return rows[0]

    async def fetch_many(
        self,
        collection: str,
        filters: Filters,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Record]:
        conn = self._connection_or_store_error()
        return await asyncio.to_thread(
            self._fetch_sync, conn, collection, filters, order_by, ascending, limit
        )

    async def insert(
        self, collection: str, records: Union[Record, Sequence[Record]]
    ) -> List[Record]:
        if isinstance(records, Mapping):
            records = [records]
        if not records:
            return []
        self._ensure_writable("insert")
        conn = self._connection_or_store_error()
        return await asyncio.to_thread(
            self._insert_sync, conn, collection, list(records)
        )

    async def delete(self, collection: str, filters: Filters) -> int:
        self._ensure_writable("delete")
        conn = self._connection_or_store_error()
        return await asyncio.to_thread(
            self._delete_sync, conn, collection, filters
        )

    async def current_identity(self) -> str:
        return self.identity.current()

    # --- SQL helpers ---

    def _connection_or_store_error(self) -> duckdb.DuckDBPyConnection:
        try:
            return self.get_connection()
        except DatabaseConnectionError as e:
            raise StoreError(
                f"Store unavailable: {e}", original_exception=e
            ) from e

    def _ensure_writable(self, operation: str) -> None:
        if self.read_only:
            raise StoreError(f"Cannot {operation} in read-only mode.")

    @staticmethod
    def _check_columns(collection: str, columns: Sequence[str]) -> None:
        known = COLLECTION_COLUMNS.get(collection)
        if known is None:
            raise StoreError(f"Unknown collection '{collection}'.")
        unknown = [c for c in columns if c not in known]
        if unknown:
            raise StoreError(
                f"Unknown column(s) for '{collection}': {', '.join(unknown)}."
            )

    def _where_clause(
        self, collection: str, filters: Filters
    ) -> Tuple[str, List[Any]]:
        self._check_columns(collection, list(filters))
        if not filters:
            return "", []
        conditions = []
        params: List[Any] = []
        for column, value in filters.items():
            params.append(value)
            conditions.append(f'"{column}" = ${len(params)}')
        return " WHERE " + " AND ".join(conditions), params

    def _prepare_record(self, collection: str, record: Record) -> Record:
        self._check_columns(collection, list(record))
        prepared = dict(record)
        if not prepared.get("id"):
            prepared["id"] = str(uuid.uuid4())
        if collection == "decks" and not prepared.get("created_at"):
            prepared["created_at"] = datetime.now(timezone.utc).isoformat(
                timespec="microseconds"
            )
        return prepared

    @staticmethod
    def _rollback(cursor, operation: str) -> None:
        try:
            cursor.rollback()
            logger.info(f"Transaction rolled back due to {operation} error.")
        except duckdb.Error as rb_err:
            logger.error(f"Failed to rollback transaction: {rb_err}")

    # --- Blocking implementations (run in a worker thread) ---

    def _fetch_sync(
        self,
        conn: duckdb.DuckDBPyConnection,
        collection: str,
        filters: Filters,
        order_by: Optional[str],
        ascending: bool,
        limit: Optional[int],
    ) -> List[Record]:
        where, params = self._where_clause(collection, filters)
        sql = f"SELECT * FROM {collection}{where}"
        if order_by is not None:
            self._check_columns(collection, [order_by])
            sql += f' ORDER BY "{order_by}" {"ASC" if ascending else "DESC"}'
        if limit is not None:
            sql += f" LIMIT ${len(params) + 1}"
            params.append(limit)
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql, params)
                rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(f"Error fetching from '{collection}' ({dict(filters)}): {e}")
            raise StoreError(
                f"Failed to fetch from '{collection}': {e}", original_exception=e
            ) from e
        logger.debug(f"Fetched {len(rows)} row(s) from '{collection}'.")
        return rows

    def _insert_sync(
        self,
        conn: duckdb.DuckDBPyConnection,
        collection: str,
        records: List[Record],
    ) -> List[Record]:
        prepared = [self._prepare_record(collection, r) for r in records]
        inserted: List[Record] = []
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                try:
                    for record in prepared:
                        columns = ", ".join(f'"{c}"' for c in record)
                        placeholders = ", ".join(
                            f"${i}" for i in range(1, len(record) + 1)
                        )
                        cursor.execute(
                            f"INSERT INTO {collection} ({columns}) "
                            f"VALUES ({placeholders}) RETURNING *;",
                            list(record.values()),
                        )
                        inserted.extend(_rows_to_dicts(cursor))
                    cursor.commit()
                except duckdb.Error:
                    self._rollback(cursor, f"'{collection}' insert")
                    raise
        except duckdb.Error as e:
            logger.error(f"Error inserting into '{collection}': {e}")
            raise StoreError(
                f"Failed to insert into '{collection}': {e}", original_exception=e
            ) from e
        logger.info(f"Inserted {len(inserted)} row(s) into '{collection}'.")
        return inserted

    def _delete_sync(
        self,
        conn: duckdb.DuckDBPyConnection,
        collection: str,
        filters: Filters,
    ) -> int:
        if not filters:
            raise StoreError(f"Refusing to delete from '{collection}' without a filter.")
        where, params = self._where_clause(collection, filters)
        sql = f"DELETE FROM {collection}{where};"
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                try:
                    cursor.execute(sql, params)
                    result = cursor.fetchone()
                    cursor.commit()
                except duckdb.Error:
                    self._rollback(cursor, f"'{collection}' delete")
                    raise
        except duckdb.Error as e:
            logger.error(f"Error deleting from '{collection}' ({dict(filters)}): {e}")
            raise StoreError(
                f"Failed to delete from '{collection}': {e}", original_exception=e
            ) from e
        # DuckDB reports the number of deleted rows as a one-column result.
        deleted = max(0, result[0]) if result else 0
        logger.info(f"Deleted {deleted} row(s) from '{collection}'.")
        return deleted
