"""SQLite adapter (sqlite3 stdlib)."""

from __future__ import annotations

import sqlite3
from typing import Any

from row_orm.adapters.pool import QueuePool
from row_orm.core.connection import ConnectionConfig
from row_orm.core.exceptions import ConnectionError  # noqa: A004


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    @property
    def marker(self) -> str:
        return "?"

    def create_pool(self, config: ConnectionConfig) -> QueuePool:
        """Create a pool of SQLite connections."""
        connections: list[sqlite3.Connection] = []
        try:
            for _ in range(config.pool_size):
                conn = sqlite3.connect(config.database, check_same_thread=False, **config.extra)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                connections.append(conn)
        except sqlite3.Error as e:
            for conn in connections:
                conn.close()
            raise ConnectionError(f"Cannot open SQLite database {config.database!r}: {e}") from e
        return QueuePool(connections, config.pool_timeout)

    def acquire_connection(self, pool: QueuePool) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        return pool.acquire()

    def release_connection(self, connection: sqlite3.Connection, pool: QueuePool) -> None:
        """Release a connection back to the pool."""
        pool.release(connection)

    def close_pool(self, pool: QueuePool) -> None:
        """Close all connections in the pool."""
        pool.close(lambda conn: conn.close())

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, params or ())

    def insert_verb(self, ignore: bool) -> str:
        return "INSERT OR IGNORE" if ignore else "INSERT"

    def last_insert_id(self, cursor: sqlite3.Cursor, row_count: int) -> int:
        # sqlite reports the rowid of the last row of a multi-row insert
        return int(cursor.lastrowid or 0)

    def table_columns(self, connection: sqlite3.Connection, table: str) -> list[str]:
        cursor = connection.execute(f"PRAGMA table_info({table})")
        try:
            return [row[1] for row in cursor.fetchall()]
        finally:
            cursor.close()

    def truncate_sql(self, table: str) -> str:
        return f"DELETE FROM {table}"
