"""MySQL adapter (mysql-connector-python)."""

from __future__ import annotations

from typing import Any

from row_orm.adapters.pool import QueuePool
from row_orm.core.connection import ConnectionConfig
from row_orm.core.exceptions import ConnectionError  # noqa: A004


class MysqlSyncAdapter:
    """Synchronous MySQL adapter using mysql-connector-python."""

    @property
    def paramstyle(self) -> str:
        return "format"

    @property
    def marker(self) -> str:
        return "%s"

    def create_pool(self, config: ConnectionConfig) -> QueuePool:
        """Create a pool of MySQL connections."""
        import mysql.connector

        connections: list[Any] = []
        try:
            for _ in range(config.pool_size):
                conn = mysql.connector.connect(
                    host=config.host,
                    port=config.port,
                    user=config.user,
                    password=config.password,
                    database=config.database,
                    **config.extra,
                )
                connections.append(conn)
        except mysql.connector.Error as e:
            for conn in connections:
                conn.close()
            raise ConnectionError(f"Cannot connect to MySQL at {config.host}:{config.port}: {e}") from e
        return QueuePool(connections, config.pool_timeout)

    def acquire_connection(self, pool: QueuePool) -> Any:
        """Acquire a connection from the pool."""
        return pool.acquire()

    def release_connection(self, connection: Any, pool: QueuePool) -> None:
        """Release a connection back to the pool."""
        pool.release(connection)

    def close_pool(self, pool: QueuePool) -> None:
        """Close all connections in the pool."""
        pool.close(lambda conn: conn.close())

    def execute(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> Any:
        """Execute SQL and return a buffered cursor with dictionary results."""
        cursor = connection.cursor(dictionary=True, buffered=True)
        cursor.execute(sql, params or ())
        return cursor

    def insert_verb(self, ignore: bool) -> str:
        return "INSERT IGNORE" if ignore else "INSERT"

    def last_insert_id(self, cursor: Any, row_count: int) -> int:
        # LAST_INSERT_ID() is the id of the first row of a multi-row insert
        if not cursor.lastrowid:
            return 0
        return int(cursor.lastrowid) + max(row_count, 1) - 1

    def table_columns(self, connection: Any, table: str) -> list[str]:
        cursor = connection.cursor(dictionary=True, buffered=True)
        try:
            cursor.execute(f"SHOW COLUMNS FROM {table}")
            return [row["Field"] for row in cursor.fetchall()]
        finally:
            cursor.close()

    def truncate_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {table}"
