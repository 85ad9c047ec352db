"""Database adapter protocol.

Every adapter module MUST implement this protocol. Beyond the pool and
execute plumbing, an adapter only reports the few driver facts the core
relies on; it is not a dialect layer.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_orm.core.connection import ConnectionConfig


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """DB-API positional parameter style: 'qmark' or 'format'."""
        ...

    @property
    def marker(self) -> str:
        """Positional placeholder written into SQL ('?' or '%s')."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> Any:
        """Execute SQL with positional params and return a DB-API cursor."""
        ...

    def insert_verb(self, ignore: bool) -> str:
        """Leading keywords of an INSERT, with or without duplicate-ignore."""
        ...

    def last_insert_id(self, cursor: Any, row_count: int) -> int:
        """Identifier generated for the last row of an insert of *row_count* rows."""
        ...

    def table_columns(self, connection: Any, table: str) -> list[str]:
        """Column names of *table* as the store reports them."""
        ...

    def truncate_sql(self, table: str) -> str:
        """Statement that removes every row of *table*."""
        ...
