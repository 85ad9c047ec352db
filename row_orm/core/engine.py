"""Record engine.

The Engine borrows a pooled connection for each call, runs the operation
on a Session bound to it and commits (or rolls back on error) before
handing the connection back. It is safe to share across threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from row_orm.core.connection import ConnectionConfig, ConnectionManager
from row_orm.core.exceptions import ConfigurationError
from row_orm.core.registry import TableRegistry
from row_orm.core.session import ExecResult, Session, SessionOperations
from row_orm.core.transaction import TransactionManager
from row_orm.mapping.metadata import RecordMetadata, get_metadata

R = TypeVar("R")

logger = logging.getLogger(__name__)


class EngineOptions(BaseModel):
    """Engine-level behaviour switches."""

    # Back-fill auto-increment keys after batch inserts. Requires the store to
    # allocate a statement's ids contiguously and in input order.
    batch_backfill: bool = True
    # Log statements at INFO instead of DEBUG.
    echo: bool = False
    # Freeze the table registry on the first statement.
    freeze_registry: bool = True


class Engine(SessionOperations):
    """Synchronous record engine."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        options: EngineOptions | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        self._options = options or EngineOptions()
        self._registry = TableRegistry()
        self._batch_backfill = self._options.batch_backfill

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        options: EngineOptions | None = None,
    ) -> Engine:
        """Create an Engine from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance
            options: Optional EngineOptions

        Returns:
            Engine instance
        """
        return cls(ConnectionManager(config), options)

    @property
    def registry(self) -> TableRegistry:
        return self._registry

    @property
    def adapter(self) -> Any:
        return self._connection_manager.adapter

    def _call(self, op: Callable[[Session], R]) -> R:
        if self._options.freeze_registry and not self._registry.frozen:
            self._registry.freeze()

        with self._connection_manager.get_connection() as conn:
            session = Session(self.adapter, conn, echo=self._options.echo)
            try:
                result = op(session)
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
            return result

    # --- Tables ---

    def add_table(self, record_type: type) -> RecordMetadata:
        """Register a record type at startup.

        Raises:
            ConfigurationError: If its tags or relations are malformed.
        """
        return self._registry.register(record_type)

    def get_table_by_name(self, table: str) -> type:
        """Record type registered for *table*."""
        return self._registry.get(table)

    def check_tables(self) -> None:
        """Verify every live column of each registered table maps to a field.

        Raises:
            ConfigurationError: If a table is missing or has unmapped columns.
        """
        with self._connection_manager.get_connection() as conn:
            for table in self._registry.table_names:
                meta = get_metadata(self._registry.get(table))
                columns = self.adapter.table_columns(conn, table)
                if not columns:
                    raise ConfigurationError(meta.name, f"table '{table}' does not exist")
                missing = [c for c in columns if meta.field_for_column(c) is None]
                if missing:
                    raise ConfigurationError(
                        meta.name, f"table '{table}' has columns without fields: {missing}"
                    )
                logger.debug("Table %s checked: %s", table, columns)

    def truncate_table(self, table: str) -> ExecResult:
        """Remove every row of *table*."""
        return self.execute(self.adapter.truncate_sql(table))

    def truncate_tables(self) -> None:
        """Remove every row of every registered table."""
        for table in self._registry.table_names:
            self.truncate_table(table)

    # --- Transactions ---

    def transaction(self) -> TransactionManager:
        """Create a new transaction context manager."""
        conn = self._connection_manager.acquire()
        return TransactionManager(
            connection=conn,
            adapter=self.adapter,
            connection_manager=self._connection_manager,
            echo=self._options.echo,
            batch_backfill=self._options.batch_backfill,
        )

    def do_transaction(self, fn: Callable[[TransactionManager], R]) -> R:
        """Run *fn* inside a transaction and return its result.

        Commits when *fn* returns, rolls back when it raises.
        """
        with self.transaction() as tx:
            return fn(tx)

    def close(self) -> None:
        """Close the connection pool."""
        self._connection_manager.close_pool()
