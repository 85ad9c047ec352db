"""Transaction management.

Provides a context manager for running several record operations on one
connection atomically. Auto-commits on success, auto-rolls-back on any
exception (including KeyboardInterrupt) before re-raising.

A TransactionManager owns one connection exclusively and must not be
shared between threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from row_orm.core.exceptions import TransactionStateError
from row_orm.core.session import Session, SessionOperations

R = TypeVar("R")

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionManager(SessionOperations):
    """Synchronous transaction context manager."""

    def __init__(
        self,
        connection: Any,
        adapter: Any,
        connection_manager: Any = None,
        *,
        echo: bool = False,
        batch_backfill: bool = True,
    ) -> None:
        self._connection = connection
        self._adapter = adapter
        self._connection_manager = connection_manager
        self._session = Session(adapter, connection, echo=echo)
        self._batch_backfill = batch_backfill
        self._state = _TxState.IDLE

    def __enter__(self) -> TransactionManager:
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    logger.warning("Rolling back transaction after %s", exc_type.__name__)
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    self._commit_or_rollback()
        finally:
            if self._connection_manager is not None:
                self._connection_manager.release(self._connection)

    def _commit_or_rollback(self) -> None:
        try:
            self._connection.commit()
        except Exception:
            self._connection.rollback()
            self._state = _TxState.ROLLED_BACK
            raise
        self._state = _TxState.COMMITTED

    def _call(self, op: Callable[[Session], R]) -> R:
        self._check_active()
        return op(self._session)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        self._commit_or_rollback()

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    @property
    def state(self) -> str:
        return self._state.value

    def _check_active(self) -> None:
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "execute")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "execute")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "execute")
