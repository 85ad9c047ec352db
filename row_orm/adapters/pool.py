"""Fixed-size connection pool shared by the adapters."""

from __future__ import annotations

import queue
from collections.abc import Callable
from typing import Any

from row_orm.core.exceptions import PoolError


class QueuePool:
    """Thread-safe pool of pre-opened driver connections.

    Args:
        connections: Connections to hand out.
        timeout: Seconds ``acquire`` waits for a free connection.
    """

    def __init__(self, connections: list[Any], timeout: float) -> None:
        self._queue: queue.Queue[Any] = queue.Queue()
        for conn in connections:
            self._queue.put(conn)
        self._timeout = timeout

    def acquire(self) -> Any:
        try:
            return self._queue.get(timeout=self._timeout)
        except queue.Empty:
            raise PoolError(f"No connection available within {self._timeout}s") from None

    def release(self, connection: Any) -> None:
        self._queue.put(connection)

    def close(self, closer: Callable[[Any], None]) -> None:
        """Close every idle connection and empty the pool."""
        while True:
            try:
                conn = self._queue.get_nowait()
            except queue.Empty:
                break
            closer(conn)

    def __len__(self) -> int:
        """Number of idle connections."""
        return self._queue.qsize()
