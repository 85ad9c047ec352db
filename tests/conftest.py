"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from typing import Any

import pytest

from row_orm.adapters.sqlite import SqliteSyncAdapter
from row_orm.core.connection import ConnectionConfig, ConnectionManager
from row_orm.core.engine import Engine
from row_orm.core.session import Session

SCHEMA = (
    "CREATE TABLE author (author_id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE)",
    "CREATE TABLE book ("
    "book_id INTEGER PRIMARY KEY AUTOINCREMENT, author_id INTEGER, title TEXT NOT NULL)",
    "CREATE TABLE profile ("
    "profile_id INTEGER PRIMARY KEY AUTOINCREMENT, author_id INTEGER, bio TEXT)",
)


class RecordingAdapter(SqliteSyncAdapter):
    """SQLite adapter that records every statement it executes."""

    def __init__(self) -> None:
        self.statements: list[tuple[str, tuple[Any, ...]]] = []

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> sqlite3.Cursor:
        self.statements.append((sql, tuple(params or ())))
        return super().execute(connection, sql, params)

    def queries_on(self, table: str) -> list[tuple[str, tuple[Any, ...]]]:
        """Recorded statements reading from *table*."""
        return [(sql, args) for sql, args in self.statements if f"FROM {table} " in sql + " "]

    def reset(self) -> None:
        self.statements.clear()


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1, pool_timeout=1)


@pytest.fixture
def engine(sqlite_config: ConnectionConfig) -> Iterator[Engine]:
    """Engine over an in-memory database holding the author/book/profile schema."""
    manager = ConnectionManager(sqlite_config)
    with manager.get_connection() as conn:
        for ddl in SCHEMA:
            conn.execute(ddl)
        conn.commit()

    eng = Engine(manager)
    yield eng
    eng.close()


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def sqlite_connection() -> Iterator[sqlite3.Connection]:
    """Raw in-memory connection holding the author/book/profile schema."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    for ddl in SCHEMA:
        conn.execute(ddl)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def session(recording_adapter: RecordingAdapter, sqlite_connection: sqlite3.Connection) -> Session:
    """Session whose statements are recorded by ``recording_adapter``."""
    return Session(recording_adapter, sqlite_connection)
