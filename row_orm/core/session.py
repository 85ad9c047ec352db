"""Operations bound to one connection.

A Session runs every select/insert/exec operation on a single driver
connection. Engine opens a short-lived Session per call on a pooled
connection; TransactionManager keeps one for the life of the transaction.
Queries are raw SQL using the adapter's positional marker.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from row_orm.core.exceptions import (
    ConfigurationError,
    RecordNotFoundError,
    RowAffectMismatchError,
    TypeMismatchError,
)
from row_orm.core.params import compile_named
from row_orm.core.writer import WriteEngine
from row_orm.mapping.metadata import get_metadata
from row_orm.mapping.model import RowMapper
from row_orm.mapping.relations import RelationResolver

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a write statement."""

    rows_affected: int
    last_insert_id: int


def _columns(cursor: Any) -> list[str]:
    if cursor.description is None:
        return []
    return [desc[0] for desc in cursor.description]


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    columns = _columns(cursor)
    if not columns:
        return []
    rows = cursor.fetchall()
    if not rows:
        return []

    # Check if rows are already dict-like (e.g. MySQL dict cursor)
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    return [dict(zip(columns, row, strict=True)) for row in rows]


def _row_to_dict(cursor: Any) -> dict[str, Any] | None:
    """Convert the next cursor row to a dict, or None."""
    columns = _columns(cursor)
    if not columns:
        return None
    row = cursor.fetchone()
    if row is None:
        return None
    if isinstance(row, dict):
        return dict(row)
    return dict(zip(columns, row, strict=True))


def _render(value: Any) -> str | None:
    """String form of a raw column value; None for NULL."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, float):
        return f"{value:.4f}"
    return str(value)


class Session:
    """Record-level operations on one connection."""

    def __init__(self, adapter: Any, connection: Any, echo: bool = False) -> None:
        self._adapter = adapter
        self._connection = connection
        self._log_level = logging.INFO if echo else logging.DEBUG

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def marker(self) -> str:
        return self._adapter.marker

    def _execute(self, sql: str, args: tuple[Any, ...]) -> Any:
        logger.log(self._log_level, "SQL: %s [%d args]", sql, len(args))
        return self._adapter.execute(self._connection, sql, args)

    # --- Reads ---

    def fetch_rows(self, sql: str, args: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        """Run a query and return every row as a dict."""
        cursor = self._execute(sql, args)
        try:
            return _rows_to_dicts(cursor)
        finally:
            cursor.close()

    def fetch_row(self, sql: str, args: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        """Run a query and return its first row as a dict, or None."""
        cursor = self._execute(sql, args)
        try:
            return _row_to_dict(cursor)
        finally:
            cursor.close()

    def select_one(self, record_type: type[T], query: str, *args: Any) -> T:
        """Map the first row of *query* and load its relations.

        Raises:
            RecordNotFoundError: If the query returns no rows.
        """
        row = self.fetch_row(query, args)
        if row is None:
            raise RecordNotFoundError(query)
        record = RowMapper(record_type).map_one(row)
        RelationResolver(self).resolve_one(record)
        return record

    def select_by_pk(self, record_type: type[T], pk: Any) -> T:
        """Load one record by primary key."""
        meta = get_metadata(record_type)
        if meta.primary_key is None:
            raise ConfigurationError(meta.name, "does not have a primary key")
        query = f"SELECT * FROM {meta.table} WHERE {meta.primary_key.column} = {self.marker}"
        return self.select_one(record_type, query, pk)

    def select(self, record_type: type[T], query: str, *args: Any) -> list[T]:
        """Map every row of *query* and batch-load their relations."""
        records = RowMapper(record_type).map_many(self.fetch_rows(query, args))
        RelationResolver(self).resolve_many(records)
        return records

    def select_values(self, query: str, *args: Any) -> list[Any]:
        """First column of every row."""
        cursor = self._execute(query, args)
        try:
            rows = cursor.fetchall()
        finally:
            cursor.close()
        if rows and isinstance(rows[0], dict):
            return [next(iter(row.values())) for row in rows]
        return [row[0] for row in rows]

    def _scalar(self, query: str, args: tuple[Any, ...]) -> Any:
        row = self.fetch_row(query, args)
        if row is None:
            raise RecordNotFoundError(query)
        return next(iter(row.values()))

    def select_str(self, query: str, *args: Any) -> str:
        """First column of the first row as a string."""
        value = self._scalar(query, args)
        if value is None:
            raise TypeMismatchError(f"NULL cannot be read as a string: {query}")
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8")
        return str(value)

    def select_int(self, query: str, *args: Any) -> int:
        """First column of the first row as an integer."""
        value = self._scalar(query, args)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise TypeMismatchError(f"{value!r} cannot be read as an integer: {query}") from e

    def select_raw(self, query: str, *args: Any) -> tuple[list[str], list[list[str]]]:
        """Column names plus every row rendered as strings (NULL as '')."""
        cursor = self._execute(query, args)
        try:
            columns = _columns(cursor)
            rows = cursor.fetchall() if columns else []
        finally:
            cursor.close()

        data: list[list[str]] = []
        for row in rows:
            values = [row[c] for c in columns] if isinstance(row, dict) else list(row)
            data.append([_render(v) or "" for v in values])
        return columns, data

    def select_raw_set(self, query: str, *args: Any) -> list[dict[str, str]]:
        """Every row as a column-to-string dict; NULL columns are left out.

        Keys are the column names as the cursor reports them, not the
        CamelCase field names column_to_field would derive.
        """
        result: list[dict[str, str]] = []
        for row in self.fetch_rows(query, args):
            rendered = {column: _render(value) for column, value in row.items()}
            result.append({k: v for k, v in rendered.items() if v is not None})
        return result

    # --- Writes ---

    def execute(self, query: str, *args: Any, row_count: int = 1) -> ExecResult:
        """Execute a statement; *row_count* is the number of rows it inserts."""
        cursor = self._execute(query, args)
        try:
            rows_affected = int(cursor.rowcount)
            last_id = self._adapter.last_insert_id(cursor, row_count)
        finally:
            cursor.close()
        return ExecResult(rows_affected=rows_affected, last_insert_id=last_id)

    def execute_with_params(self, template: str, params: Any) -> ExecResult:
        """Execute a ``#{name}`` template with values taken from *params*."""
        sql, args = compile_named(template, params, self.marker)
        return self.execute(sql, *args)

    def execute_checked(self, expected_rows: int, query: str, *args: Any) -> ExecResult:
        """Execute a statement that must affect exactly *expected_rows* rows.

        Raises:
            RowAffectMismatchError: If the affected row count differs.
        """
        result = self.execute(query, *args)
        if result.rows_affected != expected_rows:
            raise RowAffectMismatchError(expected_rows, result.rows_affected, query)
        return result

    def insert(self, record: Any, ignore: bool = False) -> ExecResult:
        """Insert one record, back-filling an integer auto-increment key."""
        return WriteEngine(self).insert(record, ignore)

    def insert_batch(
        self,
        records: Sequence[Any],
        ignore: bool = False,
        backfill: bool = True,
    ) -> ExecResult | None:
        """Insert records of one type in a single statement."""
        return WriteEngine(self).insert_batch(records, ignore, backfill)


class SessionOperations(ABC):
    """Session operations exposed by Engine and TransactionManager.

    Subclasses decide which Session an operation runs on by implementing
    ``_call``.
    """

    _batch_backfill: bool = True

    @abstractmethod
    def _call(self, op: Callable[[Session], R]) -> R: ...

    def select_one(self, record_type: type[T], query: str, *args: Any) -> T:
        """Fetch one record (with relations). Raises RecordNotFoundError on zero rows."""
        return self._call(lambda s: s.select_one(record_type, query, *args))

    def select_by_pk(self, record_type: type[T], pk: Any) -> T:
        """Fetch one record (with relations) by primary key."""
        return self._call(lambda s: s.select_by_pk(record_type, pk))

    def select(self, record_type: type[T], query: str, *args: Any) -> list[T]:
        """Fetch all matching records, batch-loading their relations."""
        return self._call(lambda s: s.select(record_type, query, *args))

    def select_values(self, query: str, *args: Any) -> list[Any]:
        return self._call(lambda s: s.select_values(query, *args))

    def select_str(self, query: str, *args: Any) -> str:
        return self._call(lambda s: s.select_str(query, *args))

    def select_int(self, query: str, *args: Any) -> int:
        return self._call(lambda s: s.select_int(query, *args))

    def select_raw(self, query: str, *args: Any) -> tuple[list[str], list[list[str]]]:
        return self._call(lambda s: s.select_raw(query, *args))

    def select_raw_set(self, query: str, *args: Any) -> list[dict[str, str]]:
        return self._call(lambda s: s.select_raw_set(query, *args))

    def insert(self, record: Any, ignore: bool = False) -> ExecResult:
        """Insert one record."""
        return self._call(lambda s: s.insert(record, ignore))

    def insert_batch(
        self,
        records: Sequence[Any],
        ignore: bool = False,
        backfill: bool | None = None,
    ) -> ExecResult | None:
        """Insert records of one type in one statement.

        *backfill* defaults to the engine's ``batch_backfill`` option.
        """
        if not records:
            return None
        if backfill is None:
            backfill = self._batch_backfill
        return self._call(lambda s: s.insert_batch(records, ignore, backfill))

    def execute(self, query: str, *args: Any) -> ExecResult:
        """Execute a write statement."""
        return self._call(lambda s: s.execute(query, *args))

    def execute_with_params(self, template: str, params: Any) -> ExecResult:
        """Execute a ``#{name}`` template against a mapping or record."""
        return self._call(lambda s: s.execute_with_params(template, params))

    def execute_checked(self, expected_rows: int, query: str, *args: Any) -> ExecResult:
        """Execute a statement that must affect exactly *expected_rows* rows."""
        return self._call(lambda s: s.execute_checked(expected_rows, query, *args))
