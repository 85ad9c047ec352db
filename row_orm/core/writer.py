"""INSERT statement building and generated-key back-fill.

Inserted columns are every declared column except ``ignore`` fields,
relation fields and an auto-increment primary key.

Batch back-fill precondition: the store must allocate the identifiers of a
multi-row insert contiguously and in input order. Record ``i`` of ``n``
receives ``last_id - (n - 1) + i``. Stores or configurations that leave
gaps (e.g. interleaved auto-increment locking) break this assumption; pass
``backfill=False`` (or set ``EngineOptions.batch_backfill``) for them.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from row_orm.core.exceptions import TypeMismatchError
from row_orm.mapping.metadata import RecordMetadata, get_metadata
from row_orm.mapping.model import set_field

if TYPE_CHECKING:
    from row_orm.core.session import ExecResult, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertStatement:
    """Built INSERT text and its positional arguments."""

    sql: str
    args: tuple[Any, ...]


def build_insert(
    meta: RecordMetadata,
    record: Any,
    verb: str = "INSERT",
    marker: str = "?",
) -> InsertStatement:
    """Build a single-row INSERT for *record*."""
    pairs = meta.insert_fields()
    columns = ", ".join(column for column, _ in pairs)
    markers = ", ".join([marker] * len(pairs))
    return InsertStatement(
        sql=f"{verb} INTO {meta.table} ({columns}) VALUES ({markers})",
        args=tuple(getattr(record, name) for _, name in pairs),
    )


def build_batch_insert(
    meta: RecordMetadata,
    records: Sequence[Any],
    verb: str = "INSERT",
    marker: str = "?",
) -> InsertStatement:
    """Build one multi-row INSERT for *records* (all of *meta*'s type)."""
    pairs = meta.insert_fields()
    columns = ", ".join(column for column, _ in pairs)
    row = "(" + ", ".join([marker] * len(pairs)) + ")"
    args: list[Any] = []
    for record in records:
        args.extend(getattr(record, name) for _, name in pairs)
    return InsertStatement(
        sql=f"{verb} INTO {meta.table} ({columns}) VALUES {', '.join([row] * len(records))}",
        args=tuple(args),
    )


class WriteEngine:
    """Executes inserts through a session and back-fills generated keys."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert(self, record: Any, ignore: bool = False) -> ExecResult:
        """Insert one record.

        An auto-increment primary key is written back onto the record when
        its declared type is ``int``; other key types are left untouched.
        Nothing is written back when ``ignore`` skipped the row.
        """
        meta = get_metadata(type(record))
        adapter = self._session.adapter
        stmt = build_insert(meta, record, adapter.insert_verb(ignore), adapter.marker)
        result = self._session.execute(stmt.sql, *stmt.args)

        pk = meta.primary_key
        if pk is not None and pk.auto_increment and pk.is_integer and result.rows_affected > 0:
            set_field(record, pk.field, result.last_insert_id)
        return result

    def insert_batch(
        self,
        records: Sequence[Any],
        ignore: bool = False,
        backfill: bool = True,
    ) -> ExecResult | None:
        """Insert records of one type with a single multi-row statement.

        Returns None without touching the store when *records* is empty.

        Raises:
            TypeMismatchError: If the records are not all of the same type.
        """
        if not records:
            return None

        record_type = type(records[0])
        for record in records:
            if type(record) is not record_type:
                raise TypeMismatchError(
                    f"Batch insert mixes {record_type.__name__} and {type(record).__name__}"
                )

        meta = get_metadata(record_type)
        adapter = self._session.adapter
        stmt = build_batch_insert(meta, records, adapter.insert_verb(ignore), adapter.marker)
        result = self._session.execute(stmt.sql, *stmt.args, row_count=len(records))

        pk = meta.primary_key
        if not (backfill and pk is not None and pk.auto_increment and pk.is_integer):
            return result
        if result.rows_affected != len(records):
            logger.warning(
                "Skipping key back-fill for %s: %d of %d rows inserted",
                meta.name,
                result.rows_affected,
                len(records),
            )
            return result

        first = result.last_insert_id - (len(records) - 1)
        for i, record in enumerate(records):
            set_field(record, pk.field, first + i)
        return result
