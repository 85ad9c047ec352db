"""Relation loading.

Populates has_one / has_many / belongs_to fields of loaded records with
secondary queries. Batches use one ``IN (...)`` query per relation and
match the results back through an in-memory key index, so loading N roots
costs one query per relation instead of N.

Relations are loaded one level deep: related records are mapped without
their own relations.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from row_orm.core.enums import RelationKind
from row_orm.mapping.metadata import get_metadata, join_keys
from row_orm.mapping.model import RowMapper, set_field

logger = logging.getLogger(__name__)


class RowSource(Protocol):
    """What the resolver needs from a session."""

    @property
    def marker(self) -> str: ...

    def fetch_rows(self, sql: str, args: tuple[Any, ...] = ()) -> list[dict[str, Any]]: ...


def _group_by(records: list[Any], field: str) -> dict[Any, list[Any]]:
    """Map each non-None value of *field* to the records carrying it."""
    index: dict[Any, list[Any]] = {}
    for record in records:
        value = getattr(record, field)
        if value is not None:
            index.setdefault(value, []).append(record)
    return index


class RelationResolver:
    """Loads declared relations through a session."""

    def __init__(self, source: RowSource) -> None:
        self._source = source

    def resolve_one(self, record: Any) -> None:
        """Load the relations of a single record, one query per relation."""
        meta = get_metadata(type(record))
        marker = self._source.marker

        for relation in meta.relations:
            keys = join_keys(meta, relation)
            value = getattr(record, keys.root_field)
            if value is None:
                continue

            mapper = RowMapper(relation.target)
            sql = f"SELECT * FROM {relation.table} WHERE {keys.column} = {marker}"
            if relation.kind is RelationKind.HAS_MANY:
                rows = self._source.fetch_rows(sql, (value,))
                set_field(record, relation.field, mapper.map_many(rows))
                continue

            rows = self._source.fetch_rows(sql + " LIMIT 1", (value,))
            if rows:
                set_field(record, relation.field, mapper.map_one(rows[0]))

    def resolve_many(self, records: list[Any]) -> None:
        """Load the relations of a batch of same-typed records.

        Issues exactly one secondary query per relation. has_many members are
        appended in the order the secondary query returns them; a belongs_to
        target is shared by every root carrying its key.
        """
        if not records:
            return
        meta = get_metadata(type(records[0]))
        if not meta.relations:
            return

        marker = self._source.marker
        indexes: dict[str, dict[Any, list[Any]]] = {}

        for relation in meta.relations:
            keys = join_keys(meta, relation)
            index = indexes.get(keys.root_field)
            if index is None:
                index = indexes[keys.root_field] = _group_by(records, keys.root_field)
            if not index:
                continue

            placeholders = ", ".join([marker] * len(index))
            sql = f"SELECT * FROM {relation.table} WHERE {keys.column} IN ({placeholders})"
            logger.debug(
                "Loading %s.%s (%s) for %d keys",
                meta.name,
                relation.field,
                relation.kind.value,
                len(index),
            )
            rows = self._source.fetch_rows(sql, tuple(index))

            mapper = RowMapper(relation.target)
            for row in rows:
                target = mapper.map_one(row)
                owners = index.get(getattr(target, keys.target_field), ())
                for owner in owners:
                    if relation.kind is RelationKind.HAS_MANY:
                        getattr(owner, relation.field).append(target)
                    elif relation.kind is RelationKind.BELONGS_TO:
                        set_field(owner, relation.field, target)
                    elif getattr(owner, relation.field) is None:
                        # first row wins, as with LIMIT 1 on single loads
                        set_field(owner, relation.field, target)
