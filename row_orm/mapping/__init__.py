"""Mapping layer - record metadata, row scanning and relation loading."""

from __future__ import annotations

from row_orm.mapping.fields import belongs_to, has_many, has_one, ignore, pk
from row_orm.mapping.metadata import (
    PrimaryKey,
    RecordMetadata,
    RelationDescriptor,
    extract_metadata,
    get_metadata,
    validate_relations,
)
from row_orm.mapping.model import RowMapper, zero_value
from row_orm.mapping.naming import column_to_field, field_to_column, table_name_for
from row_orm.mapping.relations import RelationResolver

__all__ = [
    "field_to_column",
    "column_to_field",
    "table_name_for",
    "pk",
    "ignore",
    "has_one",
    "has_many",
    "belongs_to",
    "RecordMetadata",
    "RelationDescriptor",
    "PrimaryKey",
    "extract_metadata",
    "get_metadata",
    "validate_relations",
    "RowMapper",
    "zero_value",
    "RelationResolver",
]
