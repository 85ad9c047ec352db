"""Record type metadata.

A record type is a dataclass or a Pydantic model whose fields carry tags
(see ``row_orm.mapping.fields``). ``extract_metadata`` turns the declared
fields and tags into an immutable RecordMetadata; ``get_metadata`` caches
one instance per type for the lifetime of the process.
"""

from __future__ import annotations

import dataclasses
import threading
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from row_orm.core.enums import RelationKind
from row_orm.core.exceptions import ConfigurationError
from row_orm.mapping.fields import AI, IGNORE, OR, PK, TABLE
from row_orm.mapping.naming import column_to_field, field_to_column, table_name_for

MISSING = dataclasses.MISSING


@dataclass(frozen=True)
class FieldSpec:
    """A scannable (non-relation) field of a record type."""

    name: str
    column: str
    annotation: Any
    default: Any = MISSING
    default_factory: Any = MISSING
    init: bool = True


@dataclass(frozen=True)
class PrimaryKey:
    """Primary-key field descriptor."""

    field: str
    column: str
    auto_increment: bool
    is_integer: bool


@dataclass(frozen=True)
class RelationDescriptor:
    """A declared relation from one record type to another."""

    kind: RelationKind
    field: str
    table: str
    target: type


@dataclass(frozen=True)
class JoinKeys:
    """How a relation's secondary query is filtered and matched back.

    ``column`` is filtered with the values of ``root_field`` on the root
    records; each loaded target is matched through its ``target_field``.
    """

    column: str
    root_field: str
    target_field: str


@dataclass(frozen=True)
class RecordMetadata:
    """Immutable description of a record type."""

    record_type: type
    table: str
    columns: tuple[str, ...]
    column_fields: tuple[str, ...]
    primary_key: PrimaryKey | None
    ignored: frozenset[str]
    relations: tuple[RelationDescriptor, ...]
    fields: tuple[FieldSpec, ...]
    field_index: Mapping[str, str]
    is_pydantic: bool

    @property
    def name(self) -> str:
        return self.record_type.__name__

    def field_for_column(self, column: str) -> str | None:
        """Name of the field a result column scans into, or None."""
        return self.field_index.get(column_to_field(column))

    def insert_fields(self) -> list[tuple[str, str]]:
        """(column, field) pairs written by inserts."""
        pairs = list(zip(self.columns, self.column_fields, strict=True))
        if self.primary_key is not None and self.primary_key.auto_increment:
            pairs = [p for p in pairs if p[1] != self.primary_key.field]
        return pairs


def is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and get_origin(cls) is None and issubclass(cls, BaseModel)


def is_record_type(cls: Any) -> bool:
    return isinstance(cls, type) and (dataclasses.is_dataclass(cls) or is_pydantic_model(cls))


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return (inner, True) for ``X | None``, else (annotation, False)."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(get_args(annotation)) == 2:
            return args[0], True
    return annotation, False


def _flag(tags: Mapping[str, Any], key: str) -> bool:
    value = tags.get(key)
    if isinstance(value, str):
        return value.lower() == "true"
    return value is True


def _declared_fields(cls: type) -> list[tuple[FieldSpec, Mapping[str, Any]]]:
    """Collect (spec, tags) for every declared field, in declaration order."""
    result: list[tuple[FieldSpec, Mapping[str, Any]]] = []

    if is_pydantic_model(cls):
        for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            if info.is_required():
                default, factory = MISSING, MISSING
            elif info.default_factory is not None:
                default, factory = MISSING, info.default_factory
            else:
                default, factory = info.default, MISSING
            spec = FieldSpec(
                name=name,
                column=field_to_column(name),
                annotation=info.annotation,
                default=default,
                default_factory=factory,
            )
            result.append((spec, extra))
        return result

    if not dataclasses.is_dataclass(cls):
        raise ConfigurationError(cls.__name__, "record types must be dataclasses or Pydantic models")

    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise ConfigurationError(cls.__name__, f"cannot resolve annotations: {e}") from e

    for f in dataclasses.fields(cls):
        spec = FieldSpec(
            name=f.name,
            column=field_to_column(f.name),
            annotation=hints.get(f.name, Any),
            default=f.default,
            default_factory=f.default_factory,
            init=f.init,
        )
        result.append((spec, f.metadata))
    return result


def _relation(cls: type, spec: FieldSpec, tags: Mapping[str, Any]) -> RelationDescriptor:
    or_tag = str(tags[OR])
    try:
        kind = RelationKind(or_tag)
    except ValueError:
        raise ConfigurationError(
            cls.__name__,
            f"unsupported or tag '{or_tag}' on field {spec.name}, "
            "only has_one, has_many and belongs_to are supported",
        ) from None

    table = tags.get(TABLE)
    if not table:
        raise ConfigurationError(cls.__name__, f"missing table tag on relation field {spec.name}")
    if is_pydantic_model(cls) and spec.default is MISSING and spec.default_factory is MISSING:
        raise ConfigurationError(cls.__name__, f"relation field {spec.name} needs a default")

    if kind is RelationKind.HAS_MANY:
        args = get_args(spec.annotation)
        if get_origin(spec.annotation) is not list or len(args) != 1 or not is_record_type(args[0]):
            raise ConfigurationError(
                cls.__name__, f"{spec.name} should be a list of record types for has_many"
            )
        target = args[0]
    else:
        target, _ = unwrap_optional(spec.annotation)
        if not is_record_type(target):
            raise ConfigurationError(
                cls.__name__, f"{spec.name} should be a single record type for {kind.value}"
            )

    return RelationDescriptor(kind=kind, field=spec.name, table=str(table), target=target)


def extract_metadata(record_type: type) -> RecordMetadata:
    """Build RecordMetadata from a record type's fields and tags.

    Raises:
        ConfigurationError: If the type or its tags are malformed.
    """
    name = record_type.__name__
    columns: list[str] = []
    column_fields: list[str] = []
    scan_fields: list[FieldSpec] = []
    ignored: set[str] = set()
    relations: list[RelationDescriptor] = []
    primary_key: PrimaryKey | None = None
    index: dict[str, str] = {}

    for spec, tags in _declared_fields(record_type):
        if tags.get(OR):
            relations.append(_relation(record_type, spec, tags))
            continue

        key = column_to_field(spec.column)
        if key in index:
            raise ConfigurationError(
                name, f"fields {index[key]} and {spec.name} map to the same column"
            )
        index[key] = spec.name
        scan_fields.append(spec)

        if _flag(tags, PK):
            if primary_key is not None:
                raise ConfigurationError(
                    name, f"more than one primary key ({primary_key.field}, {spec.name})"
                )
            inner, _ = unwrap_optional(spec.annotation)
            primary_key = PrimaryKey(
                field=spec.name,
                column=spec.column,
                auto_increment=_flag(tags, AI),
                is_integer=inner is int,
            )

        if _flag(tags, IGNORE):
            ignored.add(spec.name)
            continue
        columns.append(spec.column)
        column_fields.append(spec.name)

    return RecordMetadata(
        record_type=record_type,
        table=table_name_for(record_type),
        columns=tuple(columns),
        column_fields=tuple(column_fields),
        primary_key=primary_key,
        ignored=frozenset(ignored),
        relations=tuple(relations),
        fields=tuple(scan_fields),
        field_index=types.MappingProxyType(index),
        is_pydantic=is_pydantic_model(record_type),
    )


_cache: dict[type, RecordMetadata] = {}
_cache_lock = threading.Lock()


def get_metadata(record_type: type) -> RecordMetadata:
    """Return the cached metadata for *record_type*, building it once."""
    meta = _cache.get(record_type)
    if meta is None:
        with _cache_lock:
            meta = _cache.get(record_type)
            if meta is None:
                meta = extract_metadata(record_type)
                _cache[record_type] = meta
    return meta


def join_keys(meta: RecordMetadata, relation: RelationDescriptor) -> JoinKeys:
    """Resolve the key columns/fields a relation joins on.

    has_one / has_many: the target table carries a column named after the
    root's primary-key column. belongs_to: the root carries a field named
    after the target's primary-key column.
    """
    target = get_metadata(relation.target)

    if relation.kind is RelationKind.BELONGS_TO:
        if target.primary_key is None:
            raise ConfigurationError(
                meta.name, f"{relation.field}: {target.name} has no primary key for belongs_to"
            )
        root_field = meta.field_for_column(target.primary_key.column)
        if root_field is None:
            raise ConfigurationError(
                meta.name,
                f"{relation.field}: no field for foreign key column {target.primary_key.column}",
            )
        return JoinKeys(
            column=target.primary_key.column,
            root_field=root_field,
            target_field=target.primary_key.field,
        )

    if meta.primary_key is None:
        raise ConfigurationError(
            meta.name, f"{relation.field}: {relation.kind.value} requires a primary key"
        )
    target_field = target.field_for_column(meta.primary_key.column)
    if target_field is None:
        raise ConfigurationError(
            meta.name,
            f"{relation.field}: {target.name} has no field for column {meta.primary_key.column}",
        )
    return JoinKeys(
        column=meta.primary_key.column,
        root_field=meta.primary_key.field,
        target_field=target_field,
    )


def validate_relations(meta: RecordMetadata) -> None:
    """Check every relation of *meta* against its target's metadata.

    Raises:
        ConfigurationError: If a relation cannot be joined.
    """
    for relation in meta.relations:
        join_keys(meta, relation)
