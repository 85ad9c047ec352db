"""Row-to-record mapper.

Supports dataclasses and Pydantic models described by RecordMetadata.
Unknown columns are discarded; declared fields missing from the row keep
their default, or the zero value of their annotation.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, get_origin

from pydantic import ValidationError

from row_orm.core.enums import RelationKind
from row_orm.core.exceptions import TypeMismatchError
from row_orm.mapping.metadata import MISSING, FieldSpec, RecordMetadata, get_metadata, unwrap_optional

T = TypeVar("T")

_ZERO_VALUES: dict[Any, Any] = {int: 0, float: 0.0, str: "", bytes: b"", bool: False}


def zero_value(annotation: Any) -> Any:
    """Zero value for a field annotation."""
    _, optional = unwrap_optional(annotation)
    if optional:
        return None
    if annotation in _ZERO_VALUES:
        return _ZERO_VALUES[annotation]
    origin = get_origin(annotation) or annotation
    if origin is list:
        return []
    if origin is dict:
        return {}
    return None


def _missing_value(spec: FieldSpec) -> Any:
    if spec.default is not MISSING:
        return spec.default
    if spec.default_factory is not MISSING:
        return spec.default_factory()
    return zero_value(spec.annotation)


def set_field(record: Any, name: str, value: Any) -> None:
    """Assign a field, also on frozen dataclasses."""
    object.__setattr__(record, name, value)


class RowMapper(Generic[T]):
    """Maps row dicts onto instances of one record type.

    Args:
        record_type: Dataclass or Pydantic model to construct.
    """

    def __init__(self, record_type: type[T]) -> None:
        self._record_type = record_type
        self._meta = get_metadata(record_type)

    @property
    def metadata(self) -> RecordMetadata:
        return self._meta

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row to a record instance."""
        meta = self._meta
        values: dict[str, Any] = {}
        for column, value in row.items():
            name = meta.field_for_column(column)
            if name is not None:
                values[name] = value

        for spec in meta.fields:
            if spec.name not in values:
                values[spec.name] = _missing_value(spec)
        for relation in meta.relations:
            values[relation.field] = [] if relation.kind is RelationKind.HAS_MANY else None

        return self._construct(values)

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]

    def _construct(self, values: dict[str, Any]) -> T:
        meta = self._meta
        if meta.is_pydantic:
            # relation fields bypass validation: a plain `X` annotation rejects None
            related = {r.field for r in meta.relations}
            scanned = {k: v for k, v in values.items() if k not in related}
            try:
                record = self._record_type.model_validate(scanned)  # type: ignore[attr-defined]
            except ValidationError as e:
                raise TypeMismatchError(f"Cannot map row to {meta.name}: {e}") from e
            for name in related:
                set_field(record, name, values[name])
            return record  # type: ignore[no-any-return]

        deferred = {spec.name for spec in meta.fields if not spec.init}
        kwargs = {k: v for k, v in values.items() if k not in deferred}
        try:
            record = self._record_type(**kwargs)
        except TypeError as e:
            raise TypeMismatchError(f"Cannot map row to {meta.name}: {e}") from e
        for name in deferred:
            set_field(record, name, values[name])
        return record
