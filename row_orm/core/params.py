"""Named placeholder substitution.

Rewrites ``#{name}`` placeholders in a query template to the driver's
positional marker and collects the values, in occurrence order, from a
parameter source:

    compile_named("SELECT * FROM t WHERE id = #{id}", {"id": 5})
    -> ("SELECT * FROM t WHERE id = ?", [5])
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Union

from pydantic import BaseModel

from row_orm.core.exceptions import ParameterNotFoundError, TypeMismatchError

logger = logging.getLogger(__name__)

_PLACEHOLDER_PATTERN = re.compile(r"#\{([A-Za-z0-9_-]+)\}")


class MappingSource:
    """Resolves names as keys of a mapping."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = values

    def resolve(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise ParameterNotFoundError(name) from None


class RecordSource:
    """Resolves names as field names of a dataclass or Pydantic instance."""

    def __init__(self, record: Any) -> None:
        if isinstance(record, BaseModel):
            self._names = frozenset(type(record).model_fields)
        else:
            self._names = frozenset(f.name for f in dataclasses.fields(record))
        self._record = record

    def resolve(self, name: str) -> Any:
        if name not in self._names:
            raise ParameterNotFoundError(name)
        return getattr(self._record, name)


ParamSource = Union[MappingSource, RecordSource]


def param_source(params: Any) -> ParamSource:
    """Wrap *params* in the matching source.

    Raises:
        TypeMismatchError: If *params* is neither a mapping nor a record.
    """
    if isinstance(params, (MappingSource, RecordSource)):
        return params
    if isinstance(params, Mapping):
        return MappingSource(params)
    if isinstance(params, BaseModel) or (
        dataclasses.is_dataclass(params) and not isinstance(params, type)
    ):
        return RecordSource(params)
    raise TypeMismatchError(f"Parameter type {type(params).__name__} is not supported")


@lru_cache(maxsize=256)
def _parse(template: str, marker: str) -> tuple[str, tuple[str, ...]]:
    """Return the rewritten template and placeholder names in order."""
    names = tuple(_PLACEHOLDER_PATTERN.findall(template))
    if not names:
        return template, ()
    return _PLACEHOLDER_PATTERN.sub(lambda _: marker, template), names


def compile_named(template: str, params: Any, marker: str = "?") -> tuple[str, list[Any]]:
    """Rewrite *template* to positional form and resolve its arguments.

    Args:
        template: Query text with ``#{name}`` placeholders.
        params: Mapping, dataclass/Pydantic instance, or a ParamSource.
        marker: The driver's positional marker.

    Returns:
        Tuple of (sql, args) with args in placeholder order.

    Raises:
        TypeMismatchError: If *params* has an unsupported shape.
        ParameterNotFoundError: If a placeholder cannot be resolved.
    """
    sql, names = _parse(template, marker)
    if not names:
        logger.warning("No parameter found in query template: %s", template)
        return sql, []

    source = param_source(params)
    return sql, [source.resolve(name) for name in names]
