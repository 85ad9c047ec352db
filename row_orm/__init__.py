"""RowORM - metadata-driven row mapping and relation loading."""

from __future__ import annotations

from row_orm.core.connection import ConnectionConfig, ConnectionManager
from row_orm.core.engine import Engine, EngineOptions
from row_orm.core.enums import DatabaseBackend, RelationKind
from row_orm.core.exceptions import (
    AdapterError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    MappingError,
    NotFoundError,
    ParameterNotFoundError,
    PoolError,
    RecordNotFoundError,
    RegistryError,
    RowAffectMismatchError,
    RowOrmError,
    TableNotFoundError,
    TransactionError,
    TransactionStateError,
    TypeMismatchError,
    is_row_affect_error,
)
from row_orm.core.params import compile_named
from row_orm.core.registry import TableRegistry
from row_orm.core.session import ExecResult, Session
from row_orm.core.transaction import TransactionManager
from row_orm.mapping.fields import belongs_to, has_many, has_one, ignore, pk
from row_orm.mapping.metadata import RecordMetadata, get_metadata
from row_orm.mapping.model import RowMapper

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Engine
    "Engine",
    "EngineOptions",
    "Session",
    "ExecResult",
    # Registry
    "TableRegistry",
    # Transaction
    "TransactionManager",
    # Parameters
    "compile_named",
    # Mapping
    "RowMapper",
    "RecordMetadata",
    "get_metadata",
    "pk",
    "ignore",
    "has_one",
    "has_many",
    "belongs_to",
    # Enums
    "DatabaseBackend",
    "RelationKind",
    # Exceptions
    "RowOrmError",
    "RegistryError",
    "TableNotFoundError",
    "MappingError",
    "ConfigurationError",
    "TypeMismatchError",
    "ExecutionError",
    "NotFoundError",
    "RecordNotFoundError",
    "ParameterNotFoundError",
    "RowAffectMismatchError",
    "is_row_affect_error",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
