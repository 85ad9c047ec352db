"""RowORM exception hierarchy.

Driver exceptions raised while executing a statement are propagated
unchanged; everything raised by RowORM itself derives from RowOrmError.
"""

from __future__ import annotations


class RowOrmError(Exception):
    """Base exception for all RowORM errors."""


# --- Registry ---


class RegistryError(RowOrmError):
    """Base for table registry errors."""


class TableNotFoundError(RegistryError):
    """Raised when a table name has no registered record type."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table not registered: '{table}'")


# --- Mapping ---


class MappingError(RowOrmError):
    """Base for mapping errors."""


class ConfigurationError(MappingError):
    """Raised when a record type's declared tags cannot be turned into metadata."""

    def __init__(self, record_type: str, detail: str) -> None:
        self.record_type = record_type
        super().__init__(f"Invalid record type {record_type}: {detail}")


class TypeMismatchError(MappingError):
    """Raised when a value does not fit the shape it is bound to."""


# --- Execution ---


class ExecutionError(RowOrmError):
    """Base for query execution errors."""


class NotFoundError(ExecutionError):
    """Base for lookups that produced nothing."""


class RecordNotFoundError(NotFoundError):
    """Raised when a query expected to return one row returned none."""

    def __init__(self, statement: str) -> None:
        self.statement = statement
        super().__init__(f"No rows returned by: {statement}")


class ParameterNotFoundError(NotFoundError):
    """Raised when a named placeholder has no value in the parameter source."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing parameter '{name}'")


class RowAffectMismatchError(ExecutionError):
    """Raised when a statement affects a different number of rows than expected."""

    def __init__(self, expected: int, actual: int, statement: str) -> None:
        self.expected = expected
        self.actual = actual
        self.statement = statement
        super().__init__(
            f"Statement [{statement}] should affect {expected} rows, affected {actual} rows"
        )


def is_row_affect_error(error: BaseException | None) -> bool:
    """Return True if *error* is a row-affected count mismatch."""
    return isinstance(error, RowAffectMismatchError)


# --- Transaction ---


class TransactionError(RowOrmError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowOrmError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
