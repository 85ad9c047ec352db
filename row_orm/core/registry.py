"""Table registry - maps table names to registered record types.

Tables are registered once at startup; the registry is frozen afterwards
and read-only for the lifetime of the application.
"""

from __future__ import annotations

import logging

from row_orm.core.exceptions import RegistryError, TableNotFoundError
from row_orm.mapping.metadata import RecordMetadata, get_metadata, validate_relations

logger = logging.getLogger(__name__)


class TableRegistry:
    """Registry of record types keyed by table name."""

    def __init__(self) -> None:
        self._tables: dict[str, type] = {}
        self._frozen = False

    def register(self, record_type: type) -> RecordMetadata:
        """Build and validate metadata for *record_type* and register it.

        Raises:
            ConfigurationError: If the type's tags or relations are malformed.
            RegistryError: If the registry is frozen or the table name is taken.
        """
        if self._frozen:
            raise RegistryError(
                f"Cannot register {record_type.__name__}: table registry is frozen"
            )
        meta = get_metadata(record_type)
        validate_relations(meta)

        existing = self._tables.get(meta.table)
        if existing is not None and existing is not record_type:
            raise RegistryError(
                f"Duplicate table '{meta.table}': {existing.__name__} and {record_type.__name__}"
            )
        self._tables[meta.table] = record_type
        logger.info("Registered table %s -> %s", meta.table, meta.name)
        return meta

    def freeze(self) -> None:
        """Reject further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, table: str) -> type:
        """Look up the record type registered for *table*.

        Raises:
            TableNotFoundError: If no type is registered under that name.
        """
        try:
            return self._tables[table]
        except KeyError:
            raise TableNotFoundError(table) from None

    def has(self, table: str) -> bool:
        """Check if a table name is registered."""
        return table in self._tables

    @property
    def table_names(self) -> list[str]:
        """All registered table names, sorted alphabetically."""
        return sorted(self._tables)

    def __len__(self) -> int:
        """Number of registered tables."""
        return len(self._tables)
