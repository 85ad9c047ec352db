"""Declarative tags for record type fields.

Tags live in the field's metadata mapping. For dataclasses that is
``dataclasses.field(metadata=...)``; for Pydantic models it is
``Field(json_schema_extra=...)``. The helpers below build dataclass fields:

    @dataclass
    class User:
        user_id: int = pk(ai=True)
        name: str = ""
        created_at: str = ignore()
        orders: list[Order] = has_many("order")
"""

from __future__ import annotations

import dataclasses
from typing import Any

PK = "pk"
AI = "ai"
IGNORE = "ignore"
OR = "or"
TABLE = "table"


def pk(*, ai: bool = False, default: Any = 0) -> Any:
    """Primary-key field, optionally store-assigned (auto-increment)."""
    return dataclasses.field(default=default, metadata={PK: True, AI: ai})


def ignore(*, default: Any = None) -> Any:
    """Field that is read from rows but never written by inserts."""
    return dataclasses.field(default=default, metadata={IGNORE: True})


def has_one(table: str) -> Any:
    """Single related record whose foreign key is this record's primary key."""
    return dataclasses.field(default=None, metadata={OR: "has_one", TABLE: table})


def has_many(table: str) -> Any:
    """Related records whose foreign key is this record's primary key."""
    return dataclasses.field(default_factory=list, metadata={OR: "has_many", TABLE: table})


def belongs_to(table: str) -> Any:
    """Single related record referenced by this record's foreign key."""
    return dataclasses.field(default=None, metadata={OR: "belongs_to", TABLE: table})
