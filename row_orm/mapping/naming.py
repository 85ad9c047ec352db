"""Field/column naming convention.

    field_to_column("UserName")  -> "user_name"
    column_to_field("user_name") -> "UserName"

The two functions are not inverses of each other. column_to_field only
uppercases the first letter of each token, so round-tripping holds for
names that start with a capital and contain no underscores.
"""

from __future__ import annotations


def field_to_column(name: str) -> str:
    """Convert a field (or type) name to its column (or table) name."""
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def column_to_field(name: str) -> str:
    """Convert a column name to the CamelCase field name it maps to."""
    return "".join(token[:1].upper() + token[1:] for token in name.split("_"))


def table_name_for(record_type: type) -> str:
    """Table name for a record type, derived from the type name."""
    return field_to_column(record_type.__name__)
