"""
Example 01: Basic Records

This example demonstrates inserting and selecting typed records with RowORM's Engine.
"""

import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from row_orm import ConnectionConfig, Engine, ignore, pk


@dataclass
class User:
    user_id: int = pk(ai=True)
    name: str = ""
    email: str = ""
    created_at: str = ignore(default="")


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE user (
            user_id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()
    conn.close()

    # Configure engine and register record types at startup
    config = ConnectionConfig(driver="sqlite", database=db_path)
    engine = Engine.from_config(config)
    engine.add_table(User)
    engine.check_tables()

    print("=== Basic Records ===\n")

    # insert: the generated key is written back onto the record
    alice = User(name="Alice", email="alice@example.com")
    engine.insert(alice)
    print(f"insert -> user_id={alice.user_id}\n")

    # insert_batch: one statement, keys back-filled in input order
    others = [User(name="Bob", email="bob@example.com"), User(name="Carol", email="carol@example.com")]
    engine.insert_batch(others)
    print(f"insert_batch -> {[u.user_id for u in others]}\n")

    # select_by_pk / select
    user = engine.select_by_pk(User, 1)
    print(f"select_by_pk result: {user}\n")

    users = engine.select(User, "SELECT * FROM user WHERE name <> ? ORDER BY name", "Alice")
    print(f"select result ({len(users)} rows):")
    for user in users:
        print(f"  - {user.name} ({user.email})")
    print()

    # scalar helpers
    count = engine.select_int("SELECT COUNT(*) FROM user")
    print(f"select_int result: {count} total users\n")

    # named placeholders
    result = engine.execute_with_params(
        "UPDATE user SET email = #{email} WHERE user_id = #{user_id}",
        {"user_id": 2, "email": "robert@example.com"},
    )
    print(f"execute_with_params affected {result.rows_affected} row(s)\n")

    # Clean up
    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
