"""Integration test for SQLite full workflow.

Covers: table registration, inserts with key back-fill, relation loading,
parameterized statements and transactions end-to-end against a real
SQLite database file shared by a connection pool.
"""

from __future__ import annotations

from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from pydantic import BaseModel, Field

from row_orm import (
    ConnectionConfig,
    Engine,
    EngineOptions,
    ExecutionError,
    RecordNotFoundError,
    TransactionManager,
    is_row_affect_error,
)

# --- Test models ---


class Account(BaseModel):
    account_id: int = Field(default=0, json_schema_extra={"pk": True, "ai": True})
    handle: str
    bio: str | None = Field(default=None, json_schema_extra={"ignore": True})


class Comment(BaseModel):
    comment_id: int = Field(default=0, json_schema_extra={"pk": True, "ai": True})
    post_id: int = 0
    body: str


class Post(BaseModel):
    post_id: int = Field(default=0, json_schema_extra={"pk": True, "ai": True})
    account_id: int
    title: str
    account: Account | None = Field(
        default=None, json_schema_extra={"or": "belongs_to", "table": "account"}
    )
    comments: list[Comment] = Field(
        default_factory=list, json_schema_extra={"or": "has_many", "table": "comment"}
    )


# --- Fixtures ---

SCHEMA = (
    "CREATE TABLE account ("
    "account_id INTEGER PRIMARY KEY AUTOINCREMENT, handle TEXT NOT NULL UNIQUE, bio TEXT)",
    "CREATE TABLE post ("
    "post_id INTEGER PRIMARY KEY AUTOINCREMENT, account_id INTEGER NOT NULL, title TEXT NOT NULL)",
    "CREATE TABLE comment ("
    "comment_id INTEGER PRIMARY KEY AUTOINCREMENT, post_id INTEGER NOT NULL, body TEXT NOT NULL)",
)


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    config = ConnectionConfig(driver="sqlite", database=str(tmp_path / "blog.db"), pool_size=4)
    eng = Engine.from_config(config, EngineOptions(echo=True))
    for model in (Account, Post, Comment):
        eng.add_table(model)
    for ddl in SCHEMA:
        eng.execute(ddl)
    eng.check_tables()
    yield eng
    eng.close()


@pytest.fixture
def blog(engine: Engine) -> Engine:
    """Two accounts, three posts, four comments."""
    accounts = [Account(handle="ada"), Account(handle="grace")]
    engine.insert_batch(accounts)
    posts = [
        Post(account_id=accounts[0].account_id, title="Engines"),
        Post(account_id=accounts[0].account_id, title="Notes"),
        Post(account_id=accounts[1].account_id, title="Compilers"),
    ]
    engine.insert_batch(posts)
    engine.insert_batch(
        [
            Comment(post_id=posts[0].post_id, body="first"),
            Comment(post_id=posts[2].post_id, body="nice"),
            Comment(post_id=posts[0].post_id, body="second"),
            Comment(post_id=posts[0].post_id, body="third"),
        ]
    )
    return engine


# --- Integration Tests ---


@pytest.mark.integration
class TestSqliteRecords:
    def test_registered_tables(self, engine: Engine) -> None:
        assert engine.registry.table_names == ["account", "comment", "post"]
        assert engine.get_table_by_name("post") is Post

    def test_insert_and_select_by_pk_round_trip(self, engine: Engine) -> None:
        account = Account(handle="linus", bio="not stored")
        engine.insert(account)
        assert account.account_id == 1

        loaded = engine.select_by_pk(Account, 1)
        assert loaded.handle == "linus"
        assert loaded.bio is None

    def test_batch_ids_are_contiguous(self, blog: Engine) -> None:
        ids = blog.select_values("SELECT post_id FROM post ORDER BY post_id")
        assert ids == [1, 2, 3]

    def test_select_loads_relations(self, blog: Engine) -> None:
        posts = blog.select(Post, "SELECT * FROM post ORDER BY post_id")

        assert [p.title for p in posts] == ["Engines", "Notes", "Compilers"]
        assert [c.body for c in posts[0].comments] == ["first", "second", "third"]
        assert posts[1].comments == []
        assert [c.body for c in posts[2].comments] == ["nice"]

        assert posts[0].account is not None
        assert posts[0].account.handle == "ada"
        assert posts[0].account is posts[1].account
        assert posts[2].account is not None
        assert posts[2].account.handle == "grace"

    def test_select_one_loads_relations(self, blog: Engine) -> None:
        post = blog.select_one(Post, "SELECT * FROM post WHERE title = ?", "Compilers")
        assert post.account is not None
        assert post.account.handle == "grace"
        assert len(post.comments) == 1

    def test_select_one_not_found(self, blog: Engine) -> None:
        with pytest.raises(RecordNotFoundError):
            blog.select_one(Post, "SELECT * FROM post WHERE post_id = ?", 42)

    def test_execute_with_record_params(self, blog: Engine) -> None:
        post = blog.select_by_pk(Post, 2)
        post.title = "Notes, revised"
        result = blog.execute_with_params(
            "UPDATE post SET title = #{title} WHERE post_id = #{post_id}", post
        )
        assert result.rows_affected == 1
        assert blog.select_str("SELECT title FROM post WHERE post_id = 2") == "Notes, revised"

    def test_row_affect_mismatch(self, blog: Engine) -> None:
        with pytest.raises(ExecutionError) as exc_info:
            blog.execute_checked(1, "DELETE FROM comment WHERE post_id = ?", 99)
        assert is_row_affect_error(exc_info.value)

    def test_raw_rows(self, blog: Engine) -> None:
        columns, rows = blog.select_raw("SELECT handle, bio FROM account ORDER BY account_id")
        assert columns == ["handle", "bio"]
        assert rows == [["ada", ""], ["grace", ""]]

    def test_concurrent_reads_share_the_pool(self, blog: Engine) -> None:
        def load(_: int) -> int:
            posts = blog.select(Post, "SELECT * FROM post")
            return sum(len(p.comments) for p in posts)

        with ThreadPoolExecutor(max_workers=8) as pool:
            totals = list(pool.map(load, range(32)))

        assert totals == [4] * 32

    def test_truncate_tables(self, blog: Engine) -> None:
        blog.truncate_tables()
        assert blog.select_int("SELECT COUNT(*) FROM comment") == 0
        assert blog.select_int("SELECT COUNT(*) FROM post") == 0


@pytest.mark.integration
class TestSqliteTransactions:
    def test_transaction_commit(self, blog: Engine) -> None:
        def publish(tx: TransactionManager) -> Post:
            post = Post(account_id=1, title="Drafts")
            tx.insert(post)
            tx.insert_batch([Comment(post_id=post.post_id, body=b) for b in ("a", "b")])
            return tx.select_by_pk(Post, post.post_id)

        post = blog.do_transaction(publish)
        assert [c.body for c in post.comments] == ["a", "b"]
        assert blog.select_int("SELECT COUNT(*) FROM comment") == 6

    def test_transaction_auto_rollback_on_error(self, blog: Engine) -> None:
        with pytest.raises(ValueError, match="Simulated error"), blog.transaction() as tx:
            tx.insert(Post(account_id=1, title="Lost"))
            raise ValueError("Simulated error")

        assert blog.select_int("SELECT COUNT(*) FROM post") == 3

    def test_transaction_duplicate_is_ignored(self, blog: Engine) -> None:
        with blog.transaction() as tx:
            result = tx.insert(Account(handle="ada"), ignore=True)
            assert result.rows_affected == 0

        assert blog.select_int("SELECT COUNT(*) FROM account") == 2
