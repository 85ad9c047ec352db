"""Unit tests for relation loading through a recording session."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from row_orm.core.session import Session
from row_orm.mapping.fields import belongs_to, has_many, has_one, pk
from row_orm.mapping.relations import RelationResolver

# --- Test record types (match the conftest schema) ---


@dataclass
class Profile:
    profile_id: int = pk(ai=True)
    author_id: int = 0
    bio: str = ""


@dataclass
class Book:
    book_id: int = pk(ai=True)
    author_id: int | None = None
    title: str = ""
    author: Author | None = belongs_to("author")


@dataclass
class Author:
    author_id: int = pk(ai=True)
    name: str = ""
    books: list[Book] = has_many("book")
    profile: Profile | None = has_one("profile")


@dataclass
class Writer:
    """Author rows with only the has_many relation."""

    author_id: int = pk(ai=True)
    name: str = ""
    books: list[Book] = has_many("book")


@pytest.fixture
def library(session: Session, recording_adapter) -> Session:
    """Three authors, four books, one profile."""
    session.execute("INSERT INTO author (name) VALUES ('Le Guin'), ('Herbert'), ('Banks')")
    session.execute(
        "INSERT INTO book (author_id, title) VALUES "
        "(1, 'The Dispossessed'), (2, 'Dune'), (1, 'The Lathe of Heaven'), (1, 'Lavinia')"
    )
    session.execute("INSERT INTO profile (author_id, bio) VALUES (2, 'Arrakis')")
    recording_adapter.reset()
    return session


class TestBatchedLoading:
    def test_has_many_uses_one_secondary_query(self, library: Session, recording_adapter) -> None:
        writers = library.select(Writer, "SELECT * FROM author ORDER BY author_id")

        assert len(writers) == 3
        assert len(recording_adapter.statements) == 2
        assert len(recording_adapter.queries_on("book")) == 1

    def test_one_query_per_relation(self, library: Session, recording_adapter) -> None:
        library.select(Author, "SELECT * FROM author")

        assert len(recording_adapter.statements) == 3
        assert len(recording_adapter.queries_on("book")) == 1
        assert len(recording_adapter.queries_on("profile")) == 1

    def test_has_many_grouped_in_returned_order(self, library: Session) -> None:
        authors = library.select(Author, "SELECT * FROM author ORDER BY author_id")

        assert [b.title for b in authors[0].books] == [
            "The Dispossessed",
            "The Lathe of Heaven",
            "Lavinia",
        ]
        assert [b.title for b in authors[1].books] == ["Dune"]
        assert authors[2].books == []

    def test_has_one_assigned_or_left_none(self, library: Session) -> None:
        authors = library.select(Author, "SELECT * FROM author ORDER BY author_id")

        assert authors[0].profile is None
        assert authors[1].profile is not None
        assert authors[1].profile.bio == "Arrakis"
        assert authors[2].profile is None

    def test_keys_are_bound_as_parameters(self, library: Session, recording_adapter) -> None:
        library.select(Writer, "SELECT * FROM author ORDER BY author_id")

        sql, args = recording_adapter.queries_on("book")[0]
        assert sql == "SELECT * FROM book WHERE author_id IN (?, ?, ?)"
        assert args == (1, 2, 3)

    def test_belongs_to_fan_out_shares_one_target(self, library: Session, recording_adapter) -> None:
        books = library.select(Book, "SELECT * FROM book WHERE author_id = ? ORDER BY book_id", 1)

        assert len(books) == 3
        assert len(recording_adapter.queries_on("author")) == 1
        assert recording_adapter.queries_on("author")[0][1] == (1,)
        assert books[0].author is not None
        assert books[0].author.name == "Le Guin"
        assert books[0].author is books[1].author is books[2].author

    def test_belongs_to_skips_null_foreign_keys(self, library: Session, recording_adapter) -> None:
        library.execute("INSERT INTO book (author_id, title) VALUES (NULL, 'Beowulf')")
        recording_adapter.reset()

        books = library.select(Book, "SELECT * FROM book WHERE author_id IS NULL")

        assert books[0].author is None
        assert recording_adapter.queries_on("author") == []

    def test_empty_root_batch_skips_secondary_queries(
        self, library: Session, recording_adapter
    ) -> None:
        authors = library.select(Author, "SELECT * FROM author WHERE author_id > 100")

        assert authors == []
        assert len(recording_adapter.statements) == 1

    def test_related_records_are_loaded_one_level_deep(self, library: Session) -> None:
        authors = library.select(Author, "SELECT * FROM author WHERE author_id = 1")
        assert all(book.author is None for book in authors[0].books)


class TestSingleLoading:
    def test_select_one_loads_every_relation(self, library: Session, recording_adapter) -> None:
        author = library.select_one(Author, "SELECT * FROM author WHERE author_id = ?", 2)

        assert [b.title for b in author.books] == ["Dune"]
        assert author.profile is not None
        assert author.profile.author_id == 2
        assert len(recording_adapter.statements) == 3

    def test_has_one_query_is_limited(self, library: Session, recording_adapter) -> None:
        library.select_one(Author, "SELECT * FROM author WHERE author_id = ?", 1)

        sql, args = recording_adapter.queries_on("profile")[0]
        assert sql == "SELECT * FROM profile WHERE author_id = ? LIMIT 1"
        assert args == (1,)

    def test_missing_has_one_is_not_an_error(self, library: Session) -> None:
        author = library.select_one(Author, "SELECT * FROM author WHERE author_id = ?", 3)
        assert author.profile is None
        assert author.books == []

    def test_belongs_to(self, library: Session) -> None:
        book = library.select_by_pk(Book, 2)
        assert book.author is not None
        assert book.author.name == "Herbert"

    def test_resolver_on_records_without_relations(self, library: Session, recording_adapter) -> None:
        profile = Profile(profile_id=1, author_id=2, bio="")
        RelationResolver(library).resolve_one(profile)
        RelationResolver(library).resolve_many([profile])
        assert recording_adapter.statements == []
