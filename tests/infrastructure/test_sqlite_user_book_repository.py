"""
Tests for SqliteUserBookRepository.

Each test uses a fresh database file under pytest's tmp_path.
"""

import sqlite3
import pytest
from datetime import datetime, timedelta, timezone
from uuid import UUID

from app.domain.entities import UserBook
from app.domain.exceptions import (
    ConcurrencyConflictError,
    InvalidArgumentError,
    UserBookNotFoundError,
)
from app.domain.utils.clock import utc_now
from app.domain.value_objects import BookInfo, ReadingStatus
from app.infrastructure.db.sqlite_user_book_repository import SqliteUserBookRepository


USER_ID = UUID("12345678-1234-1234-1234-123456789012")
OTHER_USER_ID = UUID("87654321-4321-4321-4321-210987654321")
SESSION_DATE = datetime(2024, 4, 2, 21, 15, tzinfo=timezone.utc)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "nested" / "library.db"


@pytest.fixture
def repo(db_path):
    return SqliteUserBookRepository(db_path)


def _make_user_book(
    book_id: str = "isbn-1",
    title: str = "Test Book",
    author: str = "Test Author",
    user_id: UUID = USER_ID,
    total_pages=100,
    **info,
) -> UserBook:
    """Helper to create a UserBook with sensible defaults."""
    return UserBook(
        book_id,
        user_id,
        BookInfo(title=title, author=author, total_pages=total_pages, **info),
    )


class TestSchema:
    """Tests for database initialization."""

    def test_creates_parent_directory_and_tables(self, repo, db_path):
        assert db_path.exists()

        conn = sqlite3.connect(db_path)
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()

        assert {"user_books", "reading_sessions"} <= tables

    def test_reopening_keeps_data(self, repo, db_path):
        user_book = _make_user_book()
        repo.add(user_book)

        reopened = SqliteUserBookRepository(db_path)

        assert reopened.get_by_id(user_book.user_book_id) is not None


class TestAddAndGet:
    """Tests for round-tripping aggregates."""

    def test_round_trip_preserves_fields(self, repo):
        user_book = _make_user_book(
            isbn="9780000000001",
            publisher="Pub",
            publication_year=1999,
            genre="Drama",
            description="Desc",
            cover_image_url="http://img",
        )
        user_book.start_reading(SESSION_DATE)
        session = user_book.log_reading_session(
            SESSION_DATE, 0, 30, end_time=SESSION_DATE + timedelta(minutes=40), notes="fun"
        )
        user_book.rate_book(4)
        user_book.update_personal_notes("keep")
        repo.add(user_book)

        loaded = repo.get_by_id(user_book.user_book_id)

        assert loaded == user_book
        assert loaded.book_info == user_book.book_info
        assert loaded.status == ReadingStatus.READING
        assert loaded.current_progress == user_book.current_progress
        assert loaded.added_date == user_book.added_date
        assert loaded.started_date == SESSION_DATE
        assert loaded.personal_rating == 4
        assert loaded.personal_notes == "keep"
        assert loaded.version == 0
        assert loaded.domain_events == []

        [loaded_session] = loaded.reading_sessions
        assert loaded_session == session
        assert loaded_session.start_page == 0
        assert loaded_session.end_page == 30
        assert loaded_session.duration == timedelta(minutes=40)
        assert loaded_session.notes == "fun"

    def test_get_missing_returns_none(self, repo):
        assert repo.get_by_id(UUID(int=42)) is None

    def test_duplicate_book_for_user_raises_value_error(self, repo):
        repo.add(_make_user_book("isbn-1"))

        with pytest.raises(ValueError, match="violates constraints"):
            repo.add(_make_user_book("isbn-1"))

    def test_get_by_user_and_book(self, repo):
        user_book = _make_user_book("isbn-1")
        repo.add(user_book)

        assert repo.get_by_user_and_book(USER_ID, "isbn-1") == user_book
        assert repo.get_by_user_and_book(OTHER_USER_ID, "isbn-1") is None
        assert repo.has_user_book(USER_ID, "isbn-1") is True
        assert repo.has_user_book(USER_ID, "isbn-2") is False

    def test_sessions_keep_logging_order(self, repo):
        user_book = _make_user_book(total_pages=500)
        user_book.start_reading(SESSION_DATE)
        for i in range(5):
            user_book.log_reading_session(SESSION_DATE + timedelta(days=4 - i), i * 10, i * 10 + 10)
        repo.add(user_book)

        loaded = repo.get_by_id(user_book.user_book_id)

        assert [s.start_page for s in loaded.reading_sessions] == [0, 10, 20, 30, 40]


class TestUpdate:
    """Tests for updates and optimistic concurrency."""

    def test_update_persists_changes_and_bumps_version(self, repo):
        user_book = _make_user_book()
        repo.add(user_book)

        loaded = repo.get_by_id(user_book.user_book_id)
        loaded.start_reading(SESSION_DATE)
        loaded.log_reading_session(SESSION_DATE, 0, 25)
        repo.update(loaded)

        assert loaded.version == 1
        reloaded = repo.get_by_id(user_book.user_book_id)
        assert reloaded.version == 1
        assert reloaded.status == ReadingStatus.READING
        assert reloaded.current_progress.page_number == 25
        assert reloaded.total_reading_sessions == 1

    def test_stale_version_raises_conflict(self, repo):
        user_book = _make_user_book()
        repo.add(user_book)

        first = repo.get_by_id(user_book.user_book_id)
        second = repo.get_by_id(user_book.user_book_id)
        first.rate_book(5)
        repo.update(first)

        second.rate_book(1)
        with pytest.raises(ConcurrencyConflictError):
            repo.update(second)

        assert repo.get_by_id(user_book.user_book_id).personal_rating == 5

    def test_update_missing_raises_not_found(self, repo):
        with pytest.raises(UserBookNotFoundError):
            repo.update(_make_user_book())

    def test_update_rewrites_sessions(self, repo):
        user_book = _make_user_book()
        user_book.start_reading(SESSION_DATE)
        user_book.log_reading_session(SESSION_DATE, 0, 10)
        repo.add(user_book)

        loaded = repo.get_by_id(user_book.user_book_id)
        loaded.log_reading_session(SESSION_DATE + timedelta(days=1), 10, 20)
        repo.update(loaded)

        assert repo.get_by_id(user_book.user_book_id).total_pages_read == 20


class TestDelete:
    """Tests for deletion."""

    def test_delete_removes_entry_and_sessions(self, repo, db_path):
        user_book = _make_user_book()
        user_book.start_reading(SESSION_DATE)
        user_book.log_reading_session(SESSION_DATE, 0, 10)
        repo.add(user_book)

        assert repo.delete(user_book.user_book_id) is True
        assert repo.get_by_id(user_book.user_book_id) is None

        conn = sqlite3.connect(db_path)
        remaining = conn.execute("SELECT COUNT(*) FROM reading_sessions").fetchone()[0]
        conn.close()
        assert remaining == 0

    def test_delete_missing_returns_false(self, repo):
        assert repo.delete(UUID(int=7)) is False


class TestQueries:
    """Tests for the query methods."""

    @pytest.fixture
    def library(self, repo):
        hobbit = _make_user_book("isbn-hobbit", "The Hobbit", "J.R.R. Tolkien", genre="Fantasy")
        dune = _make_user_book("isbn-dune", "Dune", "Frank Herbert", genre="Science Fiction")
        emma = _make_user_book("isbn-emma", "Emma", "Jane Austen", genre="Romance")
        other = _make_user_book("isbn-other", "The Hobbit", "J.R.R. Tolkien", user_id=OTHER_USER_ID)

        hobbit.start_reading(SESSION_DATE)
        dune.start_reading(SESSION_DATE)
        dune.mark_as_finished()
        dune.rate_book(5)
        emma.update_personal_notes("100% worth it")

        for user_book in (hobbit, dune, emma, other):
            repo.add(user_book)
        return {"hobbit": hobbit, "dune": dune, "emma": emma}

    def test_get_by_user_id_is_scoped_and_newest_first(self, repo, library):
        books = repo.get_by_user_id(USER_ID)

        assert [b.book_id for b in books] == ["isbn-emma", "isbn-dune", "isbn-hobbit"]

    def test_find_by_status(self, repo, library):
        assert [b.book_id for b in repo.find_by_status(USER_ID, ReadingStatus.FINISHED)] == [
            "isbn-dune"
        ]
        assert [b.book_id for b in repo.find_currently_reading(USER_ID)] == ["isbn-hobbit"]

    def test_find_recently_finished(self, repo, library):
        assert [b.book_id for b in repo.find_recently_finished(USER_ID, days=7)] == ["isbn-dune"]

    def test_find_recently_finished_excludes_old(self, repo):
        old = _make_user_book("isbn-old")
        old.start_reading(SESSION_DATE)
        old.mark_as_finished(utc_now() - timedelta(days=60))
        repo.add(old)

        assert repo.find_recently_finished(USER_ID, days=30) == []

    def test_find_by_rating(self, repo, library):
        assert [b.book_id for b in repo.find_by_rating(USER_ID, 5)] == ["isbn-dune"]
        assert repo.find_by_rating(USER_ID, 3) == []

    @pytest.mark.parametrize(
        "term,expected",
        [
            ("hobbit", ["isbn-hobbit"]),
            ("HERBERT", ["isbn-dune"]),
            ("romance", ["isbn-emma"]),
            ("100%", ["isbn-emma"]),
            ("nothing", []),
        ],
    )
    def test_search(self, repo, library, term, expected):
        assert [b.book_id for b in repo.search(USER_ID, term)] == expected

    def test_percent_is_matched_literally(self, repo, library):
        """LIKE wildcards in the term are escaped."""
        assert repo.search(USER_ID, "%") == [library["emma"]]

    def test_blank_search_returns_whole_library(self, repo, library):
        assert len(repo.search(USER_ID, "  ")) == 3

    def test_find_by_author(self, repo, library):
        assert [b.book_id for b in repo.find_by_author(USER_ID, "tolkien")] == ["isbn-hobbit"]
        assert repo.find_by_author(USER_ID, " ") == []

    def test_find_by_date_range(self, repo, library):
        now = utc_now()

        assert len(repo.find_by_date_range(USER_ID, now - timedelta(hours=1), now)) == 3
        assert repo.find_by_date_range(USER_ID, now - timedelta(days=3), now - timedelta(days=2)) == []

    def test_counts(self, repo, library):
        assert repo.get_total_books_count(USER_ID) == 3
        assert repo.get_books_count_by_status(USER_ID, ReadingStatus.TO_READ) == 1
        assert repo.get_books_count_by_status(USER_ID, ReadingStatus.DROPPED) == 0
        assert repo.get_total_books_count(OTHER_USER_ID) == 1


class TestGetPaged:
    """Tests for paged listing."""

    @pytest.fixture
    def ten_books(self, repo):
        books = []
        for i in range(10):
            user_book = _make_user_book(f"isbn-{i}", f"Book {i}", "Writer" if i % 2 else "Poet")
            repo.add(user_book)
            books.append(user_book)
        return books

    def test_pages(self, repo, ten_books):
        first = repo.get_paged(USER_ID, 1, 4)
        last = repo.get_paged(USER_ID, 3, 4)

        assert first.total_count == 10
        assert first.total_pages == 3
        assert [b.book_id for b in first.items] == ["isbn-9", "isbn-8", "isbn-7", "isbn-6"]
        assert [b.book_id for b in last.items] == ["isbn-1", "isbn-0"]

    def test_page_beyond_end_is_empty(self, repo, ten_books):
        page = repo.get_paged(USER_ID, 5, 4)

        assert page.items == []
        assert page.total_count == 10

    def test_status_and_search_filters(self, repo, ten_books):
        page = repo.get_paged(
            USER_ID, 1, 20, status_filter=ReadingStatus.TO_READ, search_term="poet"
        )

        assert page.total_count == 5
        assert all(b.book_info.author == "Poet" for b in page.items)

    @pytest.mark.parametrize("page_number,page_size", [(0, 10), (1, 0)])
    def test_invalid_paging_raises(self, repo, page_number, page_size):
        with pytest.raises(InvalidArgumentError):
            repo.get_paged(USER_ID, page_number, page_size)


class TestErrorTranslation:
    """Storage failures surface as RuntimeError."""

    def test_corrupted_table_raises_runtime_error(self, repo, db_path):
        conn = sqlite3.connect(db_path)
        conn.execute("DROP TABLE reading_sessions")
        conn.execute("DROP TABLE user_books")
        conn.commit()
        conn.close()

        with pytest.raises(RuntimeError, match="Database error"):
            repo.get_by_user_id(USER_ID)
