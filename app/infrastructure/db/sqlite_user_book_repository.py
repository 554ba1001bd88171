"""
SQLite implementation of the UserBookRepository port.

This adapter persists UserBook aggregates to a SQLite database. An aggregate
is spread over two tables (user_books and reading_sessions) and is always
written in a single transaction, so the session log never diverges from the
entry it belongs to.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterator, List, Optional, Sequence
from uuid import UUID

from app.domain.entities import ReadingSession, UserBook
from app.domain.exceptions import (
    ConcurrencyConflictError,
    InvalidArgumentError,
    UserBookNotFoundError,
)
from app.domain.ports import UserBookRepository
from app.domain.utils.clock import ensure_utc, utc_now
from app.domain.value_objects import BookInfo, Progress, ReadingStatus, UserBookPage

_USER_BOOK_COLUMNS = (
    "id", "user_id", "book_id", "title", "author", "isbn", "publisher",
    "publication_year", "total_pages", "genre", "description", "cover_image_url",
    "status", "current_page", "added_date", "started_date", "finished_date",
    "personal_notes", "personal_rating", "version",
)

_NEWEST_FIRST = "ORDER BY added_date DESC, rowid DESC"

_SEARCH_CLAUSE = (
    "(LOWER(title) LIKE :term ESCAPE '\\' OR LOWER(author) LIKE :term ESCAPE '\\' "
    "OR LOWER(COALESCE(genre, '')) LIKE :term ESCAPE '\\' "
    "OR LOWER(COALESCE(personal_notes, '')) LIKE :term ESCAPE '\\')"
)


def _to_text(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as sortable UTC ISO text."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def _from_text(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def _like_pattern(term: str) -> str:
    escaped = term.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqliteUserBookRepository(UserBookRepository):
    """
    The unique constraint on (user_id, book_id) keeps one entry per book in
    each user's library. Sessions are stored with their position so the
    logging order survives a round trip.

    Updates use the aggregate's version as an optimistic concurrency token:
    the row is only rewritten when the stored version still matches.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the repository with a database path
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error, always close."""
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_books (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    book_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    author TEXT NOT NULL,
                    isbn TEXT,
                    publisher TEXT,
                    publication_year INTEGER,
                    total_pages INTEGER,
                    genre TEXT,
                    description TEXT,
                    cover_image_url TEXT,
                    status TEXT NOT NULL,
                    current_page INTEGER NOT NULL,
                    added_date TEXT NOT NULL,
                    started_date TEXT,
                    finished_date TEXT,
                    personal_notes TEXT,
                    personal_rating INTEGER,
                    version INTEGER NOT NULL DEFAULT 0,
                    UNIQUE(user_id, book_id)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS reading_sessions (
                    id TEXT PRIMARY KEY,
                    user_book_id TEXT NOT NULL
                        REFERENCES user_books(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    start_date TEXT NOT NULL,
                    end_date TEXT,
                    start_page INTEGER NOT NULL,
                    end_page INTEGER NOT NULL,
                    notes TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_user_books_user_status ON user_books(user_id, status)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sessions_user_book ON reading_sessions(user_book_id, position)"
            )

    # =========================================================================
    # Mapping
    # =========================================================================

    def _user_book_to_row(self, user_book: UserBook) -> dict:
        """Convert a UserBook aggregate to a user_books row dict."""
        info = user_book.book_info
        return {
            "id": str(user_book.user_book_id),
            "user_id": str(user_book.user_id),
            "book_id": user_book.book_id,
            "title": info.title,
            "author": info.author,
            "isbn": info.isbn,
            "publisher": info.publisher,
            "publication_year": info.publication_year,
            "total_pages": info.total_pages,
            "genre": info.genre,
            "description": info.description,
            "cover_image_url": info.cover_image_url,
            "status": user_book.status.value,
            "current_page": user_book.current_progress.page_number,
            "added_date": _to_text(user_book.added_date),
            "started_date": _to_text(user_book.started_date),
            "finished_date": _to_text(user_book.finished_date),
            "personal_notes": user_book.personal_notes,
            "personal_rating": user_book.personal_rating,
            "version": user_book.version,
        }

    def _session_rows(self, user_book: UserBook) -> List[dict]:
        return [
            {
                "id": str(session.session_id),
                "user_book_id": str(user_book.user_book_id),
                "position": position,
                "start_date": _to_text(session.start_date),
                "end_date": _to_text(session.end_date),
                "start_page": session.start_page,
                "end_page": session.end_page,
                "notes": session.notes,
                "created_at": _to_text(session.created_at),
            }
            for position, session in enumerate(user_book.reading_sessions)
        ]

    def _row_to_session(self, row: sqlite3.Row) -> ReadingSession:
        return ReadingSession(
            session_id=UUID(row["id"]),
            start_date=_from_text(row["start_date"]),
            end_date=_from_text(row["end_date"]),
            start_page=row["start_page"],
            end_page=row["end_page"],
            notes=row["notes"],
            created_at=_from_text(row["created_at"]),
        )

    def _row_to_user_book(self, row: sqlite3.Row, sessions: List[ReadingSession]) -> UserBook:
        """Convert a user_books row and its sessions to a UserBook aggregate."""
        book_info = BookInfo(
            title=row["title"],
            author=row["author"],
            isbn=row["isbn"],
            publisher=row["publisher"],
            publication_year=row["publication_year"],
            total_pages=row["total_pages"],
            genre=row["genre"],
            description=row["description"],
            cover_image_url=row["cover_image_url"],
        )

        return UserBook.restore(
            user_book_id=UUID(row["id"]),
            book_id=row["book_id"],
            user_id=UUID(row["user_id"]),
            book_info=book_info,
            status=ReadingStatus(row["status"]),
            current_progress=Progress.from_page(row["current_page"], book_info.total_pages),
            added_date=_from_text(row["added_date"]),
            started_date=_from_text(row["started_date"]),
            finished_date=_from_text(row["finished_date"]),
            personal_notes=row["personal_notes"],
            personal_rating=row["personal_rating"],
            reading_sessions=sessions,
            version=row["version"],
        )

    def _load(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[UserBook]:
        """Attach sessions to user_books rows, preserving row order."""
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        placeholders = ", ".join("?" * len(ids))
        session_rows = conn.execute(
            f"SELECT * FROM reading_sessions WHERE user_book_id IN ({placeholders}) "
            "ORDER BY user_book_id, position",
            ids,
        ).fetchall()

        sessions_by_book = {book_id: [] for book_id in ids}
        for session_row in session_rows:
            sessions_by_book[session_row["user_book_id"]].append(self._row_to_session(session_row))

        return [self._row_to_user_book(row, sessions_by_book[row["id"]]) for row in rows]

    def _query(self, where: str, params: dict, suffix: str = _NEWEST_FIRST) -> List[UserBook]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT * FROM user_books WHERE {where} {suffix}", params
                ).fetchall()
                return self._load(conn, rows)
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while reading library: {e}") from e

    def _count(self, where: str, params: dict) -> int:
        try:
            with self._connect() as conn:
                result = conn.execute(
                    f"SELECT COUNT(*) AS cnt FROM user_books WHERE {where}", params
                ).fetchone()
                return result["cnt"]
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while counting library entries: {e}") from e

    # =========================================================================
    # Basic CRUD
    # =========================================================================

    def get_by_id(self, user_book_id: UUID) -> Optional[UserBook]:
        """Retrieve a library entry by its identifier."""
        found = self._query("id = :id", {"id": str(user_book_id)}, suffix="")
        return found[0] if found else None

    def get_by_user_and_book(self, user_id: UUID, book_id: str) -> Optional[UserBook]:
        found = self._query(
            "user_id = :user_id AND book_id = :book_id",
            {"user_id": str(user_id), "book_id": book_id},
            suffix="",
        )
        return found[0] if found else None

    def get_by_user_id(self, user_id: UUID) -> List[UserBook]:
        return self._query("user_id = :user_id", {"user_id": str(user_id)})

    def add(self, user_book: UserBook) -> None:
        """Persist a new library entry with its sessions."""
        row = self._user_book_to_row(user_book)
        columns = ", ".join(_USER_BOOK_COLUMNS)
        values = ", ".join(f":{column}" for column in _USER_BOOK_COLUMNS)

        try:
            with self._connect() as conn:
                conn.execute(f"INSERT INTO user_books ({columns}) VALUES ({values})", row)
                self._insert_sessions(conn, user_book)
        except sqlite3.IntegrityError as e:
            raise ValueError(
                f"Library entry for book '{user_book.book_id}' violates constraints: {e}"
            ) from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while adding library entry: {e}") from e

    def update(self, user_book: UserBook) -> None:
        """
        Rewrite a library entry and its session log.

        The write only happens if the stored version equals user_book.version;
        the version is then incremented on both sides.
        """
        row = self._user_book_to_row(user_book)
        assignments = ", ".join(
            f"{column} = :{column}"
            for column in _USER_BOOK_COLUMNS
            if column not in ("id", "user_id", "book_id", "version")
        )

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE user_books SET {assignments}, version = version + 1 "
                    "WHERE id = :id AND version = :version",
                    row,
                )
                if cursor.rowcount == 0:
                    exists = conn.execute(
                        "SELECT 1 FROM user_books WHERE id = ?", (row["id"],)
                    ).fetchone()
                    if exists is None:
                        raise UserBookNotFoundError(user_book.user_book_id)
                    raise ConcurrencyConflictError(user_book.user_book_id, user_book.version)

                conn.execute("DELETE FROM reading_sessions WHERE user_book_id = ?", (row["id"],))
                self._insert_sessions(conn, user_book)
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Library entry violates constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while updating library entry: {e}") from e

        user_book.version += 1

    def delete(self, user_book_id: UUID) -> bool:
        """Delete a library entry (sessions cascade). Returns True if deleted."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM user_books WHERE id = ?", (str(user_book_id),))
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while deleting library entry: {e}") from e

    def _insert_sessions(self, conn: sqlite3.Connection, user_book: UserBook) -> None:
        rows = self._session_rows(user_book)
        if rows:
            conn.executemany("""
                INSERT INTO reading_sessions
                (id, user_book_id, position, start_date, end_date,
                 start_page, end_page, notes, created_at)
                VALUES
                (:id, :user_book_id, :position, :start_date, :end_date,
                 :start_page, :end_page, :notes, :created_at)
            """, rows)

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by_status(self, user_id: UUID, status: ReadingStatus) -> List[UserBook]:
        return self._query(
            "user_id = :user_id AND status = :status",
            {"user_id": str(user_id), "status": status.value},
        )

    def find_currently_reading(self, user_id: UUID) -> List[UserBook]:
        return self.find_by_status(user_id, ReadingStatus.READING)

    def find_recently_finished(self, user_id: UUID, days: int = 30) -> List[UserBook]:
        cutoff = utc_now() - timedelta(days=days)
        return self._query(
            "user_id = :user_id AND status = :status AND finished_date >= :cutoff",
            {
                "user_id": str(user_id),
                "status": ReadingStatus.FINISHED.value,
                "cutoff": _to_text(cutoff),
            },
            suffix="ORDER BY finished_date DESC, rowid DESC",
        )

    def find_by_rating(self, user_id: UUID, rating: int) -> List[UserBook]:
        return self._query(
            "user_id = :user_id AND personal_rating = :rating",
            {"user_id": str(user_id), "rating": rating},
        )

    def search(self, user_id: UUID, search_term: str) -> List[UserBook]:
        if not search_term or not search_term.strip():
            return self.get_by_user_id(user_id)

        return self._query(
            f"user_id = :user_id AND {_SEARCH_CLAUSE}",
            {"user_id": str(user_id), "term": _like_pattern(search_term)},
        )

    def find_by_author(self, user_id: UUID, author: str) -> List[UserBook]:
        if not author or not author.strip():
            return []

        return self._query(
            "user_id = :user_id AND LOWER(author) LIKE :author ESCAPE '\\'",
            {"user_id": str(user_id), "author": _like_pattern(author)},
        )

    def find_by_date_range(
        self, user_id: UUID, start_date: datetime, end_date: datetime
    ) -> List[UserBook]:
        return self._query(
            "user_id = :user_id AND added_date >= :start AND added_date <= :end",
            {"user_id": str(user_id), "start": _to_text(start_date), "end": _to_text(end_date)},
        )

    def get_total_books_count(self, user_id: UUID) -> int:
        return self._count("user_id = :user_id", {"user_id": str(user_id)})

    def get_books_count_by_status(self, user_id: UUID, status: ReadingStatus) -> int:
        return self._count(
            "user_id = :user_id AND status = :status",
            {"user_id": str(user_id), "status": status.value},
        )

    def has_user_book(self, user_id: UUID, book_id: str) -> bool:
        return self._count(
            "user_id = :user_id AND book_id = :book_id",
            {"user_id": str(user_id), "book_id": book_id},
        ) > 0

    def get_paged(
        self,
        user_id: UUID,
        page_number: int,
        page_size: int,
        status_filter: Optional[ReadingStatus] = None,
        search_term: Optional[str] = None,
    ) -> UserBookPage:
        """Retrieve one page of a user's library, most recently added first."""
        if page_number < 1:
            raise InvalidArgumentError(
                f"page_number must be >= 1, got {page_number}", field="page_number"
            )
        if page_size < 1:
            raise InvalidArgumentError(f"page_size must be >= 1, got {page_size}", field="page_size")

        where = "user_id = :user_id"
        params: dict = {"user_id": str(user_id)}

        if status_filter is not None:
            where += " AND status = :status"
            params["status"] = status_filter.value

        if search_term and search_term.strip():
            where += f" AND {_SEARCH_CLAUSE}"
            params["term"] = _like_pattern(search_term)

        total_count = self._count(where, params)
        items = self._query(
            where,
            {**params, "limit": page_size, "offset": (page_number - 1) * page_size},
            suffix=f"{_NEWEST_FIRST} LIMIT :limit OFFSET :offset",
        )

        return UserBookPage(
            items=items,
            total_count=total_count,
            page_number=page_number,
            page_size=page_size,
        )
