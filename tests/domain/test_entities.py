"""
Tests for domain entities: ReadingSession and the UserBook aggregate.
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import UUID

from app.domain.entities import ReadingSession, UserBook
from app.domain.events import BookAddedToLibrary, BookFinished, ReadingSessionLogged
from app.domain.exceptions import InvalidArgumentError, InvalidOperationError
from app.domain.value_objects import BookInfo, ReadingStatus


USER_ID = UUID("12345678-1234-1234-1234-123456789012")
SESSION_DATE = datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)


def _make_user_book(total_pages=100, book_id="978-0-00-000000-0") -> UserBook:
    """Helper to create a library entry for a 100-page book."""
    info = BookInfo(title="Test Book", author="Test Author", total_pages=total_pages)
    return UserBook(book_id, USER_ID, info)


def _reading_book(total_pages=100) -> UserBook:
    user_book = _make_user_book(total_pages)
    user_book.start_reading(SESSION_DATE)
    user_book.clear_domain_events()
    return user_book


class TestReadingSession:
    """Tests for the ReadingSession entity."""

    def test_pages_read_and_duration(self):
        """Pages read and duration are derived from the bounds."""
        session = ReadingSession(
            start_date=SESSION_DATE,
            start_page=10,
            end_page=35,
            end_date=SESSION_DATE + timedelta(minutes=45),
        )

        assert session.pages_read == 25
        assert session.duration == timedelta(minutes=45)
        assert isinstance(session.session_id, UUID)

    def test_duration_unknown_without_end_date(self):
        session = ReadingSession(start_date=SESSION_DATE, start_page=0, end_page=0)

        assert session.duration is None
        assert session.pages_read == 0

    def test_naive_dates_are_treated_as_utc(self):
        """Naive datetimes are interpreted as UTC."""
        session = ReadingSession(start_date=datetime(2024, 3, 1, 20, 0), start_page=0, end_page=5)

        assert session.start_date == SESSION_DATE
        assert session.start_date.tzinfo is not None

    def test_negative_start_page_raises(self):
        with pytest.raises(InvalidArgumentError, match="Start page cannot be negative"):
            ReadingSession(start_date=SESSION_DATE, start_page=-1, end_page=5)

    def test_end_page_before_start_page_raises(self):
        with pytest.raises(InvalidArgumentError, match="cannot be less than start page"):
            ReadingSession(start_date=SESSION_DATE, start_page=10, end_page=5)

    def test_end_date_before_start_date_raises(self):
        with pytest.raises(InvalidArgumentError, match="End date cannot be before start date"):
            ReadingSession(
                start_date=SESSION_DATE,
                start_page=0,
                end_page=5,
                end_date=SESSION_DATE - timedelta(minutes=1),
            )

    def test_equality_by_id(self):
        """Sessions are equal only when they share an ID."""
        a = ReadingSession(start_date=SESSION_DATE, start_page=0, end_page=5)
        b = ReadingSession(start_date=SESSION_DATE, start_page=0, end_page=5)
        same_as_a = ReadingSession(
            start_date=SESSION_DATE, start_page=0, end_page=5, session_id=a.session_id
        )

        assert a != b
        assert a == same_as_a


class TestUserBookCreation:
    """Tests for adding a book to a library."""

    def test_new_entry_is_to_read_at_page_zero(self):
        """A new entry starts on the to-read list with no progress."""
        user_book = _make_user_book()

        assert user_book.status == ReadingStatus.TO_READ
        assert user_book.current_progress.page_number == 0
        assert user_book.current_progress.total_pages == 100
        assert user_book.reading_sessions == []
        assert user_book.started_date is None
        assert user_book.finished_date is None
        assert user_book.version == 0

    def test_new_entry_raises_one_added_event(self):
        user_book = _make_user_book()

        events = user_book.domain_events
        assert len(events) == 1
        assert isinstance(events[0], BookAddedToLibrary)
        assert events[0].user_book_id == user_book.user_book_id
        assert events[0].book_id == user_book.book_id

    def test_book_id_is_trimmed(self):
        user_book = _make_user_book(book_id="  isbn-1 ")

        assert user_book.book_id == "isbn-1"

    def test_blank_book_id_raises(self):
        info = BookInfo(title="Test Book", author="Test Author")

        with pytest.raises(InvalidArgumentError, match="Book ID cannot be empty"):
            UserBook("  ", USER_ID, info)

    def test_nil_user_id_raises(self):
        info = BookInfo(title="Test Book", author="Test Author")

        with pytest.raises(InvalidArgumentError, match="User ID cannot be empty"):
            UserBook("isbn-1", UUID(int=0), info)

    def test_missing_book_info_raises(self):
        with pytest.raises(InvalidArgumentError, match="Book info is required"):
            UserBook("isbn-1", USER_ID, None)

    def test_pull_domain_events_drains_queue(self):
        user_book = _make_user_book()

        events = user_book.pull_domain_events()

        assert len(events) == 1
        assert user_book.domain_events == []

    def test_restore_raises_no_events(self):
        """Rebuilding a persisted entry must not raise events."""
        original = _make_user_book()
        restored = UserBook.restore(
            user_book_id=original.user_book_id,
            book_id=original.book_id,
            user_id=original.user_id,
            book_info=original.book_info,
            status=ReadingStatus.READING,
            current_progress=original.current_progress,
            added_date=original.added_date,
            version=4,
        )

        assert restored == original
        assert restored.domain_events == []
        assert restored.version == 4
        assert restored.status == ReadingStatus.READING


class TestUserBookStatusTransitions:
    """Tests for the reading-status state machine."""

    def test_start_reading_from_to_read(self):
        user_book = _make_user_book()

        user_book.start_reading(SESSION_DATE)

        assert user_book.status == ReadingStatus.READING
        assert user_book.started_date == SESSION_DATE

    def test_start_reading_defaults_to_now(self):
        user_book = _make_user_book()

        user_book.start_reading()

        assert user_book.started_date is not None
        assert user_book.started_date.tzinfo is not None

    def test_start_reading_twice_raises(self):
        user_book = _reading_book()

        with pytest.raises(InvalidOperationError, match="already being read"):
            user_book.start_reading()

    def test_start_reading_finished_book_raises(self):
        user_book = _reading_book()
        user_book.mark_as_finished()

        with pytest.raises(InvalidOperationError, match="finished book"):
            user_book.start_reading()

    def test_start_reading_dropped_book(self):
        """A dropped book can be picked up again."""
        user_book = _make_user_book()
        user_book.drop_book()

        user_book.start_reading()

        assert user_book.status == ReadingStatus.READING

    def test_put_on_hold_and_resume(self):
        user_book = _reading_book()

        user_book.put_on_hold()
        assert user_book.status == ReadingStatus.ON_HOLD

        user_book.resume_reading()
        assert user_book.status == ReadingStatus.READING

    @pytest.mark.parametrize("status_setup", ["to_read", "reading", "dropped"])
    def test_resume_requires_on_hold(self, status_setup):
        user_book = _make_user_book()
        if status_setup == "reading":
            user_book.start_reading()
        elif status_setup == "dropped":
            user_book.drop_book()

        with pytest.raises(InvalidOperationError, match="Can only resume books that are on hold"):
            user_book.resume_reading()

    @pytest.mark.parametrize("status_setup", ["to_read", "reading", "on_hold"])
    def test_drop_book_allowed_unless_finished(self, status_setup):
        user_book = _make_user_book()
        if status_setup in ("reading", "on_hold"):
            user_book.start_reading()
        if status_setup == "on_hold":
            user_book.put_on_hold()

        user_book.drop_book()

        assert user_book.status == ReadingStatus.DROPPED

    def test_drop_finished_book_raises(self):
        user_book = _reading_book()
        user_book.mark_as_finished()

        with pytest.raises(InvalidOperationError, match="Cannot drop a finished book"):
            user_book.drop_book()

    def test_put_finished_book_on_hold_raises(self):
        user_book = _reading_book()
        user_book.mark_as_finished()

        with pytest.raises(InvalidOperationError, match="Cannot put a finished book on hold"):
            user_book.put_on_hold()

    def test_mark_as_finished_sets_date_and_full_progress(self):
        user_book = _reading_book()
        finished = SESSION_DATE + timedelta(days=3)

        user_book.mark_as_finished(finished)

        assert user_book.status == ReadingStatus.FINISHED
        assert user_book.finished_date == finished
        assert user_book.current_progress.page_number == 100
        assert user_book.current_progress.is_complete is True

        events = user_book.pull_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], BookFinished)
        assert events[0].finished_date == finished

    def test_mark_as_finished_twice_raises(self):
        user_book = _reading_book()
        user_book.mark_as_finished()

        with pytest.raises(InvalidOperationError, match="already finished"):
            user_book.mark_as_finished()


class TestUserBookReadingSessions:
    """Tests for logging sessions and progress."""

    def test_log_session_updates_progress(self):
        user_book = _reading_book()

        session = user_book.log_reading_session(SESSION_DATE, 0, 40, notes=" good start ")

        assert user_book.current_progress.page_number == 40
        assert user_book.reading_sessions == [session]
        assert session.notes == "good start"

        events = user_book.pull_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], ReadingSessionLogged)
        assert events[0].pages_read == 40
        assert events[0].new_progress.page_number == 40

    def test_rereading_does_not_move_progress_back(self):
        """Progress is the highest page reached so far."""
        user_book = _reading_book()
        user_book.log_reading_session(SESSION_DATE, 0, 60)

        user_book.log_reading_session(SESSION_DATE + timedelta(days=1), 10, 30)

        assert user_book.current_progress.page_number == 60

    @pytest.mark.parametrize("status_setup", ["to_read", "on_hold", "finished"])
    def test_log_session_requires_reading(self, status_setup):
        user_book = _make_user_book()
        if status_setup in ("on_hold", "finished"):
            user_book.start_reading()
        if status_setup == "on_hold":
            user_book.put_on_hold()
        if status_setup == "finished":
            user_book.mark_as_finished()

        with pytest.raises(InvalidOperationError, match="Cannot log a reading session"):
            user_book.log_reading_session(SESSION_DATE, 0, 10)

    def test_log_session_beyond_last_page_leaves_book_unchanged(self):
        """A failing call must not record a partial session."""
        user_book = _reading_book()

        with pytest.raises(InvalidArgumentError, match="cannot exceed"):
            user_book.log_reading_session(SESSION_DATE, 0, 150)

        assert user_book.reading_sessions == []
        assert user_book.current_progress.page_number == 0
        assert user_book.domain_events == []

    def test_reaching_last_page_finishes_book(self):
        user_book = _reading_book()

        user_book.log_reading_session(SESSION_DATE, 0, 100)

        assert user_book.status == ReadingStatus.FINISHED
        assert user_book.finished_date is not None

        events = user_book.pull_domain_events()
        assert [type(e) for e in events] == [BookFinished, ReadingSessionLogged]
        assert events[0].total_pages_read == 100
        assert events[1].new_progress.is_complete

    def test_update_progress(self):
        user_book = _reading_book()

        user_book.update_progress(75)

        assert user_book.current_progress.page_number == 75
        assert user_book.status == ReadingStatus.READING

    def test_update_progress_to_last_page_finishes(self):
        user_book = _reading_book()

        user_book.update_progress(100)

        assert user_book.status == ReadingStatus.FINISHED

    def test_update_progress_requires_reading(self):
        user_book = _make_user_book()

        with pytest.raises(InvalidOperationError, match="Cannot update progress"):
            user_book.update_progress(10)

    def test_book_without_page_count_never_auto_finishes(self):
        user_book = _reading_book(total_pages=None)

        user_book.log_reading_session(SESSION_DATE, 0, 5000)

        assert user_book.status == ReadingStatus.READING
        assert user_book.current_progress.percentage is None

    def test_reading_totals(self):
        user_book = _reading_book()
        user_book.log_reading_session(
            SESSION_DATE, 0, 20, end_time=SESSION_DATE + timedelta(minutes=30)
        )
        user_book.log_reading_session(SESSION_DATE + timedelta(days=2), 20, 50)

        assert user_book.total_pages_read == 50
        assert user_book.total_reading_sessions == 2
        assert user_book.total_reading_time == timedelta(minutes=30)
        assert user_book.last_reading_session_date == SESSION_DATE + timedelta(days=2)
        assert user_book.time_since_last_session > timedelta(0)

    def test_reading_sessions_returns_a_copy(self):
        user_book = _reading_book()
        user_book.log_reading_session(SESSION_DATE, 0, 20)

        user_book.reading_sessions.clear()

        assert user_book.total_reading_sessions == 1


class TestUserBookPersonalData:
    """Tests for rating and notes."""

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range_raises(self, rating):
        user_book = _make_user_book()

        with pytest.raises(InvalidArgumentError, match="Rating must be between 1 and 5"):
            user_book.rate_book(rating)

    @pytest.mark.parametrize("rating", [True, 2.5, 3.0, "4"])
    def test_non_integer_rating_raises(self, rating):
        user_book = _make_user_book()

        with pytest.raises(InvalidArgumentError, match="Rating must be a whole number"):
            user_book.rate_book(rating)

        assert user_book.personal_rating is None

    def test_rate_and_remove_rating(self):
        user_book = _make_user_book()

        user_book.rate_book(3)
        assert user_book.personal_rating == 3

        user_book.remove_rating()
        assert user_book.personal_rating is None

    def test_update_personal_notes_trims(self):
        user_book = _make_user_book()

        user_book.update_personal_notes("  re-read in winter ")
        assert user_book.personal_notes == "re-read in winter"

        user_book.update_personal_notes(None)
        assert user_book.personal_notes is None


class TestUserBookEndToEnd:
    """A full reading of a 100-page book."""

    def test_read_book_in_two_sessions(self):
        user_book = _make_user_book(total_pages=100)
        user_book.start_reading(SESSION_DATE)

        user_book.log_reading_session(SESSION_DATE, 0, 50)
        assert user_book.current_progress.page_number == 50
        assert user_book.status == ReadingStatus.READING

        user_book.log_reading_session(SESSION_DATE + timedelta(days=1), 50, 100)
        assert user_book.status == ReadingStatus.FINISHED
        assert user_book.total_pages_read == 100
        assert user_book.total_reading_sessions == 2

        event_types = [e.event_type for e in user_book.pull_domain_events()]
        assert event_types == [
            "BookAddedToLibrary",
            "ReadingSessionLogged",
            "BookFinished",
            "ReadingSessionLogged",
        ]
