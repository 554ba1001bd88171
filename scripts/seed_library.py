#!/usr/bin/env python3
"""
Library Seeding Script.

Adds a few well-known books to a user's library so the API has data to
show. Nothing is added when the library already has entries.

Usage:
    python -m scripts.seed_library --db-path data/reading_tracker.db
"""

import argparse
import logging
import sys
from pathlib import Path
from uuid import UUID

from app.domain.services import LibraryService
from app.domain.value_objects import BookInfo
from app.infrastructure.db.sqlite_user_book_repository import SqliteUserBookRepository
from app.infrastructure.events.logging_event_dispatcher import LoggingDomainEventDispatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/reading_tracker.db")
DEFAULT_USER_ID = "12345678-1234-1234-1234-123456789012"

SAMPLE_BOOKS = [
    (
        "978-0-544-00341-5",
        BookInfo(
            title="The Hobbit",
            author="J.R.R. Tolkien",
            isbn="978-0-544-00341-5",
            publisher="Houghton Mifflin Harcourt",
            publication_year=1937,
            total_pages=310,
            genre="Fantasy",
            description=(
                "A reluctant hobbit, Bilbo Baggins, sets out to the Lonely Mountain with a "
                "spirited group of dwarves to reclaim their mountain home and the gold within "
                "it from the dragon Smaug."
            ),
        ),
    ),
    (
        "978-0-7432-7356-5",
        BookInfo(
            title="The Da Vinci Code",
            author="Dan Brown",
            isbn="978-0-7432-7356-5",
            publisher="Doubleday",
            publication_year=2003,
            total_pages=454,
            genre="Mystery/Thriller",
            description=(
                "A murder in the Louvre Museum and clues in Da Vinci paintings lead to the "
                "discovery of a religious mystery protected by a secret society for two "
                "thousand years."
            ),
        ),
    ),
    (
        "978-0-618-00222-1",
        BookInfo(
            title="The Lord of the Rings: The Fellowship of the Ring",
            author="J.R.R. Tolkien",
            isbn="978-0-618-00222-1",
            publisher="Houghton Mifflin",
            publication_year=1954,
            total_pages=423,
            genre="Fantasy",
            description=(
                "Frodo Baggins finds himself faced with an immense task, as his elderly "
                "cousin Bilbo entrusts the Ring to his care."
            ),
        ),
    ),
]


def seed_library(service: LibraryService, user_id: UUID) -> int:
    """
    Add the sample books to an empty library.

    Args:
        service: Library service to add books through
        user_id: Owner of the library

    Returns:
        Number of books added (0 if the library was not empty)
    """
    if sum(service.get_status_counts(user_id).values()) > 0:
        logger.info(f"Library of user {user_id} already has books; skipping seeding")
        return 0

    for book_id, book_info in SAMPLE_BOOKS:
        service.add_book_to_library(user_id, book_id, book_info)

    logger.info(f"Seeded {len(SAMPLE_BOOKS)} sample books")
    return len(SAMPLE_BOOKS)


def main(db_path: Path, user_id: UUID) -> int:
    logger.info(f"Seeding library: db={db_path}, user={user_id}")

    try:
        repository = SqliteUserBookRepository(db_path)
        service = LibraryService(repository, LoggingDomainEventDispatcher())
        return seed_library(service, user_id)
    except RuntimeError as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a reading library with sample books")
    parser.add_argument(
        "--db-path",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"SQLite database path (default: {DEFAULT_DB_PATH})"
    )
    parser.add_argument(
        "--user-id",
        type=UUID,
        default=UUID(DEFAULT_USER_ID),
        help="Owner of the seeded library (default: the API's default user)"
    )

    args = parser.parse_args()
    main(args.db_path, args.user_id)
