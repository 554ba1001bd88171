"""
Domain-event sink that writes events to the application log.
"""

import logging
from typing import Iterable, List

from app.domain.events import BookAddedToLibrary, BookFinished, DomainEvent, ReadingSessionLogged
from app.domain.ports import DomainEventDispatcher

logger = logging.getLogger(__name__)


class LoggingDomainEventDispatcher(DomainEventDispatcher):
    """
    Logs one INFO line per event.

    Known event types get a readable message; anything else is logged with
    its serialized payload.
    """

    def __init__(self) -> None:
        self.dispatched_count = 0

    def dispatch(self, events: Iterable[DomainEvent]) -> None:
        batch: List[DomainEvent] = list(events)
        for event in batch:
            logger.info(self._describe(event))
        self.dispatched_count += len(batch)

    @staticmethod
    def _describe(event: DomainEvent) -> str:
        if isinstance(event, BookAddedToLibrary):
            return (
                f"{event.event_type}: user {event.user_id} added '{event.book_info}' "
                f"(entry {event.user_book_id})"
            )
        if isinstance(event, ReadingSessionLogged):
            return (
                f"{event.event_type}: {event.pages_read} pages read in entry "
                f"{event.user_book_id}, now at {event.new_progress}"
            )
        if isinstance(event, BookFinished):
            return (
                f"{event.event_type}: user {event.user_id} finished '{event.book_info}' "
                f"on {event.finished_date:%Y-%m-%d} ({event.total_pages_read} pages)"
            )
        return f"{event.event_type}: {event.to_dict()}"
