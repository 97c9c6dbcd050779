"""In-process event bus for process and document events."""

import logging
import uuid
from collections import defaultdict
from typing import Callable

from prime_crm.models.base import Event
from prime_crm.models.process import utcnow

logger = logging.getLogger(__name__)

DOCUMENT_ADDED = "document.added"
DOCUMENT_UPLOADED = "document.uploaded"
DOCUMENT_APPROVED = "document.approved"
DOCUMENT_REJECTED = "document.rejected"
ALL_DOCUMENTS_APPROVED = "process.documents_approved"
STAGE_CHANGED = "process.stage_changed"

ANY_EVENT = "*"

EventHandler = Callable[[Event], None]


def make_event(event_type: str, subject: str, data: dict, source: str) -> Event:
    """Build an event envelope stamped with a fresh id and the current time."""
    return Event(
        event_id=str(uuid.uuid4()),
        event_type=event_type,
        event_time=utcnow(),
        source=source,
        subject=subject,
        data=data,
    )


class EventBus:
    """Synchronous publish/subscribe dispatcher.

    Handlers run in subscription order on the publishing thread; a handler
    exception propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type`` (``"*"`` receives everything)."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event) -> None:
        handlers = [*self._handlers.get(event.event_type, []), *self._handlers.get(ANY_EVENT, [])]
        logger.debug("Publishing %s for %s to %d handler(s)", event.event_type, event.subject, len(handlers))
        for handler in handlers:
            handler(event)

    def publish_all(self, events: list[Event]) -> None:
        for event in events:
            self.publish(event)
