"""Fan-out of voice session events to SSE subscribers."""

import asyncio
import logging
from collections import Counter

from sakhii.voice.types import SessionEvent

logger = logging.getLogger(__name__)

_DEFAULT_QUEUE_SIZE = 256


class SessionEventBus:
    """Delivers :class:`SessionEvent`s to per-subscriber queues.

    A subscriber follows either one session or every session.  When a
    subscriber's queue is full the event is dropped for that subscriber
    only and tallied against the event's session, so a stalled SSE client
    never holds up the session that publishes.

    Everything here runs on the event loop without awaiting, so the
    subscriber table needs no lock.
    """

    def __init__(self, maxsize: int = _DEFAULT_QUEUE_SIZE) -> None:
        self._maxsize = maxsize
        self._subscribers: dict[asyncio.Queue[SessionEvent], str | None] = {}
        self._dropped: Counter[str] = Counter()

    def publish(self, event: SessionEvent) -> int:
        """Queue *event* for every matching subscriber.

        Returns the number of subscribers that received it.
        """
        delivered = 0
        for queue, session_id in list(self._subscribers.items()):
            if session_id is not None and session_id != event.session_id:
                continue
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._dropped[event.session_id] += 1
                logger.warning(
                    "Subscriber queue full — dropped %s for session %s (%d so far)",
                    event.type.value,
                    event.session_id,
                    self._dropped[event.session_id],
                )
                continue
            delivered += 1
        return delivered

    def subscribe(self, session_id: str | None = None) -> asyncio.Queue[SessionEvent]:
        """Return a new queue receiving events for *session_id* (or all sessions)."""
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue(maxsize=self._maxsize)
        self._subscribers[queue] = session_id
        logger.debug(
            "Subscriber added for %s (total: %d)",
            session_id or "all sessions",
            len(self._subscribers),
        )
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        """Remove *queue*.  Unknown queues are ignored."""
        if self._subscribers.pop(queue, _MISSING) is _MISSING:
            logger.debug("Unsubscribe for unknown queue ignored")
            return
        logger.debug("Subscriber removed (remaining: %d)", len(self._subscribers))

    def dropped_count(self, session_id: str | None = None) -> int:
        """Events dropped for *session_id*, or for all sessions."""
        if session_id is None:
            return sum(self._dropped.values())
        return self._dropped[session_id]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


_MISSING = object()
