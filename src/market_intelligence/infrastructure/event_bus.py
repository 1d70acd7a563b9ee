"""Event bus and event store for pipeline notifications.

The orchestrator publishes ``DomainEvent`` instances; console renderers,
metrics hooks and tests subscribe.  A failing subscriber is logged and
skipped so that it can never break a run.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Sequence

from market_intelligence.domain.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class EventBus:
    """Thread-safe synchronous pub-sub.

    Global handlers run first, then handlers registered for the exact event
    type, each group in registration order.

    Usage::

        bus = EventBus()
        bus.subscribe(AnalysisCompleted, on_done)
        bus.publish(AnalysisCompleted(source_id="mkt-1"))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._typed: dict[type[DomainEvent], list[Handler]] = defaultdict(list)
        self._global: list[Handler] = []

    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        with self._lock:
            self._typed[event_type].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Receive every published event."""
        with self._lock:
            self._global.append(handler)

    def unsubscribe(self, event_type: type[DomainEvent], handler: Handler) -> bool:
        """Remove *handler*; ``True`` if it was registered."""
        with self._lock:
            handlers = self._typed.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
            return False

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            handlers = list(self._global) + list(self._typed.get(type(event), []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %r failed on %s", handler, type(event).__name__
                )

    def handler_count(self, event_type: type[DomainEvent] | None = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._typed.get(event_type, []))
            return sum(len(h) for h in self._typed.values()) + len(self._global)

    def clear(self) -> None:
        with self._lock:
            self._typed.clear()
            self._global.clear()


class EventStore:
    """Append-only in-memory event log, usually fed by ``subscribe_all``.

    Parameters
    ----------
    max_size:
        Keep only the newest *max_size* events.  ``0`` keeps everything.
    """

    def __init__(self, max_size: int = 0) -> None:
        self._events: list[DomainEvent] = []
        self._max_size = max_size
        self._lock = threading.Lock()

    def append(self, event: DomainEvent) -> None:
        with self._lock:
            self._events.append(event)
            if self._max_size > 0 and len(self._events) > self._max_size:
                del self._events[: len(self._events) - self._max_size]

    def query(
        self,
        event_type: type[DomainEvent] | None = None,
        source_id: str | None = None,
    ) -> Sequence[DomainEvent]:
        with self._lock:
            events = list(self._events)
        if event_type is not None:
            events = [e for e in events if isinstance(e, event_type)]
        if source_id is not None:
            events = [e for e in events if e.source_id == source_id]
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
