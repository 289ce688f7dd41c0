"""
Event bus shared by the world, battles, entities and managers.

Publishers never call subscribers directly. Events published during a tick
are queued and the world dispatches them when it drains the queue at the end
of the tick, ordered by priority and then by publication order.

The simulation runs on a single tick thread, so the bus does no locking.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import GameEvent, EventType


class EventPriority(Enum):
    """Event processing priorities."""
    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


@dataclass
class QueuedEvent:
    """An event waiting in the queue."""
    event: "GameEvent"
    priority: EventPriority = EventPriority.NORMAL
    sequence: int = 0
    source: Optional[str] = None

    def __lt__(self, other: "QueuedEvent") -> bool:
        # Lower enum value is dispatched first; ties keep publication order
        if self.priority.value != other.priority.value:
            return self.priority.value < other.priority.value
        return self.sequence < other.sequence


EventSubscriber = Callable[["GameEvent"], None]


class EventManager:
    """Queued publisher-subscriber bus."""

    def __init__(self, enable_debug_logging: bool = False):
        """Initialize the event manager.

        Args:
            enable_debug_logging: Whether bus activity is reported to the debug callback
        """
        self.enable_debug_logging = enable_debug_logging

        self._subscribers: dict["EventType", list[EventSubscriber]] = defaultdict(list)
        self._event_queue: deque[QueuedEvent] = deque()

        self._events_published = 0
        self._events_processed = 0
        self._subscriber_errors = 0

        self._debug_callback: Optional[Callable[[str], None]] = None

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        self._debug_callback = callback

    def _debug_log(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> None:
        """Register a callback for one event type.

        Args:
            event_type: Type of events delivered to the subscriber
            subscriber: Callback receiving each event
            subscriber_name: Name shown in debug output
        """
        self._subscribers[event_type].append(subscriber)
        name = subscriber_name or getattr(subscriber, '__name__', 'anonymous')
        self._debug_log(f"{name} subscribed to {event_type.name}")

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Remove a callback.

        Returns:
            True if the subscriber was registered for the event type
        """
        subscribers = self._subscribers.get(event_type, [])
        if subscriber not in subscribers:
            return False
        subscribers.remove(subscriber)
        self._debug_log(f"Unsubscribed from {event_type.name}")
        return True

    def publish(
        self,
        event: "GameEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue an event until the next process_events call."""
        self._event_queue.append(
            QueuedEvent(event=event, priority=priority, sequence=self._events_published, source=source or "unknown")
        )
        self._events_published += 1
        self._debug_log(f"Queued {event.__class__.__name__} from {source or 'unknown'} ({priority.name})")

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Dispatch queued events.

        Events published by subscribers while dispatching wait for the next
        call, so one call always terminates.

        Args:
            max_events: Maximum number of events to dispatch (None for all)

        Returns:
            Number of events dispatched
        """
        pending = sorted(self._event_queue)
        self._event_queue.clear()

        if max_events is not None and len(pending) > max_events:
            self._event_queue.extend(pending[max_events:])
            pending = pending[:max_events]

        for queued_event in pending:
            self._dispatch(queued_event)
        return len(pending)

    def _dispatch(self, queued_event: QueuedEvent) -> None:
        event = queued_event.event
        self._events_processed += 1
        self._debug_log(f"Dispatching {event.__class__.__name__} (turn: {event.turn})")

        # Copy so subscribers may unsubscribe while being notified
        for subscriber in list(self._subscribers.get(event.event_type, [])):
            try:
                subscriber(event)
            except Exception as e:
                self._subscriber_errors += 1
                self._debug_log(f"Subscriber {getattr(subscriber, '__name__', 'anonymous')} failed: {e}")

    def has_queued_events(self) -> bool:
        return len(self._event_queue) > 0

    def get_statistics(self) -> dict[str, Any]:
        return {
            'events_published': self._events_published,
            'events_processed': self._events_processed,
            'events_queued': len(self._event_queue),
            'subscriber_errors': self._subscriber_errors,
            'subscribers_count': sum(len(subscribers) for subscribers in self._subscribers.values()),
        }
