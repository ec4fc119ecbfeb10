"""Base classes for domain events in CQRS pattern."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event class."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    aggregate_id: str = ""
    aggregate_type: str = ""
    event_type: str = ""
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Set event_type based on class name if not provided
        if not self.event_type:
            object.__setattr__(self, 'event_type', self.__class__.__name__)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "event_type": self.event_type,
            "occurred_on": self.occurred_on.isoformat(),
            "event_data": self.event_data,
        }


class EventHandler(ABC):
    """Abstract base class for event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """Handle the domain event."""
        pass

    @abstractmethod
    def can_handle(self, event_type: str) -> bool:
        """Check if this handler can handle the given event type."""
        pass


class EventBus:
    """Mediates domain events to registered handlers."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._published: List[DomainEvent] = []
        self._max_events_in_memory = 1000

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler, event_types: List[str]) -> None:
        """Subscribe a handler to each of ``event_types`` it can handle."""
        for event_type in event_types:
            if handler.can_handle(event_type):
                self.subscribe(event_type, handler)

    async def publish(self, event: DomainEvent) -> None:
        """Publish an event to all registered handlers."""
        self._published.append(event)
        if len(self._published) > self._max_events_in_memory:
            self._published.pop(0)

        event_type = event.event_type
        for handler in self._handlers.get(event_type, []):
            try:
                await handler.handle(event)
            except Exception:
                # The write already happened; remaining handlers still run
                logger.exception(f"Error handling event {event_type}")

    async def publish_batch(self, events: List[DomainEvent]) -> None:
        """Publish multiple events in sequence."""
        for event in events:
            await self.publish(event)

    def get_subscribed_events(self) -> Dict[str, int]:
        """Get count of handlers for each event type."""
        return {event_type: len(handlers) for event_type, handlers in self._handlers.items()}

    def published_events(self, event_type: Optional[str] = None) -> List[DomainEvent]:
        """Events published so far, optionally filtered by type."""
        if event_type:
            return [e for e in self._published if e.event_type == event_type]
        return list(self._published)
