"""Domain events for CQRS write notifications."""

from .base import DomainEvent, EventHandler, EventBus
from .cache_invalidation import CacheInvalidator
from .domain_events import (
    WRITE_EVENT_TYPES,
    album_created,
    artist_created,
    bookmark_added,
    bookmark_removed,
    sale_appended,
)

__all__ = [
    "DomainEvent",
    "EventHandler",
    "EventBus",
    "CacheInvalidator",
    "WRITE_EVENT_TYPES",
    "album_created",
    "artist_created",
    "bookmark_added",
    "bookmark_removed",
    "sale_appended",
]
