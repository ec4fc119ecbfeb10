"""Marks cached query results stale after writes to the store."""

import logging

from .base import DomainEvent, EventHandler
from .domain_events import WRITE_EVENT_TYPES
from ..queries.base import QueryCache

logger = logging.getLogger(__name__)


class CacheInvalidator(EventHandler):
    """Invalidates exactly the cached queries a write can affect.

    Views are refreshed by re-reading the store afterwards; nothing here
    patches a cached result in place.
    """

    def __init__(self, cache: QueryCache):
        self.cache = cache

    def can_handle(self, event_type: str) -> bool:
        return event_type in WRITE_EVENT_TYPES

    async def handle(self, event: DomainEvent) -> None:
        data = event.event_data
        if event.event_type == "ArtistCreated":
            await self.cache.invalidate("ListArtistsQuery")
        elif event.event_type == "AlbumCreated":
            await self.cache.invalidate("ListAlbumsQuery")
            await self.cache.invalidate("ListAlbumsByArtistQuery", artist_id=data["artist_id"])
        elif event.event_type == "SaleAppended":
            await self.cache.invalidate("GetAlbumSalesQuery", album_id=data["album_id"])
            await self.cache.invalidate("ListSalesQuery")
        elif event.event_type in ("BookmarkAdded", "BookmarkRemoved"):
            await self.cache.invalidate(
                "GetBookmarkQuery", album_id=data["album_id"], user_id=data["user_id"]
            )
        logger.debug(f"Invalidated cache after {event.event_type}")
