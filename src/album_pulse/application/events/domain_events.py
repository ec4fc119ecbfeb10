"""Events raised after successful writes to the store."""

from typing import Optional

from .base import DomainEvent


def artist_created(artist_id: str, name: str) -> DomainEvent:
    return DomainEvent(
        aggregate_id=artist_id,
        aggregate_type="Artist",
        event_type="ArtistCreated",
        event_data={"name": name},
    )


def album_created(album_id: str, artist_id: str, title: str) -> DomainEvent:
    return DomainEvent(
        aggregate_id=album_id,
        aggregate_type="Album",
        event_type="AlbumCreated",
        event_data={"artist_id": artist_id, "title": title},
    )


def sale_appended(album_id: str, sales_type: str, sales_count: int) -> DomainEvent:
    return DomainEvent(
        aggregate_id=album_id,
        aggregate_type="Sale",
        event_type="SaleAppended",
        event_data={"album_id": album_id, "sales_type": sales_type, "sales_count": sales_count},
    )


def bookmark_added(album_id: str, user_id: str, bookmark_id: Optional[str] = None) -> DomainEvent:
    return DomainEvent(
        aggregate_id=bookmark_id or "",
        aggregate_type="Bookmark",
        event_type="BookmarkAdded",
        event_data={"album_id": album_id, "user_id": user_id},
    )


def bookmark_removed(album_id: str, user_id: str, bookmark_id: str) -> DomainEvent:
    return DomainEvent(
        aggregate_id=bookmark_id,
        aggregate_type="Bookmark",
        event_type="BookmarkRemoved",
        event_data={"album_id": album_id, "user_id": user_id},
    )


WRITE_EVENT_TYPES = [
    "ArtistCreated",
    "AlbumCreated",
    "SaleAppended",
    "BookmarkAdded",
    "BookmarkRemoved",
]
