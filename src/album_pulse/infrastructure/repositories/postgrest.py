"""
PostgREST repository implementations.

Rows are decoded into domain entities here, at the store-read boundary, so
malformed rows and unrecognized sales types surface as FetchFailed instead
of leaking into the aggregators.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional

from ..external.postgrest_client import PostgrestClient, eq, order_by
from ...domain.entities import Album, AlbumWithArtist, Artist, Bookmark, Sale, SaleWithAlbum
from ...domain.repositories import (
    AlbumRepository,
    ArtistRepository,
    BookmarkRepository,
    SaleRepository,
)
from ...domain.value_objects import SalesType, format_iso_date
from ...exceptions import DuplicateRowError, FetchFailed, StoreError, WriteFailed

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

ARTIST_COLUMNS = "id,name,image_url"
ALBUM_COLUMNS = "id,title,release_date,cover_url,artist_id"
ALBUM_WITH_ARTIST_COLUMNS = "id,title,release_date,cover_url,artist:artist_id(id,name,image_url)"
SALE_COLUMNS = "id,album_id,sales_count,sales_date,sales_type"
SALE_WITH_ALBUM_COLUMNS = (
    "id,album_id,sales_count,sales_date,sales_type,"
    "album:album_id(id,title,artist:artist_id(id,name))"
)


@contextmanager
def reading(what: str) -> Iterator[None]:
    """Translate transport and decoding errors into FetchFailed."""
    try:
        yield
    except (FetchFailed, WriteFailed):
        raise
    except StoreError as e:
        raise FetchFailed(e.message, code=e.code, status=e.status) from e
    except (KeyError, TypeError, ValueError) as e:
        raise FetchFailed(f"Malformed {what} row from store: {e}") from e


@contextmanager
def writing(what: str) -> Iterator[None]:
    """Translate transport errors into WriteFailed."""
    try:
        yield
    except (FetchFailed, WriteFailed):
        raise
    except StoreError as e:
        if e.code == UNIQUE_VIOLATION or (e.status == 409 and not e.code):
            raise DuplicateRowError(e.message, code=e.code, status=e.status) from e
        raise WriteFailed(e.message or f"Failed to create {what}", code=e.code, status=e.status) from e
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise WriteFailed(f"Unexpected {what} response from store: {e}") from e


class PostgrestArtistRepository(ArtistRepository):
    """Artist repository backed by the ``artists`` table."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_all(self) -> List[Artist]:
        with reading("artist"):
            rows = await self.client.select("artists", ARTIST_COLUMNS, order=order_by("name"))
            return [Artist.from_row(row) for row in rows]

    async def insert(self, name: str) -> Artist:
        with writing("artist"):
            rows = await self.client.insert("artists", [{"name": name}])
            return Artist.from_row(rows[0])


class PostgrestAlbumRepository(AlbumRepository):
    """Album repository backed by the ``albums`` table."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_with_artist(self, order_by_release_desc: bool = False) -> List[AlbumWithArtist]:
        order = order_by("release_date", ascending=False) if order_by_release_desc else None
        with reading("album"):
            rows = await self.client.select("albums", ALBUM_WITH_ARTIST_COLUMNS, order=order)
            return [AlbumWithArtist.from_row(row) for row in rows]

    async def get_with_artist(self, album_id: str) -> Optional[AlbumWithArtist]:
        with reading("album"):
            rows = await self.client.select(
                "albums", ALBUM_WITH_ARTIST_COLUMNS, filters={"id": eq(album_id)}, limit=1
            )
            return AlbumWithArtist.from_row(rows[0]) if rows else None

    async def list_by_artist(self, artist_id: str) -> List[Album]:
        with reading("album"):
            rows = await self.client.select(
                "albums", ALBUM_COLUMNS, filters={"artist_id": eq(artist_id)}, order=order_by("title")
            )
            return [Album.from_row(row) for row in rows]

    async def insert(self, title: str, artist_id: str, release_date: date) -> Album:
        payload = {"title": title, "artist_id": artist_id, "release_date": format_iso_date(release_date)}
        with writing("album"):
            rows = await self.client.insert("albums", [payload])
            return Album.from_row(rows[0])


class PostgrestSaleRepository(SaleRepository):
    """Sale repository backed by the ``sales`` table."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_for_album(self, album_id: str, ascending: bool = True) -> List[Sale]:
        with reading("sale"):
            rows = await self.client.select(
                "sales",
                SALE_COLUMNS,
                filters={"album_id": eq(album_id)},
                order=order_by("sales_date", ascending=ascending),
            )
            return [Sale.from_row(row, album_id=album_id) for row in rows]

    async def list_all(self, sales_type: Optional[SalesType] = None) -> List[SaleWithAlbum]:
        filters = {"sales_type": eq(sales_type.value)} if sales_type else None
        with reading("sale"):
            rows = await self.client.select(
                "sales",
                SALE_WITH_ALBUM_COLUMNS,
                filters=filters,
                order=order_by("sales_date", ascending=False),
            )
            return [SaleWithAlbum.from_row(row) for row in rows]

    async def insert(self, album_id: str, sales_count: int, sales_date: date,
                     sales_type: SalesType) -> None:
        payload = {
            "album_id": album_id,
            "sales_count": sales_count,
            "sales_date": format_iso_date(sales_date),
            "sales_type": sales_type.value,
        }
        with writing("sale"):
            await self.client.insert("sales", [payload], returning=False)


class PostgrestBookmarkRepository(BookmarkRepository):
    """Bookmark repository backed by the ``bookmarks`` table."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def find(self, album_id: str, user_id: str) -> Optional[Bookmark]:
        with reading("bookmark"):
            rows = await self.client.select(
                "bookmarks",
                "id",
                filters={"album_id": eq(album_id), "user_id": eq(user_id)},
                limit=2,
            )
            if len(rows) > 1:
                logger.warning(f"Found duplicate bookmarks for album {album_id} and user {user_id}")
            if not rows:
                return None
            return Bookmark.from_row(rows[0], album_id=album_id, user_id=user_id)

    async def insert(self, album_id: str, user_id: str) -> Bookmark:
        with writing("bookmark"):
            rows = await self.client.insert("bookmarks", [{"album_id": album_id, "user_id": user_id}])
            return Bookmark.from_row(rows[0], album_id=album_id, user_id=user_id)

    async def delete(self, bookmark_id: str) -> None:
        with writing("bookmark"):
            await self.client.delete("bookmarks", {"id": eq(bookmark_id)})
