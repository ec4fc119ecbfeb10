"""
In-memory repository implementations.

All four repositories share one InMemoryStore so relationship expansion
(album -> artist, sale -> album) behaves like the remote store. The store
counts calls per operation and can inject failures and latency, which makes
it the test double for everything above the repository layer.
"""

import asyncio
from collections import Counter
from datetime import date
from typing import Dict, List, Optional
from uuid import uuid4

from ...domain.entities import Album, AlbumWithArtist, Artist, Bookmark, Sale, SaleWithAlbum
from ...domain.repositories import (
    AlbumRepository,
    ArtistRepository,
    BookmarkRepository,
    SaleRepository,
)
from ...domain.value_objects import SalesType
from ...exceptions import DuplicateRowError, FetchFailed, WriteFailed


class InMemoryStore:
    """Shared state behind the in-memory repositories."""

    def __init__(self, unique_bookmarks: bool = True):
        self.artists: Dict[str, Artist] = {}
        self.albums: Dict[str, Album] = {}
        self.sales: Dict[str, Sale] = {}
        self.bookmarks: Dict[str, Bookmark] = {}
        self.unique_bookmarks = unique_bookmarks
        self.calls: Counter = Counter()
        self.failures: Dict[str, Exception] = {}
        self.latency: Dict[str, float] = {}

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    def fail(self, operation: str, error: Exception) -> None:
        """Make every later call to ``operation`` raise ``error``."""
        self.failures[operation] = error

    def recover(self, operation: Optional[str] = None) -> None:
        if operation:
            self.failures.pop(operation, None)
        else:
            self.failures.clear()

    @property
    def write_count(self) -> int:
        return sum(n for op, n in self.calls.items() if op.startswith(("insert_", "delete_")))

    async def enter(self, operation: str) -> None:
        self.calls[operation] += 1
        delay = self.latency.get(operation)
        if delay:
            await asyncio.sleep(delay)
        else:
            # Yield like a network call would
            await asyncio.sleep(0)
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def album_with_artist(self, album: Album) -> AlbumWithArtist:
        artist = self.artists.get(album.artist_id)
        if artist is None:
            raise FetchFailed(f"Album {album.id} references missing artist {album.artist_id}")
        return AlbumWithArtist(
            id=album.id,
            title=album.title,
            release_date=album.release_date,
            artist=artist,
            cover_url=album.cover_url,
        )


class InMemoryArtistRepository(ArtistRepository):
    """In-memory implementation of ArtistRepository."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def list_all(self) -> List[Artist]:
        await self.store.enter("list_artists")
        return sorted(self.store.artists.values(), key=lambda a: a.name)

    async def insert(self, name: str) -> Artist:
        await self.store.enter("insert_artist")
        artist = Artist(id=self.store.new_id(), name=name)
        self.store.artists[artist.id] = artist
        return artist


class InMemoryAlbumRepository(AlbumRepository):
    """In-memory implementation of AlbumRepository."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def list_with_artist(self, order_by_release_desc: bool = False) -> List[AlbumWithArtist]:
        await self.store.enter("list_albums")
        albums = list(self.store.albums.values())
        if order_by_release_desc:
            albums.sort(key=lambda a: a.release_date, reverse=True)
        return [self.store.album_with_artist(album) for album in albums]

    async def get_with_artist(self, album_id: str) -> Optional[AlbumWithArtist]:
        await self.store.enter("get_album")
        album = self.store.albums.get(album_id)
        return self.store.album_with_artist(album) if album else None

    async def list_by_artist(self, artist_id: str) -> List[Album]:
        await self.store.enter("list_albums_by_artist")
        albums = [a for a in self.store.albums.values() if a.artist_id == artist_id]
        return sorted(albums, key=lambda a: a.title)

    async def insert(self, title: str, artist_id: str, release_date: date) -> Album:
        await self.store.enter("insert_album")
        if artist_id not in self.store.artists:
            raise WriteFailed(f"Artist does not exist: {artist_id}")
        album = Album(id=self.store.new_id(), title=title, release_date=release_date, artist_id=artist_id)
        self.store.albums[album.id] = album
        return album


class InMemorySaleRepository(SaleRepository):
    """In-memory implementation of SaleRepository."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def list_for_album(self, album_id: str, ascending: bool = True) -> List[Sale]:
        await self.store.enter("list_sales")
        sales = [s for s in self.store.sales.values() if s.album_id == album_id]
        return sorted(sales, key=lambda s: s.sales_date, reverse=not ascending)

    async def list_all(self, sales_type: Optional[SalesType] = None) -> List[SaleWithAlbum]:
        await self.store.enter("list_all_sales")
        sales = [
            s for s in self.store.sales.values()
            if sales_type is None or s.sales_type is sales_type
        ]
        sales.sort(key=lambda s: s.sales_date, reverse=True)
        return [
            SaleWithAlbum(sale=s, album=self.store.album_with_artist(self.store.albums[s.album_id]))
            for s in sales
        ]

    async def insert(self, album_id: str, sales_count: int, sales_date: date,
                     sales_type: SalesType) -> None:
        await self.store.enter("insert_sale")
        if album_id not in self.store.albums:
            raise WriteFailed(f"Album does not exist: {album_id}")
        sale = Sale(
            id=self.store.new_id(),
            album_id=album_id,
            sales_count=sales_count,
            sales_date=sales_date,
            sales_type=sales_type,
        )
        self.store.sales[sale.id] = sale


class InMemoryBookmarkRepository(BookmarkRepository):
    """In-memory implementation of BookmarkRepository."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def rows_for(self, album_id: str, user_id: str) -> List[Bookmark]:
        return [
            b for b in self.store.bookmarks.values()
            if b.album_id == album_id and b.user_id == user_id
        ]

    async def find(self, album_id: str, user_id: str) -> Optional[Bookmark]:
        await self.store.enter("find_bookmark")
        rows = self.rows_for(album_id, user_id)
        return rows[0] if rows else None

    async def insert(self, album_id: str, user_id: str) -> Bookmark:
        await self.store.enter("insert_bookmark")
        if self.store.unique_bookmarks and self.rows_for(album_id, user_id):
            raise DuplicateRowError(
                "duplicate key value violates unique constraint \"bookmarks_album_id_user_id_key\"",
                code="23505",
            )
        bookmark = Bookmark(id=self.store.new_id(), album_id=album_id, user_id=user_id)
        self.store.bookmarks[bookmark.id] = bookmark
        return bookmark

    async def delete(self, bookmark_id: str) -> None:
        await self.store.enter("delete_bookmark")
        self.store.bookmarks.pop(bookmark_id, None)
