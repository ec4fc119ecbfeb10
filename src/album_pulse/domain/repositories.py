"""Repository Interfaces.

This module defines the repository interfaces for the four entity
collections held by the remote store. Repositories provide abstraction over
data storage and retrieval; every call is asynchronous and may fail with
FetchFailed (reads) or WriteFailed (writes).
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from .entities import Album, AlbumWithArtist, Artist, Bookmark, Sale, SaleWithAlbum
from .value_objects import SalesType


class ArtistRepository(ABC):
    """Repository for Artist entities."""

    @abstractmethod
    async def list_all(self) -> List[Artist]:
        """List all artists ordered by name."""
        pass

    @abstractmethod
    async def insert(self, name: str) -> Artist:
        """Create an artist and return the stored row."""
        pass


class AlbumRepository(ABC):
    """Repository for Album entities."""

    @abstractmethod
    async def list_with_artist(self, order_by_release_desc: bool = False) -> List[AlbumWithArtist]:
        """List all albums joined with their artist."""
        pass

    @abstractmethod
    async def get_with_artist(self, album_id: str) -> Optional[AlbumWithArtist]:
        """Find one album joined with its artist."""
        pass

    @abstractmethod
    async def list_by_artist(self, artist_id: str) -> List[Album]:
        """List one artist's albums ordered by title."""
        pass

    @abstractmethod
    async def insert(self, title: str, artist_id: str, release_date: date) -> Album:
        """Create an album and return the stored row."""
        pass


class SaleRepository(ABC):
    """Repository for Sale entities."""

    @abstractmethod
    async def list_for_album(self, album_id: str, ascending: bool = True) -> List[Sale]:
        """List an album's sales ordered by sales date."""
        pass

    @abstractmethod
    async def list_all(self, sales_type: Optional[SalesType] = None) -> List[SaleWithAlbum]:
        """List every sale joined with album and artist, newest first."""
        pass

    @abstractmethod
    async def insert(self, album_id: str, sales_count: int, sales_date: date,
                     sales_type: SalesType) -> None:
        """Append a sale to an album."""
        pass


class BookmarkRepository(ABC):
    """Repository for Bookmark entities."""

    @abstractmethod
    async def find(self, album_id: str, user_id: str) -> Optional[Bookmark]:
        """Find the bookmark for an (album, user) pair, if any."""
        pass

    @abstractmethod
    async def insert(self, album_id: str, user_id: str) -> Bookmark:
        """Create a bookmark and return the stored row."""
        pass

    @abstractmethod
    async def delete(self, bookmark_id: str) -> None:
        """Delete a bookmark by id."""
        pass
