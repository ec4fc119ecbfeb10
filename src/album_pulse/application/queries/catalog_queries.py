"""Catalog-related queries."""

from dataclasses import dataclass
from typing import List, Optional

from .base import Query, QueryHandler
from ...domain.entities import Album, AlbumWithArtist, Artist
from ...domain.repositories import AlbumRepository, ArtistRepository
from ...domain.value_objects import SalesPeriodFilter, SortMode


@dataclass(frozen=True, slots=True, kw_only=True)
class ListAlbumsQuery(Query):
    """Query to list the catalog: every album joined with its artist."""

    sort_mode: SortMode = SortMode.NEWEST
    # Carried with the request but not applied to the album listing.
    sales_period: SalesPeriodFilter = SalesPeriodFilter.ALL


@dataclass(frozen=True, slots=True, kw_only=True)
class GetAlbumQuery(Query):
    """Query to get one album with its artist."""

    album_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ListArtistsQuery(Query):
    """Query to list all artists by name."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ListAlbumsByArtistQuery(Query):
    """Query to list one artist's albums by title."""

    artist_id: str


class ListAlbumsHandler(QueryHandler[ListAlbumsQuery, List[AlbumWithArtist]]):
    """Handler for listing the catalog."""

    def __init__(self, album_repo: AlbumRepository):
        self.album_repo = album_repo

    async def handle(self, query: ListAlbumsQuery) -> List[AlbumWithArtist]:
        """Handle the list albums query."""
        return await self.album_repo.list_with_artist(
            order_by_release_desc=query.sort_mode is SortMode.NEWEST
        )

    def can_handle(self, query_type: type) -> bool:
        """Check if this handler can handle the given query type."""
        return query_type == ListAlbumsQuery


class GetAlbumHandler(QueryHandler[GetAlbumQuery, Optional[AlbumWithArtist]]):
    """Handler for getting an album by ID."""

    def __init__(self, album_repo: AlbumRepository):
        self.album_repo = album_repo

    async def handle(self, query: GetAlbumQuery) -> Optional[AlbumWithArtist]:
        """Handle the get album by ID query."""
        return await self.album_repo.get_with_artist(query.album_id)

    def can_handle(self, query_type: type) -> bool:
        """Check if this handler can handle the given query type."""
        return query_type == GetAlbumQuery


class ListArtistsHandler(QueryHandler[ListArtistsQuery, List[Artist]]):
    """Handler for listing artists."""

    def __init__(self, artist_repo: ArtistRepository):
        self.artist_repo = artist_repo

    async def handle(self, query: ListArtistsQuery) -> List[Artist]:
        return await self.artist_repo.list_all()

    def can_handle(self, query_type: type) -> bool:
        return query_type == ListArtistsQuery


class ListAlbumsByArtistHandler(QueryHandler[ListAlbumsByArtistQuery, List[Album]]):
    """Handler for listing an artist's albums."""

    def __init__(self, album_repo: AlbumRepository):
        self.album_repo = album_repo

    async def handle(self, query: ListAlbumsByArtistQuery) -> List[Album]:
        return await self.album_repo.list_by_artist(query.artist_id)

    def can_handle(self, query_type: type) -> bool:
        return query_type == ListAlbumsByArtistQuery
