"""
Domain layer - records held by the remote store and values derived from them.

This package is responsible for:
- Typed entities for artists, albums, sales and bookmarks
- Closed value sets (sales types, sort modes, period filters)
- Repository interfaces implemented by the infrastructure layer
"""

from .entities import (
    Album,
    AlbumWithArtist,
    Artist,
    Bookmark,
    BookmarkState,
    ChartPoint,
    Sale,
    SaleWithAlbum,
    SalesSummary,
)
from .repositories import AlbumRepository, ArtistRepository, BookmarkRepository, SaleRepository
from .value_objects import (
    DetailTab,
    Identity,
    SalesPeriodFilter,
    SalesType,
    SortMode,
    format_iso_date,
    parse_date,
)

__all__ = [
    # Entities
    "Album",
    "AlbumWithArtist",
    "Artist",
    "Bookmark",
    "BookmarkState",
    "ChartPoint",
    "Sale",
    "SaleWithAlbum",
    "SalesSummary",
    # Value Objects
    "DetailTab",
    "Identity",
    "SalesPeriodFilter",
    "SalesType",
    "SortMode",
    "format_iso_date",
    "parse_date",
    # Repositories
    "AlbumRepository",
    "ArtistRepository",
    "BookmarkRepository",
    "SaleRepository",
]
