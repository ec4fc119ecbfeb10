"""Query side of CQRS pattern."""

from .base import Query, QueryHandler, QueryBus, QueryResult, QueryCache, CacheEntry, make_cache_key
from .bookmark_queries import GetBookmarkHandler, GetBookmarkQuery
from .catalog_queries import (
    GetAlbumHandler,
    GetAlbumQuery,
    ListAlbumsByArtistHandler,
    ListAlbumsByArtistQuery,
    ListAlbumsHandler,
    ListAlbumsQuery,
    ListArtistsHandler,
    ListArtistsQuery,
)
from .sales_queries import GetAlbumSalesHandler, GetAlbumSalesQuery, ListSalesHandler, ListSalesQuery

__all__ = [
    "Query",
    "QueryHandler",
    "QueryBus",
    "QueryResult",
    "QueryCache",
    "CacheEntry",
    "make_cache_key",
    "GetAlbumHandler",
    "GetAlbumQuery",
    "GetAlbumSalesHandler",
    "GetAlbumSalesQuery",
    "GetBookmarkHandler",
    "GetBookmarkQuery",
    "ListAlbumsByArtistHandler",
    "ListAlbumsByArtistQuery",
    "ListAlbumsHandler",
    "ListAlbumsQuery",
    "ListArtistsHandler",
    "ListArtistsQuery",
    "ListSalesHandler",
    "ListSalesQuery",
]
