"""Core components: query composition, aggregation, bookmarks and views."""

from .app import AlbumPulseApp, build_app, build_app_from_config
from .bookmark_resolver import BookmarkResolver
from .catalog_query_builder import CatalogFilters, CatalogQueryBuilder, apply_search
from .orchestrators import (
    AlbumDetailOrchestrator,
    AlbumDetailView,
    CatalogOrchestrator,
    CatalogView,
    EntryOrchestrator,
    SalesTableView,
    ShareLink,
)
from .sales_aggregator import AlbumSales, SalesAggregator, SalesRow

__all__ = [
    "AlbumPulseApp",
    "build_app",
    "build_app_from_config",
    "BookmarkResolver",
    "CatalogFilters",
    "CatalogQueryBuilder",
    "apply_search",
    "AlbumDetailOrchestrator",
    "AlbumDetailView",
    "CatalogOrchestrator",
    "CatalogView",
    "EntryOrchestrator",
    "SalesTableView",
    "ShareLink",
    "AlbumSales",
    "SalesAggregator",
    "SalesRow",
]
