"""K-Pop Album Pulse

Catalog browsing, sales aggregation and bookmarks over a remote album store.
"""

__version__ = "0.1.0"

from .core.app import AlbumPulseApp, build_app, build_app_from_config
from .core.catalog_query_builder import CatalogFilters
from .domain.value_objects import (
    DetailTab,
    Identity,
    SalesPeriodFilter,
    SalesType,
    SortMode,
)
from .exceptions import (
    AlbumPulseError,
    AuthenticationRequired,
    DuplicateRowError,
    FetchFailed,
    NotFound,
    ValidationError,
    WriteFailed,
)
from .infrastructure.repositories import InMemoryStore, Repositories

__all__ = [
    "__version__",
    "AlbumPulseApp",
    "build_app",
    "build_app_from_config",
    "CatalogFilters",
    "DetailTab",
    "Identity",
    "SalesPeriodFilter",
    "SalesType",
    "SortMode",
    "AlbumPulseError",
    "AuthenticationRequired",
    "DuplicateRowError",
    "FetchFailed",
    "NotFound",
    "ValidationError",
    "WriteFailed",
    "InMemoryStore",
    "Repositories",
]
