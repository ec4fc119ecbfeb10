"""Catalog query composition and client-side search."""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar, Union

from ..application.queries import ListAlbumsQuery, QueryBus
from ..domain.entities import AlbumWithArtist
from ..domain.value_objects import SalesPeriodFilter, SortMode

logger = logging.getLogger(__name__)

RequestKey = Tuple[SortMode, SalesPeriodFilter]
T = TypeVar("T")


@dataclass(frozen=True)
class CatalogFilters:
    """UI state of the browse view."""

    sort_mode: SortMode = SortMode.NEWEST
    sales_period: SalesPeriodFilter = SalesPeriodFilter.ALL
    search_text: str = ""

    @classmethod
    def parse(
        cls,
        sort_mode: Union[str, SortMode] = SortMode.NEWEST,
        sales_period: Union[str, SalesPeriodFilter] = SalesPeriodFilter.ALL,
        search_text: Optional[str] = None,
    ) -> "CatalogFilters":
        return cls(
            sort_mode=SortMode(sort_mode),
            sales_period=SalesPeriodFilter(sales_period),
            search_text=search_text or "",
        )

    @property
    def request_key(self) -> RequestKey:
        """The parameters that decide what is requested from the store."""
        return (self.sort_mode, self.sales_period)

    def with_search(self, search_text: str) -> "CatalogFilters":
        return replace(self, search_text=search_text or "")


def apply_search(records: Iterable[T], search_text: str) -> List[T]:
    """Keep records whose album title or artist name contains ``search_text``.

    Works for anything with a ``matches`` method (albums and sales rows).
    """
    if not search_text:
        return list(records)
    return [record for record in records if record.matches(search_text)]


class CatalogQueryBuilder:
    """Composes the catalog request and filters its result by search text.

    Each fetched set is kept under the request parameters that produced it,
    so a search-only change refilters locally and never reaches the store.
    """

    def __init__(self, query_bus: QueryBus):
        self.query_bus = query_bus
        self._fetched: Dict[RequestKey, List[AlbumWithArtist]] = {}

    def build_query(self, filters: CatalogFilters) -> ListAlbumsQuery:
        return ListAlbumsQuery(sort_mode=filters.sort_mode, sales_period=filters.sales_period)

    async def fetch(self, filters: CatalogFilters) -> List[AlbumWithArtist]:
        """Issue the catalog request for ``filters``; raises FetchFailed."""
        result = await self.query_bus.dispatch(self.build_query(filters))
        albums = result.unwrap()
        self._fetched[filters.request_key] = albums
        logger.debug(
            f"Fetched {len(albums)} albums for sort={filters.sort_mode.value} "
            f"period={filters.sales_period.value} (cached={result.from_cache})"
        )
        return albums

    def fetched(self, filters: CatalogFilters) -> Optional[List[AlbumWithArtist]]:
        """The last set fetched for the request parameters of ``filters``."""
        return self._fetched.get(filters.request_key)

    async def list_albums(self, filters: CatalogFilters) -> List[AlbumWithArtist]:
        """Fetch the catalog for ``filters`` and apply its search text."""
        albums = await self.fetch(filters)
        return apply_search(albums, filters.search_text)

    async def search(self, filters: CatalogFilters) -> List[AlbumWithArtist]:
        """Apply the search text to the already-fetched set.

        Only fetches when nothing was fetched yet for these request
        parameters.
        """
        albums = self.fetched(filters)
        if albums is None:
            albums = await self.fetch(filters)
        return apply_search(albums, filters.search_text)
