"""
View orchestration: browse list, album detail and entry creation.

Orchestrators compose the query builder, sales aggregator and bookmark
resolver into view models. Remote errors propagate to the caller unchanged;
the only failure handled here is an unavailable share target, which falls
back to copying the link.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from .bookmark_resolver import BookmarkResolver
from .catalog_query_builder import CatalogFilters, CatalogQueryBuilder, apply_search
from .sales_aggregator import AlbumSales, SalesAggregator, SalesRow
from ..application.commands import (
    AppendSaleCommand,
    CommandBus,
    CreateAlbumCommand,
    CreateArtistCommand,
)
from ..application.queries import (
    GetAlbumQuery,
    ListAlbumsByArtistQuery,
    ListArtistsQuery,
    ListSalesQuery,
    QueryBus,
)
from ..domain.entities import (
    Album,
    AlbumWithArtist,
    Artist,
    BookmarkState,
    ChartPoint,
    SaleWithAlbum,
    SalesSummary,
)
from ..domain.value_objects import (
    DetailTab,
    Identity,
    SalesPeriodFilter,
    SalesType,
    SortMode,
)
from ..exceptions import NotFound, ShareUnavailable

logger = logging.getLogger(__name__)

SITE_NAME = "K-Pop Album Pulse"


@dataclass(frozen=True)
class CatalogView:
    """Browse list for one set of filters."""

    filters: CatalogFilters
    albums: List[AlbumWithArtist] = field(default_factory=list)
    fetched_count: int = 0
    stale: bool = False

    @property
    def is_empty(self) -> bool:
        """No matches; distinct from a failed request, which raises."""
        return not self.albums


@dataclass(frozen=True)
class SalesTableView:
    """Standalone listing of every submitted sale."""

    sales_type: SalesPeriodFilter
    search_text: str
    records: List[SaleWithAlbum] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records


class CatalogOrchestrator:
    """Browse view state: current filters and the view they produced.

    Results are applied only while the request parameters that produced
    them are still the current ones; a slower response for superseded
    filters is returned flagged as stale and never replaces the view.
    """

    def __init__(self, query_builder: CatalogQueryBuilder, query_bus: QueryBus):
        self.query_builder = query_builder
        self.query_bus = query_bus
        self._filters = CatalogFilters()
        self._view: Optional[CatalogView] = None

    @property
    def filters(self) -> CatalogFilters:
        return self._filters

    @property
    def current_view(self) -> Optional[CatalogView]:
        return self._view

    async def browse(self, filters: Optional[CatalogFilters] = None) -> CatalogView:
        """Fetch the catalog for ``filters`` (default: the current ones)."""
        filters = filters or self._filters
        self._filters = filters
        fetched = await self.query_builder.fetch(filters)

        if filters.request_key != self._filters.request_key:
            logger.warning(
                f"Discarding stale catalog result for sort={filters.sort_mode.value} "
                f"period={filters.sales_period.value}"
            )
            return CatalogView(
                filters=filters,
                albums=apply_search(fetched, filters.search_text),
                fetched_count=len(fetched),
                stale=True,
            )

        # Search text may have changed while the request was in flight
        current = self._filters
        view = CatalogView(
            filters=current,
            albums=apply_search(fetched, current.search_text),
            fetched_count=len(fetched),
        )
        self._view = view
        return view

    async def set_sort(self, sort_mode: Union[SortMode, str]) -> CatalogView:
        return await self.browse(CatalogFilters.parse(sort_mode, self._filters.sales_period,
                                                      self._filters.search_text))

    async def set_sales_period(self, sales_period: Union[SalesPeriodFilter, str]) -> CatalogView:
        return await self.browse(CatalogFilters.parse(self._filters.sort_mode, sales_period,
                                                      self._filters.search_text))

    async def search(self, search_text: str) -> CatalogView:
        """Refilter the fetched set; never issues a request by itself."""
        filters = self._filters.with_search(search_text)
        self._filters = filters
        albums = await self.query_builder.search(filters)
        fetched = self.query_builder.fetched(filters) or []
        view = CatalogView(filters=filters, albums=albums, fetched_count=len(fetched))
        self._view = view
        return view

    async def sales_table(
        self,
        sales_type: Union[SalesPeriodFilter, str] = SalesPeriodFilter.ALL,
        search_text: str = "",
    ) -> SalesTableView:
        """List all sales; the period filter here does constrain the request."""
        sales_type = SalesPeriodFilter(sales_type)
        result = await self.query_bus.dispatch(ListSalesQuery(sales_type=sales_type))
        records = apply_search(result.unwrap(), search_text)
        return SalesTableView(sales_type=sales_type, search_text=search_text, records=records)

    async def artists(self) -> List[Artist]:
        result = await self.query_bus.dispatch(ListArtistsQuery())
        return result.unwrap()

    async def albums_by_artist(self, artist_id: str) -> List[Album]:
        if not artist_id:
            return []
        result = await self.query_bus.dispatch(ListAlbumsByArtistQuery(artist_id=artist_id))
        return result.unwrap()


@dataclass(frozen=True)
class ShareLink:
    title: str
    text: str
    url: str


@dataclass(frozen=True)
class AlbumDetailView:
    """Album detail with its overview and detailed-sales tabs."""

    album: AlbumWithArtist
    sales: AlbumSales
    bookmark: BookmarkState
    tab: DetailTab = DetailTab.OVERVIEW

    @property
    def summary(self) -> SalesSummary:
        return self.sales.summary

    @property
    def chart(self) -> List[ChartPoint]:
        return self.sales.chart

    @property
    def rows(self) -> List[SalesRow]:
        return self.sales.rows

    @property
    def is_bookmarked(self) -> bool:
        return self.bookmark.is_bookmarked

    @property
    def released(self) -> str:
        released = self.album.release_date
        return f"{released:%B} {released.day}, {released.year}"

    @property
    def stat_cards(self) -> List[Tuple[str, int]]:
        summary = self.summary
        return [
            ("First Day", summary.first_day),
            ("First Week", summary.first_week),
            ("First Month", summary.first_month),
            ("Total Sales", summary.total),
        ]


ShareCallback = Callable[[ShareLink], Awaitable[None]]
CopyCallback = Callable[[str], Union[None, Awaitable[None]]]


class AlbumDetailOrchestrator:
    """Loads album detail views and handles bookmark and share actions."""

    def __init__(self, query_bus: QueryBus, aggregator: SalesAggregator, resolver: BookmarkResolver):
        self.query_bus = query_bus
        self.aggregator = aggregator
        self.resolver = resolver

    async def get_album(self, album_id: str) -> AlbumWithArtist:
        result = await self.query_bus.dispatch(GetAlbumQuery(album_id=album_id))
        album = result.unwrap()
        if album is None:
            raise NotFound("Album", album_id)
        return album

    async def load(
        self,
        album_id: str,
        identity: Optional[Identity] = None,
        tab: Union[DetailTab, str] = DetailTab.OVERVIEW,
    ) -> AlbumDetailView:
        """Fetch album, sales and bookmark state concurrently."""
        album, sales, bookmark = await asyncio.gather(
            self.get_album(album_id),
            self.aggregator.aggregate(album_id),
            self.resolver.resolve(album_id, identity),
        )
        return AlbumDetailView(album=album, sales=sales, bookmark=bookmark, tab=DetailTab(tab))

    async def toggle_bookmark(self, album_id: str, identity: Optional[Identity]) -> BookmarkState:
        return await self.resolver.toggle(album_id, identity)

    @staticmethod
    def share_link(album: AlbumWithArtist, url: str) -> ShareLink:
        return ShareLink(
            title=album.title or "K-Pop Album",
            text=f"Check out {album.title} by {album.artist.name} on {SITE_NAME}!",
            url=url,
        )

    async def share(
        self,
        album: AlbumWithArtist,
        url: str,
        copy: CopyCallback,
        share: Optional[ShareCallback] = None,
    ) -> str:
        """Share natively when possible, otherwise copy the link.

        Returns ``"shared"`` or ``"copied"``.
        """
        link = self.share_link(album, url)
        if share is not None:
            try:
                await share(link)
                return "shared"
            except ShareUnavailable as e:
                logger.info(f"Native share unavailable ({e}); copying link instead")
            except Exception as e:
                logger.info(f"Share failed ({e}); copying link instead")
        copied = copy(link.url)
        if asyncio.iscoroutine(copied):
            await copied
        return "copied"


class EntryOrchestrator:
    """Entry creation: three independent writes, each validated first."""

    def __init__(self, command_bus: CommandBus):
        self.command_bus = command_bus

    async def create_artist(self, name: str, identity: Optional[Identity]) -> Artist:
        result = await self.command_bus.dispatch(CreateArtistCommand(identity=identity, name=name))
        return result.raise_for_error().result_data["artist"]

    async def create_album(
        self,
        title: str,
        artist_id: Optional[str],
        release_date: Union[date, str, None],
        identity: Optional[Identity],
    ) -> Album:
        command = CreateAlbumCommand(
            identity=identity, title=title, artist_id=artist_id, release_date=release_date
        )
        result = await self.command_bus.dispatch(command)
        return result.raise_for_error().result_data["album"]

    async def append_sale(
        self,
        album_id: Optional[str],
        sales_count: Union[int, str, None],
        sales_date: Union[date, str, None],
        sales_type: Union[SalesType, str, None],
        identity: Optional[Identity],
    ) -> None:
        command = AppendSaleCommand(
            identity=identity,
            album_id=album_id,
            sales_count=sales_count,
            sales_date=sales_date,
            sales_type=sales_type,
        )
        result = await self.command_bus.dispatch(command)
        result.raise_for_error()
