"""Wiring of buses, cache, handlers and view orchestrators."""

import logging
from dataclasses import dataclass
from typing import Optional

from .bookmark_resolver import BookmarkResolver
from .catalog_query_builder import CatalogQueryBuilder
from .orchestrators import AlbumDetailOrchestrator, CatalogOrchestrator, EntryOrchestrator
from .sales_aggregator import SalesAggregator
from ..application.commands import (
    AddBookmarkCommand,
    AddBookmarkHandler,
    AppendSaleCommand,
    AppendSaleHandler,
    CommandBus,
    CreateAlbumCommand,
    CreateAlbumHandler,
    CreateArtistCommand,
    CreateArtistHandler,
    RemoveBookmarkCommand,
    RemoveBookmarkHandler,
)
from ..application.events import WRITE_EVENT_TYPES, CacheInvalidator, EventBus
from ..application.queries import (
    GetAlbumHandler,
    GetAlbumQuery,
    GetAlbumSalesHandler,
    GetAlbumSalesQuery,
    GetBookmarkHandler,
    GetBookmarkQuery,
    ListAlbumsByArtistHandler,
    ListAlbumsByArtistQuery,
    ListAlbumsHandler,
    ListAlbumsQuery,
    ListArtistsHandler,
    ListArtistsQuery,
    ListSalesHandler,
    ListSalesQuery,
    QueryBus,
    QueryCache,
)
from ..infrastructure.external.postgrest_client import PostgrestClient
from ..infrastructure.repositories import Repositories
from ..models.config import Config

logger = logging.getLogger(__name__)


@dataclass
class AlbumPulseApp:
    """Everything a front end needs, built around one set of repositories."""

    repositories: Repositories
    query_bus: QueryBus
    command_bus: CommandBus
    event_bus: EventBus
    cache: Optional[QueryCache]
    query_builder: CatalogQueryBuilder
    aggregator: SalesAggregator
    resolver: BookmarkResolver
    catalog: CatalogOrchestrator
    detail: AlbumDetailOrchestrator
    entries: EntryOrchestrator

    async def close(self) -> None:
        await self.repositories.close()

    async def __aenter__(self) -> "AlbumPulseApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def build_app(
    repositories: Repositories,
    cache_enabled: bool = True,
    cache_ttl_seconds: int = 300,
) -> AlbumPulseApp:
    """Register every query and command handler and build the orchestrators."""
    event_bus = EventBus()
    query_bus = QueryBus()
    cache = None
    if cache_enabled:
        cache = QueryCache(default_ttl_seconds=cache_ttl_seconds)
        query_bus.set_cache(cache)
        event_bus.subscribe_all(CacheInvalidator(cache), WRITE_EVENT_TYPES)

    query_bus.register(ListAlbumsQuery, ListAlbumsHandler(repositories.albums))
    query_bus.register(GetAlbumQuery, GetAlbumHandler(repositories.albums))
    query_bus.register(ListArtistsQuery, ListArtistsHandler(repositories.artists))
    query_bus.register(ListAlbumsByArtistQuery, ListAlbumsByArtistHandler(repositories.albums))
    query_bus.register(GetAlbumSalesQuery, GetAlbumSalesHandler(repositories.sales))
    query_bus.register(ListSalesQuery, ListSalesHandler(repositories.sales))
    query_bus.register(GetBookmarkQuery, GetBookmarkHandler(repositories.bookmarks))

    command_bus = CommandBus()
    command_bus.register(CreateArtistCommand, CreateArtistHandler(repositories.artists, event_bus))
    command_bus.register(CreateAlbumCommand, CreateAlbumHandler(repositories.albums, event_bus))
    command_bus.register(AppendSaleCommand, AppendSaleHandler(repositories.sales, event_bus))
    command_bus.register(AddBookmarkCommand, AddBookmarkHandler(repositories.bookmarks, event_bus))
    command_bus.register(RemoveBookmarkCommand, RemoveBookmarkHandler(repositories.bookmarks, event_bus))

    query_builder = CatalogQueryBuilder(query_bus)
    aggregator = SalesAggregator(query_bus)
    resolver = BookmarkResolver(query_bus, command_bus)

    return AlbumPulseApp(
        repositories=repositories,
        query_bus=query_bus,
        command_bus=command_bus,
        event_bus=event_bus,
        cache=cache,
        query_builder=query_builder,
        aggregator=aggregator,
        resolver=resolver,
        catalog=CatalogOrchestrator(query_builder, query_bus),
        detail=AlbumDetailOrchestrator(query_bus, aggregator, resolver),
        entries=EntryOrchestrator(command_bus),
    )


def build_app_from_config(config: Config) -> AlbumPulseApp:
    """Build an app talking to the store described by ``config``."""
    config.validate()
    client = PostgrestClient(
        base_url=config.store.url,
        api_key=config.store.api_key,
        access_token=config.identity.access_token,
        schema=config.store.schema,
        timeout=config.store.timeout_seconds,
    )
    logger.debug(f"Using store at {client.base_url}")
    return build_app(
        Repositories.postgrest(client),
        cache_enabled=config.cache.enabled,
        cache_ttl_seconds=config.cache.ttl_seconds,
    )
