"""Tests for the query bus, query cache and cache invalidation."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from album_pulse.application.events import CacheInvalidator, EventBus, WRITE_EVENT_TYPES
from album_pulse.application.events import album_created, bookmark_added, sale_appended
from album_pulse.application.queries import (
    CacheEntry,
    GetAlbumSalesQuery,
    GetBookmarkQuery,
    ListAlbumsByArtistQuery,
    ListAlbumsQuery,
    ListSalesQuery,
    Query,
    QueryBus,
    QueryCache,
    QueryHandler,
    QueryResult,
)
from album_pulse.domain import SalesPeriodFilter, SortMode
from album_pulse.exceptions import AlbumPulseError, FetchFailed


class StubHandler(QueryHandler):
    """Handler returning a fixed value, optionally after a delay."""

    def __init__(self, result=None, delay=0.0, error=None):
        self.result = result
        self.delay = delay
        self.error = error
        self.calls = 0

    async def handle(self, query):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result

    def can_handle(self, query_type):
        return True


class TestQuery:

    def test_query_defaults(self):
        query = Query()

        assert isinstance(query.query_id, str)
        assert query.timestamp.tzinfo is not None
        assert query.cache_key is None
        assert query.cache_ttl_seconds == 300
        assert query.bypass_cache is False

    def test_parameters_exclude_metadata_and_use_enum_values(self):
        query = ListAlbumsQuery(sort_mode=SortMode.TRENDING, sales_period=SalesPeriodFilter.BEYOND)

        assert query.parameters() == {"sort_mode": "trending", "sales_period": "beyond"}

    def test_to_dict(self):
        data = GetBookmarkQuery(album_id="a", user_id="u").to_dict()

        assert data["query_type"] == "GetBookmarkQuery"
        assert data["album_id"] == "a"
        assert data["user_id"] == "u"

    def test_cache_key_covers_exact_parameters(self):
        handler = StubHandler()

        newest = handler.get_cache_key(ListAlbumsQuery(sort_mode=SortMode.NEWEST))
        trending = handler.get_cache_key(ListAlbumsQuery(sort_mode=SortMode.TRENDING))

        assert newest == "ListAlbumsQuery|sales_period=all|sort_mode=newest"
        assert newest != trending

    def test_explicit_cache_key_wins(self):
        assert StubHandler().get_cache_key(Query(cache_key="custom")) == "custom"


class TestQueryResult:

    def test_unwrap_success(self):
        assert QueryResult(data=[1, 2]).unwrap() == [1, 2]

    def test_unwrap_reraises_error(self):
        result = QueryResult(success=False, error=FetchFailed("down"))
        with pytest.raises(FetchFailed, match="down"):
            result.unwrap()

    def test_unwrap_without_error_object(self):
        with pytest.raises(FetchFailed, match="a; b"):
            QueryResult(success=False, errors=["a", "b"]).unwrap()


class TestQueryBus:

    @pytest.mark.asyncio
    async def test_unregistered_query_fails(self):
        result = await QueryBus().dispatch(Query())

        assert not result.success
        assert "No handler registered" in result.errors[0]
        with pytest.raises(AlbumPulseError):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_dispatch_without_cache(self):
        bus = QueryBus()
        handler = StubHandler(result=["x"])
        bus.register(GetAlbumSalesQuery, handler)

        first = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))
        second = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))

        assert first.data == ["x"] and second.data == ["x"]
        assert handler.calls == 2
        assert first.execution_time_ms is not None

    @pytest.mark.asyncio
    async def test_cache_hit(self):
        bus = QueryBus()
        bus.set_cache(QueryCache())
        handler = StubHandler(result=["x"])
        bus.register(GetAlbumSalesQuery, handler)

        await bus.dispatch(GetAlbumSalesQuery(album_id="a"))
        cached = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))
        other = await bus.dispatch(GetAlbumSalesQuery(album_id="b"))

        assert cached.from_cache
        assert cached.cached_at is not None
        assert not other.from_cache
        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_bypass_cache(self):
        bus = QueryBus()
        bus.set_cache(QueryCache())
        handler = StubHandler(result=["x"])
        bus.register(GetAlbumSalesQuery, handler)

        await bus.dispatch(GetAlbumSalesQuery(album_id="a"))
        result = await bus.dispatch(GetAlbumSalesQuery(album_id="a", bypass_cache=True))

        assert not result.from_cache
        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_identical_queries_share_one_request(self):
        bus = QueryBus()
        bus.set_cache(QueryCache())
        handler = StubHandler(result=["x"], delay=0.02)
        bus.register(GetAlbumSalesQuery, handler)

        results = await asyncio.gather(*(bus.dispatch(GetAlbumSalesQuery(album_id="a")) for _ in range(3)))

        assert handler.calls == 1
        assert all(r.data == ["x"] for r in results)

    @pytest.mark.asyncio
    async def test_handler_error_becomes_failed_result(self):
        bus = QueryBus()
        bus.register(GetAlbumSalesQuery, StubHandler(error=FetchFailed("timeout")))

        result = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))

        assert not result.success
        assert isinstance(result.error, FetchFailed)
        assert result.errors == ["timeout"]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self):
        bus = QueryBus()
        bus.register(GetAlbumSalesQuery, StubHandler(error=RuntimeError("bug")))

        result = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))

        assert isinstance(result.error, FetchFailed)

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        bus = QueryBus()
        cache = QueryCache()
        bus.set_cache(cache)
        bus.register(GetAlbumSalesQuery, StubHandler(error=FetchFailed("down")))

        await bus.dispatch(GetAlbumSalesQuery(album_id="a"))

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_result_in_flight_during_invalidation_is_not_cached(self):
        bus = QueryBus()
        cache = QueryCache()
        bus.set_cache(cache)
        handler = StubHandler(result=["old"], delay=0.02)
        bus.register(GetAlbumSalesQuery, handler)

        pending = asyncio.ensure_future(bus.dispatch(GetAlbumSalesQuery(album_id="a")))
        await asyncio.sleep(0.005)
        await cache.invalidate("GetAlbumSalesQuery", album_id="a")
        await pending

        handler.result = ["new"]
        result = await bus.dispatch(GetAlbumSalesQuery(album_id="a"))

        assert result.data == ["new"]
        assert handler.calls == 2

    def test_registered_queries(self):
        bus = QueryBus()
        bus.register(ListSalesQuery, StubHandler())
        assert bus.get_registered_queries() == [ListSalesQuery]


class TestQueryCache:

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = QueryCache()
        await cache.set("k", [1])

        entry = await cache.get("k")

        assert entry.data == [1]
        assert not cache.is_stale("k")

    @pytest.mark.asyncio
    async def test_expired_entry_is_dropped(self):
        cache = QueryCache()
        await cache.set("k", [1], ttl_seconds=0)
        cache._cache["k"].expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_invalidate_marks_matching_entries_stale(self):
        cache = QueryCache()
        await cache.set("GetAlbumSalesQuery|album_id=a", [1])
        await cache.set("GetAlbumSalesQuery|album_id=b", [2])
        await cache.set("ListSalesQuery|sales_type=all", [3])

        count = await cache.invalidate(GetAlbumSalesQuery, album_id="a")

        assert count == 1
        assert cache.is_stale("GetAlbumSalesQuery|album_id=a")
        assert await cache.get("GetAlbumSalesQuery|album_id=a") is None
        assert await cache.get("GetAlbumSalesQuery|album_id=b") is not None
        assert len(cache) == 3

    @pytest.mark.asyncio
    async def test_invalidate_everything(self):
        cache = QueryCache()
        await cache.set("A|x=1", 1)
        await cache.set("B|y=2", 2)

        assert await cache.invalidate() == 2
        assert cache.is_stale("A|x=1") and cache.is_stale("B|y=2")

    @pytest.mark.asyncio
    async def test_set_refuses_outdated_version(self):
        cache = QueryCache()
        version = cache.version
        await cache.invalidate()

        assert await cache.set("k", 1, if_version=version) is False
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_set_prunes_expired_and_stale_entries(self):
        cache = QueryCache()
        await cache.set("GetAlbumSalesQuery|album_id=a", [1])
        await cache.set("GetAlbumSalesQuery|album_id=b", [2])
        await cache.set("GetBookmarkQuery|album_id=a|user_id=u1", None)
        cache._cache["GetAlbumSalesQuery|album_id=a"].expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        await cache.invalidate(GetAlbumSalesQuery, album_id="b")

        await cache.set("GetAlbumSalesQuery|album_id=c", [3])

        assert len(cache) == 2
        assert await cache.get("GetBookmarkQuery|album_id=a|user_id=u1") is not None
        assert await cache.get("GetAlbumSalesQuery|album_id=c") is not None

    def test_cache_entry_expiry(self):
        now = datetime.now(timezone.utc)
        entry = CacheEntry(data=1, timestamp=now, expires_at=now - timedelta(seconds=1))
        assert entry.is_expired()


class TestCacheInvalidator:

    @pytest.fixture
    def cache(self):
        return QueryCache()

    @pytest.fixture
    def event_bus(self, cache):
        bus = EventBus()
        bus.subscribe_all(CacheInvalidator(cache), WRITE_EVENT_TYPES)
        return bus

    def test_subscribes_to_every_write_event(self, event_bus):
        assert event_bus.get_subscribed_events() == {event_type: 1 for event_type in WRITE_EVENT_TYPES}

    @pytest.mark.asyncio
    async def test_album_created_invalidates_catalog_and_artist_albums(self, cache, event_bus):
        await cache.set("ListAlbumsQuery|sales_period=all|sort_mode=newest", [])
        await cache.set("ListAlbumsByArtistQuery|artist_id=a", [])
        await cache.set("ListAlbumsByArtistQuery|artist_id=b", [])

        await event_bus.publish(album_created("new", "a", "Debut"))

        assert cache.is_stale("ListAlbumsQuery|sales_period=all|sort_mode=newest")
        assert cache.is_stale("ListAlbumsByArtistQuery|artist_id=a")
        assert not cache.is_stale("ListAlbumsByArtistQuery|artist_id=b")

    @pytest.mark.asyncio
    async def test_sale_appended_invalidates_album_sales_only(self, cache, event_bus):
        await cache.set("GetAlbumSalesQuery|album_id=a", [])
        await cache.set("GetAlbumSalesQuery|album_id=b", [])
        await cache.set("ListSalesQuery|sales_type=first_day", [])

        await event_bus.publish(sale_appended("a", "first_day", 10))

        assert cache.is_stale("GetAlbumSalesQuery|album_id=a")
        assert not cache.is_stale("GetAlbumSalesQuery|album_id=b")
        assert cache.is_stale("ListSalesQuery|sales_type=first_day")

    @pytest.mark.asyncio
    async def test_bookmark_events_invalidate_one_pair(self, cache, event_bus):
        await cache.set("GetBookmarkQuery|album_id=a|user_id=u1", None)
        await cache.set("GetBookmarkQuery|album_id=a|user_id=u2", None)

        await event_bus.publish(bookmark_added("a", "u1", "bm"))

        assert cache.is_stale("GetBookmarkQuery|album_id=a|user_id=u1")
        assert not cache.is_stale("GetBookmarkQuery|album_id=a|user_id=u2")

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self, cache):
        bus = EventBus()
        failing = AsyncMock()
        failing.handle.side_effect = RuntimeError("boom")
        failing.can_handle.return_value = True
        bus.subscribe("AlbumCreated", failing)
        bus.subscribe("AlbumCreated", CacheInvalidator(cache))
        await cache.set("ListAlbumsQuery|sales_period=all|sort_mode=newest", [])

        await bus.publish(album_created("new", "a", "Debut"))

        assert cache.is_stale("ListAlbumsQuery|sales_period=all|sort_mode=newest")
        assert len(bus.published_events("AlbumCreated")) == 1

    def test_list_albums_by_artist_key(self):
        key = StubHandler().get_cache_key(ListAlbumsByArtistQuery(artist_id="a"))
        assert key == "ListAlbumsByArtistQuery|artist_id=a"
