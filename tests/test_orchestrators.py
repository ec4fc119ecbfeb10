"""Tests for the browse, album detail and entry orchestrators."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from album_pulse.core.app import build_app
from album_pulse.domain import (
    Album,
    Artist,
    Bookmark,
    DetailTab,
    Identity,
    Sale,
    SalesPeriodFilter,
    SalesType,
    SortMode,
)
from album_pulse.exceptions import (
    AuthenticationRequired,
    FetchFailed,
    NotFound,
    ShareUnavailable,
    ValidationError,
    WriteFailed,
)
from album_pulse.infrastructure.repositories import InMemoryStore, Repositories

USER = Identity(user_id="user-1")


@pytest.fixture
def store():
    store = InMemoryStore()
    store.artists["a"] = Artist(id="a", name="Girl Group A")
    store.artists["b"] = Artist(id="b", name="Boy Group B")
    store.albums["golden"] = Album(id="golden", title="Golden", release_date=date(2023, 5, 1), artist_id="a")
    store.albums["shine"] = Album(id="shine", title="Shine", release_date=date(2024, 1, 10), artist_id="b")
    store.sales["s1"] = Sale(id="s1", album_id="golden", sales_count=100, sales_date=date(2023, 5, 1),
                             sales_type=SalesType.FIRST_DAY)
    store.sales["s2"] = Sale(id="s2", album_id="golden", sales_count=50, sales_date=date(2023, 5, 2),
                             sales_type=SalesType.FIRST_DAY)
    store.sales["s3"] = Sale(id="s3", album_id="golden", sales_count=30, sales_date=date(2023, 9, 1),
                             sales_type=SalesType.BEYOND)
    store.sales["s4"] = Sale(id="s4", album_id="shine", sales_count=70, sales_date=date(2024, 1, 17),
                             sales_type=SalesType.FIRST_WEEK)
    return store


@pytest.fixture
def app(store):
    return build_app(Repositories.in_memory(store))


class TestCatalogOrchestrator:

    @pytest.mark.asyncio
    async def test_browse_defaults_to_newest(self, app):
        view = await app.catalog.browse()

        assert [a.title for a in view.albums] == ["Shine", "Golden"]
        assert view.fetched_count == 2
        assert not view.stale
        assert app.catalog.current_view is view

    @pytest.mark.asyncio
    async def test_search_refilters_without_request(self, store, app):
        await app.catalog.browse()

        view = await app.catalog.search("group a")

        assert [a.title for a in view.albums] == ["Golden"]
        assert view.fetched_count == 2
        assert store.calls["list_albums"] == 1

    @pytest.mark.asyncio
    async def test_search_with_no_match_is_empty_not_error(self, app):
        await app.catalog.browse()

        view = await app.catalog.search("zzz")

        assert view.is_empty

    @pytest.mark.asyncio
    async def test_set_sort_keeps_search_text(self, app):
        await app.catalog.search("shine")

        view = await app.catalog.set_sort("trending")

        assert view.filters.sort_mode is SortMode.TRENDING
        assert [a.title for a in view.albums] == ["Shine"]

    @pytest.mark.asyncio
    async def test_set_sales_period_issues_new_request(self, store, app):
        await app.catalog.browse()
        view = await app.catalog.set_sales_period(SalesPeriodFilter.FIRST_WEEK)

        assert view.filters.sales_period is SalesPeriodFilter.FIRST_WEEK
        assert view.fetched_count == 2
        assert store.calls["list_albums"] == 2

    @pytest.mark.asyncio
    async def test_superseded_result_is_discarded(self, store, app):
        store.latency["list_albums"] = 0.05
        slow = asyncio.ensure_future(app.catalog.set_sort("trending"))
        await asyncio.sleep(0.01)

        store.latency["list_albums"] = 0
        current = await app.catalog.set_sort("newest")
        stale = await slow

        assert stale.stale
        assert not current.stale
        assert app.catalog.current_view is current
        assert app.catalog.filters.sort_mode is SortMode.NEWEST

    @pytest.mark.asyncio
    async def test_browse_failure_keeps_previous_view(self, store, app):
        first = await app.catalog.browse()
        store.fail("list_albums", FetchFailed("offline"))

        with pytest.raises(FetchFailed):
            await app.catalog.set_sort("trending")

        assert app.catalog.current_view is first

    @pytest.mark.asyncio
    async def test_sales_table_filters_remotely(self, app):
        view = await app.catalog.sales_table("first_day")

        assert {r.sale.id for r in view.records} == {"s1", "s2"}
        assert all(r.sale.sales_type is SalesType.FIRST_DAY for r in view.records)

    @pytest.mark.asyncio
    async def test_sales_table_search(self, app):
        view = await app.catalog.sales_table(search_text="boy")

        assert [r.sale.id for r in view.records] == ["s4"]

    @pytest.mark.asyncio
    async def test_sales_table_newest_first(self, app):
        view = await app.catalog.sales_table()

        assert [r.sale.id for r in view.records] == ["s4", "s3", "s2", "s1"]

    @pytest.mark.asyncio
    async def test_artists_and_albums_by_artist(self, app):
        artists = await app.catalog.artists()
        albums = await app.catalog.albums_by_artist("a")

        assert [a.name for a in artists] == ["Boy Group B", "Girl Group A"]
        assert [a.title for a in albums] == ["Golden"]
        assert await app.catalog.albums_by_artist("") == []


class TestAlbumDetailOrchestrator:

    @pytest.mark.asyncio
    async def test_load_builds_detail_view(self, store, app):
        store.bookmarks["bm"] = Bookmark(id="bm", album_id="golden", user_id="user-1")

        view = await app.detail.load("golden", USER)

        assert view.album.title == "Golden"
        assert view.summary.first_day == 150
        assert view.summary.total == 180
        assert [p.date for p in view.chart] == ["05/01", "05/02", "09/01"]
        assert view.is_bookmarked
        assert view.tab is DetailTab.OVERVIEW
        assert view.released == "May 1, 2023"
        assert view.stat_cards == [
            ("First Day", 150),
            ("First Week", 0),
            ("First Month", 0),
            ("Total Sales", 180),
        ]

    @pytest.mark.asyncio
    async def test_load_anonymous_does_not_read_bookmarks(self, store, app):
        view = await app.detail.load("golden", None, tab="sales")

        assert not view.is_bookmarked
        assert view.tab is DetailTab.SALES
        assert [row.sales_type for row in view.rows] == ["first day", "first day", "beyond"]
        assert store.calls["find_bookmark"] == 0

    @pytest.mark.asyncio
    async def test_unknown_album_raises_not_found(self, app):
        with pytest.raises(NotFound, match="missing"):
            await app.detail.load("missing", USER)

    @pytest.mark.asyncio
    async def test_detail_reflects_new_sale(self, app):
        before = await app.detail.load("shine", USER)
        await app.entries.append_sale("shine", "5", "2024-02-01", "beyond", USER)
        after = await app.detail.load("shine", USER)

        assert before.summary.total == 70
        assert after.summary.total == 75
        assert after.summary.beyond == 5

    @pytest.mark.asyncio
    async def test_toggle_bookmark_requires_identity(self, store, app):
        with pytest.raises(AuthenticationRequired):
            await app.detail.toggle_bookmark("golden", None)
        assert store.write_count == 0

    def test_share_link_text(self, store, app):
        album = store.album_with_artist(store.albums["golden"])

        link = app.detail.share_link(album, "https://pulse.example/album/golden")

        assert link.title == "Golden"
        assert link.text == "Check out Golden by Girl Group A on K-Pop Album Pulse!"
        assert link.url == "https://pulse.example/album/golden"

    @pytest.mark.asyncio
    async def test_share_uses_native_share(self, app):
        album = await app.detail.get_album("golden")
        share = AsyncMock()
        copy = MagicMock()

        outcome = await app.detail.share(album, "https://pulse.example/a", copy, share)

        assert outcome == "shared"
        share.assert_awaited_once()
        copy.assert_not_called()

    @pytest.mark.asyncio
    async def test_share_falls_back_to_copy(self, app):
        album = await app.detail.get_album("golden")
        share = AsyncMock(side_effect=ShareUnavailable("not supported"))
        copy = AsyncMock()

        outcome = await app.detail.share(album, "https://pulse.example/a", copy, share)

        assert outcome == "copied"
        copy.assert_awaited_once_with("https://pulse.example/a")

    @pytest.mark.asyncio
    async def test_cancelled_share_falls_back_to_copy(self, app):
        album = await app.detail.get_album("golden")
        share = AsyncMock(side_effect=RuntimeError("AbortError: share canceled"))
        copy = MagicMock()

        outcome = await app.detail.share(album, "https://pulse.example/a", copy, share)

        assert outcome == "copied"
        copy.assert_called_once_with("https://pulse.example/a")

    @pytest.mark.asyncio
    async def test_share_without_native_share_copies(self, app):
        album = await app.detail.get_album("golden")
        copy = MagicMock()

        assert await app.detail.share(album, "https://pulse.example/a", copy) == "copied"
        copy.assert_called_once_with("https://pulse.example/a")


class TestEntryOrchestrator:

    @pytest.mark.asyncio
    async def test_create_artist_album_and_sale(self, store, app):
        artist = await app.entries.create_artist("  New Group  ", USER)
        album = await app.entries.create_album("Debut", artist.id, "2024-06-01", USER)
        await app.entries.append_sale(album.id, 1200, date(2024, 6, 1), SalesType.FIRST_DAY, USER)

        assert artist.name == "New Group"
        assert album.artist_id == artist.id
        assert album.release_date == date(2024, 6, 1)
        view = await app.detail.load(album.id, USER)
        assert view.summary.first_day == 1200

    @pytest.mark.asyncio
    async def test_empty_album_title_fails_before_remote_call(self, store, app):
        with pytest.raises(ValidationError) as exc_info:
            await app.entries.create_album("   ", "a", "2024-06-01", USER)

        assert exc_info.value.field == "title"
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_missing_artist_fails_validation(self, store, app):
        with pytest.raises(ValidationError) as exc_info:
            await app.entries.create_album("Debut", None, "2024-06-01", USER)

        assert exc_info.value.field == "artist_id"
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_invalid_sales_count_fails_validation(self, store, app):
        for bad in ("", "many", "-3", None):
            with pytest.raises(ValidationError):
                await app.entries.append_sale("golden", bad, "2024-06-01", "first_day", USER)
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_invalid_sales_type_fails_validation(self, store, app):
        with pytest.raises(ValidationError) as exc_info:
            await app.entries.append_sale("golden", 1, "2024-06-01", "presale", USER)

        assert exc_info.value.field == "sales_type"
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_writes_require_identity(self, store, app):
        with pytest.raises(AuthenticationRequired):
            await app.entries.create_artist("New Group", None)
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_failed_sale_keeps_created_album(self, store, app):
        album = await app.entries.create_album("Debut", "a", "2024-06-01", USER)
        store.fail("insert_sale", WriteFailed())

        with pytest.raises(WriteFailed):
            await app.entries.append_sale(album.id, 10, "2024-06-01", "first_day", USER)

        assert album.id in store.albums

    @pytest.mark.asyncio
    async def test_new_album_appears_in_cached_catalog(self, app):
        await app.catalog.browse()
        await app.entries.create_album("Debut", "a", "2025-01-01", USER)

        view = await app.catalog.browse()

        assert view.albums[0].title == "Debut"
