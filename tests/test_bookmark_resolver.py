"""Tests for bookmark resolution and toggling."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from album_pulse.core.app import build_app
from album_pulse.domain import Album, Artist, Bookmark, Identity
from album_pulse.exceptions import AuthenticationRequired, FetchFailed, StoreError, WriteFailed
from album_pulse.infrastructure.external.postgrest_client import PostgrestClient
from album_pulse.infrastructure.repositories import Repositories, InMemoryStore

USER = Identity(user_id="user-1")


@pytest.fixture
def store():
    store = InMemoryStore()
    store.artists["a"] = Artist(id="a", name="Girl Group A")
    store.albums["golden"] = Album(id="golden", title="Golden", release_date=date(2023, 5, 1), artist_id="a")
    return store


@pytest.fixture
def resolver(store):
    return build_app(Repositories.in_memory(store)).resolver


class TestResolve:

    @pytest.mark.asyncio
    async def test_no_identity_skips_fetch(self, store, resolver):
        state = await resolver.resolve("golden", None)

        assert not state.is_bookmarked
        assert state.user_id is None
        assert store.calls["find_bookmark"] == 0

    @pytest.mark.asyncio
    async def test_resolves_existing_bookmark(self, store, resolver):
        store.bookmarks["b1"] = Bookmark(id="b1", album_id="golden", user_id="user-1")

        state = await resolver.resolve("golden", USER)

        assert state.is_bookmarked
        assert state.bookmark.id == "b1"

    @pytest.mark.asyncio
    async def test_other_users_bookmark_is_ignored(self, store, resolver):
        store.bookmarks["b1"] = Bookmark(id="b1", album_id="golden", user_id="user-2")

        state = await resolver.resolve("golden", USER)

        assert not state.is_bookmarked

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, store, resolver):
        store.fail("find_bookmark", FetchFailed("offline"))

        with pytest.raises(FetchFailed):
            await resolver.resolve("golden", USER)


class TestToggle:

    @pytest.mark.asyncio
    async def test_toggle_without_identity_writes_nothing(self, store, resolver):
        with pytest.raises(AuthenticationRequired, match="sign in"):
            await resolver.toggle("golden", None)

        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_toggle_adds_then_removes(self, store, resolver):
        added = await resolver.toggle("golden", USER)
        assert added.is_bookmarked
        assert len(store.bookmarks) == 1

        removed = await resolver.toggle("golden", USER)
        assert not removed.is_bookmarked
        assert store.bookmarks == {}

    @pytest.mark.asyncio
    async def test_state_is_reread_after_write(self, store, resolver):
        await resolver.toggle("golden", USER)

        # resolve before, write, resolve after
        assert store.calls["find_bookmark"] == 2
        assert store.calls["insert_bookmark"] == 1

    @pytest.mark.asyncio
    async def test_cached_state_is_refreshed_after_toggle(self, store, resolver):
        before = await resolver.resolve("golden", USER)
        await resolver.toggle("golden", USER)
        after = await resolver.resolve("golden", USER)

        assert not before.is_bookmarked
        assert after.is_bookmarked

    @pytest.mark.asyncio
    async def test_concurrent_toggles_join(self, store, resolver):
        store.latency["insert_bookmark"] = 0.05

        first, second = await asyncio.gather(
            resolver.toggle("golden", USER),
            resolver.toggle("golden", USER),
        )

        assert first == second
        assert first.is_bookmarked
        assert store.calls["insert_bookmark"] == 1
        assert len(store.bookmarks) == 1

    @pytest.mark.asyncio
    async def test_is_toggling_while_in_flight(self, store, resolver):
        store.latency["insert_bookmark"] = 0.05

        task = asyncio.ensure_future(resolver.toggle("golden", USER))
        await asyncio.sleep(0.01)
        assert resolver.is_toggling("golden", USER)

        await task
        assert not resolver.is_toggling("golden", USER)
        assert not resolver.is_toggling("golden", None)

    @pytest.mark.asyncio
    async def test_rapid_sequential_toggles_never_duplicate(self, store, resolver):
        for _ in range(5):
            await resolver.toggle("golden", USER)

        # Odd number of toggles ends bookmarked, with exactly one row
        state = await resolver.resolve("golden", USER, fresh=True)
        assert state.is_bookmarked
        assert len(store.bookmarks) == 1

    @pytest.mark.asyncio
    async def test_write_failure_propagates_and_state_is_unchanged(self, store, resolver):
        store.fail("insert_bookmark", WriteFailed())

        with pytest.raises(WriteFailed, match="Failed to save changes"):
            await resolver.toggle("golden", USER)

        store.recover()
        state = await resolver.resolve("golden", USER, fresh=True)
        assert not state.is_bookmarked
        assert not resolver.is_toggling("golden", USER)

    @pytest.mark.asyncio
    async def test_store_rejection_on_insert_reaches_caller(self):
        client = PostgrestClient(base_url="https://demo.supabase.co", api_key="anon-key")
        client.select = AsyncMock(return_value=[])
        client.insert = AsyncMock(side_effect=StoreError(
            "violates foreign key constraint", code="23503", status=409))
        resolver = build_app(Repositories.postgrest(client)).resolver

        with pytest.raises(WriteFailed, match="foreign key"):
            await resolver.toggle("missing-album", USER)

        assert not resolver.is_toggling("missing-album", USER)

    @pytest.mark.asyncio
    async def test_duplicate_insert_resolves_to_bookmarked(self, store, resolver):
        # Another client bookmarks between our read and our insert
        async def racing_enter(operation, _enter=store.enter):
            await _enter(operation)
            if operation == "insert_bookmark" and not store.bookmarks:
                store.bookmarks["other"] = Bookmark(id="other", album_id="golden", user_id="user-1")

        store.enter = racing_enter

        state = await resolver.toggle("golden", USER)

        assert state.is_bookmarked
        assert state.bookmark.id == "other"
        assert len(store.bookmarks) == 1
        assert store.calls["insert_bookmark"] == 1
