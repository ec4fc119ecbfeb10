"""Bookmark state resolution and toggling."""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from ..application.commands import AddBookmarkCommand, CommandBus, RemoveBookmarkCommand
from ..application.queries import GetBookmarkQuery, QueryBus
from ..domain.entities import BookmarkState
from ..domain.value_objects import Identity
from ..exceptions import AuthenticationRequired

logger = logging.getLogger(__name__)


class BookmarkResolver:
    """Resolves and toggles the bookmark of an (album, user) pair.

    Toggling reads the current state straight from the store, writes, and
    reads again; the returned state is never assumed from the write. A
    toggle requested while another one for the same pair is running joins
    the running toggle, so a double click cannot issue two inserts.
    """

    def __init__(self, query_bus: QueryBus, command_bus: CommandBus):
        self.query_bus = query_bus
        self.command_bus = command_bus
        self._in_flight: Dict[Tuple[str, str], asyncio.Future] = {}

    async def resolve(self, album_id: str, identity: Optional[Identity],
                      fresh: bool = False) -> BookmarkState:
        """Resolve the bookmark state; without an identity nothing is fetched."""
        if identity is None:
            return BookmarkState(album_id=album_id, user_id=None)
        query = GetBookmarkQuery(album_id=album_id, user_id=identity.user_id, bypass_cache=fresh)
        result = await self.query_bus.dispatch(query)
        return BookmarkState(album_id=album_id, user_id=identity.user_id, bookmark=result.unwrap())

    def is_toggling(self, album_id: str, identity: Optional[Identity]) -> bool:
        if identity is None:
            return False
        return (album_id, identity.user_id) in self._in_flight

    async def toggle(self, album_id: str, identity: Optional[Identity]) -> BookmarkState:
        """Flip the bookmark state and return the state re-read from the store.

        Raises:
            AuthenticationRequired: no identity; nothing is written.
            WriteFailed: the store rejected the insert or delete.
        """
        if identity is None:
            raise AuthenticationRequired("Please sign in to bookmark albums")

        key = (album_id, identity.user_id)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._toggle(album_id, identity))
            self._in_flight[key] = task

            def _release(done: asyncio.Future) -> None:
                if self._in_flight.get(key) is done:
                    del self._in_flight[key]

            task.add_done_callback(_release)
        else:
            logger.debug(f"Toggle already in flight for album {album_id}, joining it")
        return await asyncio.shield(task)

    async def _toggle(self, album_id: str, identity: Identity) -> BookmarkState:
        current = await self.resolve(album_id, identity, fresh=True)
        if current.is_bookmarked:
            command = RemoveBookmarkCommand(
                identity=identity, album_id=album_id, bookmark_id=current.bookmark.id
            )
        else:
            command = AddBookmarkCommand(identity=identity, album_id=album_id)

        result = await self.command_bus.dispatch(command)
        result.raise_for_error()
        return await self.resolve(album_id, identity, fresh=True)
