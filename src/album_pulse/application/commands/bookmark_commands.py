"""Bookmark write commands."""

import logging
from dataclasses import dataclass
from typing import Optional

from .base import Command, CommandHandler, CommandResult
from .validation import require_identity, require_text
from ..events import EventBus, bookmark_added, bookmark_removed
from ...domain.repositories import BookmarkRepository
from ...exceptions import DuplicateRowError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class AddBookmarkCommand(Command):
    """Command to bookmark an album for the command's identity."""

    album_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoveBookmarkCommand(Command):
    """Command to remove a bookmark row by id."""

    album_id: str
    bookmark_id: str


class AddBookmarkHandler(CommandHandler[AddBookmarkCommand, CommandResult]):
    """Handler for inserting bookmarks.

    A uniqueness violation from the store means the pair is already
    bookmarked, which is the state the caller asked for.
    """

    def __init__(self, bookmark_repo: BookmarkRepository, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.bookmark_repo = bookmark_repo

    async def handle(self, command: AddBookmarkCommand) -> CommandResult:
        identity = require_identity(command.identity)
        album_id = require_text("album_id", command.album_id, "Album")

        bookmark_id = None
        already_bookmarked = False
        try:
            bookmark = await self.bookmark_repo.insert(album_id, identity.user_id)
            bookmark_id = bookmark.id
            logger.info(f"Bookmarked album {album_id} for user {identity.user_id}")
        except DuplicateRowError:
            already_bookmarked = True
            logger.info(f"Album {album_id} already bookmarked for user {identity.user_id}")

        event = bookmark_added(album_id, identity.user_id, bookmark_id)
        await self.publish([event])
        return CommandResult(
            success=True,
            command_id=command.command_id,
            message="Album added to your bookmarks",
            result_data={"bookmark_id": bookmark_id, "already_bookmarked": already_bookmarked},
            events=[event],
        )

    def can_handle(self, command_type: type) -> bool:
        return command_type == AddBookmarkCommand


class RemoveBookmarkHandler(CommandHandler[RemoveBookmarkCommand, CommandResult]):
    """Handler for deleting bookmarks."""

    def __init__(self, bookmark_repo: BookmarkRepository, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.bookmark_repo = bookmark_repo

    async def handle(self, command: RemoveBookmarkCommand) -> CommandResult:
        identity = require_identity(command.identity)

        await self.bookmark_repo.delete(command.bookmark_id)
        logger.info(f"Removed bookmark {command.bookmark_id} for user {identity.user_id}")

        event = bookmark_removed(command.album_id, identity.user_id, command.bookmark_id)
        await self.publish([event])
        return CommandResult(
            success=True,
            command_id=command.command_id,
            message="Album removed from your bookmarks",
            result_data={"bookmark_id": command.bookmark_id},
            events=[event],
        )

    def can_handle(self, command_type: type) -> bool:
        return command_type == RemoveBookmarkCommand
