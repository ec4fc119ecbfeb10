"""Command side of CQRS pattern."""

from .base import Command, CommandHandler, CommandBus, CommandResult
from .bookmark_commands import (
    AddBookmarkCommand,
    AddBookmarkHandler,
    RemoveBookmarkCommand,
    RemoveBookmarkHandler,
)
from .catalog_commands import (
    AppendSaleCommand,
    AppendSaleHandler,
    CreateAlbumCommand,
    CreateAlbumHandler,
    CreateArtistCommand,
    CreateArtistHandler,
)

__all__ = [
    "Command",
    "CommandHandler",
    "CommandBus",
    "CommandResult",
    "AddBookmarkCommand",
    "AddBookmarkHandler",
    "RemoveBookmarkCommand",
    "RemoveBookmarkHandler",
    "AppendSaleCommand",
    "AppendSaleHandler",
    "CreateAlbumCommand",
    "CreateAlbumHandler",
    "CreateArtistCommand",
    "CreateArtistHandler",
]
