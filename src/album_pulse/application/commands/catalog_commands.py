"""Entry-creation commands: artists, albums and sales.

The three writes are independent and non-transactional; a failed sale
submission never rolls back the album or artist created before it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .base import Command, CommandHandler, CommandResult
from .validation import (
    parse_sales_count,
    require_date,
    require_identity,
    require_sales_type,
    require_text,
)
from ..events import EventBus, album_created, artist_created, sale_appended
from ...domain.repositories import AlbumRepository, ArtistRepository, SaleRepository
from ...domain.value_objects import SalesType, format_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateArtistCommand(Command):
    """Command to add a new artist."""

    name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateAlbumCommand(Command):
    """Command to add a new album under an existing artist."""

    title: str
    artist_id: Optional[str]
    release_date: Union[date, str, None]


@dataclass(frozen=True, slots=True, kw_only=True)
class AppendSaleCommand(Command):
    """Command to append a sales record to an album."""

    album_id: Optional[str]
    sales_count: Union[int, str, None]
    sales_date: Union[date, str, None]
    sales_type: Union[SalesType, str, None] = SalesType.FIRST_DAY


class CreateArtistHandler(CommandHandler[CreateArtistCommand, CommandResult]):
    """Handler for creating artists."""

    def __init__(self, artist_repo: ArtistRepository, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.artist_repo = artist_repo

    async def handle(self, command: CreateArtistCommand) -> CommandResult:
        require_identity(command.identity)
        name = require_text("name", command.name, "Artist name")

        artist = await self.artist_repo.insert(name)
        logger.info(f"Created artist {artist.id} ({artist.name})")

        event = artist_created(artist.id, artist.name)
        await self.publish([event])
        return CommandResult(
            success=True,
            command_id=command.command_id,
            message="Artist created successfully",
            result_data={"artist_id": artist.id, "artist": artist},
            events=[event],
        )

    def can_handle(self, command_type: type) -> bool:
        return command_type == CreateArtistCommand


class CreateAlbumHandler(CommandHandler[CreateAlbumCommand, CommandResult]):
    """Handler for creating albums."""

    def __init__(self, album_repo: AlbumRepository, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.album_repo = album_repo

    async def handle(self, command: CreateAlbumCommand) -> CommandResult:
        require_identity(command.identity)
        title = require_text("title", command.title, "Album title")
        artist_id = require_text("artist_id", command.artist_id, "Artist")
        release_date = require_date("release_date", command.release_date, "Release date")

        album = await self.album_repo.insert(title, artist_id, release_date)
        logger.info(f"Created album {album.id} ({album.title}) released {format_iso_date(release_date)}")

        event = album_created(album.id, artist_id, title)
        await self.publish([event])
        return CommandResult(
            success=True,
            command_id=command.command_id,
            message="Album created successfully",
            result_data={"album_id": album.id, "album": album},
            events=[event],
        )

    def can_handle(self, command_type: type) -> bool:
        return command_type == CreateAlbumCommand


class AppendSaleHandler(CommandHandler[AppendSaleCommand, CommandResult]):
    """Handler for appending sales records."""

    def __init__(self, sale_repo: SaleRepository, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.sale_repo = sale_repo

    async def handle(self, command: AppendSaleCommand) -> CommandResult:
        require_identity(command.identity)
        album_id = require_text("album_id", command.album_id, "Album")
        sales_count = parse_sales_count(command.sales_count)
        sales_date = require_date("sales_date", command.sales_date, "Sales date")
        sales_type = require_sales_type(command.sales_type)

        await self.sale_repo.insert(album_id, sales_count, sales_date, sales_type)
        logger.info(f"Appended {sales_count} {sales_type.value} sales to album {album_id}")

        event = sale_appended(album_id, sales_type.value, sales_count)
        await self.publish([event])
        return CommandResult(
            success=True,
            command_id=command.command_id,
            message="Sales data submitted successfully",
            result_data={"album_id": album_id, "sales_count": sales_count},
            events=[event],
        )

    def can_handle(self, command_type: type) -> bool:
        return command_type == AppendSaleCommand
