"""Command line interface for album pulse."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .core.app import AlbumPulseApp, build_app_from_config
from .core.catalog_query_builder import CatalogFilters
from .core.orchestrators import AlbumDetailView
from .domain.value_objects import (
    DetailTab,
    Identity,
    SalesPeriodFilter,
    SalesType,
    SortMode,
)
from .exceptions import AlbumPulseError, ValidationError
from .models.config import Config, apply_env_overrides, create_default_config, load_config

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")

SORT_CHOICES = [mode.value for mode in SortMode]
PERIOD_CHOICES = [period.value for period in SalesPeriodFilter]
SALES_TYPE_CHOICES = [sales_type.value for sales_type in SalesType]
TAB_CHOICES = [tab.value for tab in DetailTab]


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def identity_from_config(cfg: Config) -> Optional[Identity]:
    """The signed-in user, or None when no user id is configured."""
    user_id = cfg.identity.user_id
    if not user_id or not user_id.strip():
        return None
    return Identity(user_id=user_id.strip())


def run_with_app(cfg: Config, action: Callable[[AlbumPulseApp], Awaitable[T]]) -> T:
    """Build the app, run ``action`` against it and close the store session."""

    async def _run() -> T:
        async with build_app_from_config(cfg) as app:
            return await action(app)

    try:
        return asyncio.run(_run())
    except ValidationError as e:
        console.print(f"[red]{e.field}: {e.message}[/red]")
        sys.exit(1)
    except AlbumPulseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(package_name="album-pulse")
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, path_type=Path),
    help='Configuration file path'
)
@click.option('--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Browse K-Pop albums, their sales and your bookmarks."""
    try:
        cfg = load_config(config_path) if config_path else Config()
        cfg = apply_env_overrides(cfg)
    except AlbumPulseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    setup_logging("DEBUG" if verbose else cfg.log_level.upper())
    ctx.obj = cfg


@cli.command('init-config')
@click.argument('path', type=click.Path(path_type=Path))
def init_config(path: Path):
    """Write a default configuration file to PATH."""
    if path.exists():
        console.print(f"[yellow]{path} already exists, not overwriting[/yellow]")
        sys.exit(1)
    create_default_config(path)
    console.print(f"[green]Wrote default configuration to {path}[/green]")


@cli.command()
@click.option('--sort', 'sort_mode', type=click.Choice(SORT_CHOICES), default=SortMode.NEWEST.value,
              show_default=True, help='Catalog ordering')
@click.option('--period', type=click.Choice(PERIOD_CHOICES), default=SalesPeriodFilter.ALL.value,
              show_default=True, help='Sales period filter')
@click.option('--search', default='', help='Filter by album title or artist name')
@click.pass_obj
def catalog(cfg: Config, sort_mode: str, period: str, search: str):
    """List albums in the catalog."""

    async def action(app: AlbumPulseApp):
        return await app.catalog.browse(CatalogFilters.parse(sort_mode, period, search))

    view = run_with_app(cfg, action)
    if view.is_empty:
        console.print("[yellow]No albums found[/yellow]")
        return

    table = Table(title=f"Albums ({len(view.albums)} of {view.fetched_count})")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Artist")
    table.add_column("Released", justify="right")
    for album in view.albums:
        table.add_row(album.id, album.title, album.artist_name, album.release_date.isoformat())
    console.print(table)


def _render_detail(view: AlbumDetailView) -> None:
    album = view.album
    bookmark = "★ Bookmarked" if view.is_bookmarked else "☆ Not bookmarked"
    console.print(Panel(
        f"[bold]{album.title}[/bold]\n{album.artist_name}\nReleased {view.released}\n{bookmark}",
        title="Album",
    ))

    cards = Table(title="Sales Summary")
    for label, _ in view.stat_cards:
        cards.add_column(label, justify="right")
    cards.add_row(*(f"{count:,}" for _, count in view.stat_cards))
    console.print(cards)

    if not view.sales.has_sales:
        console.print("[yellow]No sales data available[/yellow]")
        return

    if view.tab is DetailTab.OVERVIEW:
        chart = Table(title="Sales Over Time")
        chart.add_column("Date")
        chart.add_column("Sales", justify="right")
        chart.add_column("Type")
        for point in view.chart:
            chart.add_row(point.date, f"{point.count:,}", point.display_type)
        console.print(chart)
    else:
        rows = Table(title="Detailed Sales")
        rows.add_column("Date")
        rows.add_column("Type")
        rows.add_column("Sales", justify="right")
        for row in view.rows:
            rows.add_row(row.date, row.sales_type, f"{row.count:,}")
        console.print(rows)


@cli.command()
@click.argument('album_id')
@click.option('--tab', type=click.Choice(TAB_CHOICES), default=DetailTab.OVERVIEW.value,
              show_default=True, help='Detail tab to show')
@click.pass_obj
def album(cfg: Config, album_id: str, tab: str):
    """Show album ALBUM_ID with its sales and bookmark state."""
    identity = identity_from_config(cfg)

    async def action(app: AlbumPulseApp):
        return await app.detail.load(album_id, identity, tab=tab)

    _render_detail(run_with_app(cfg, action))


@cli.command()
@click.option('--type', 'sales_type', type=click.Choice(PERIOD_CHOICES),
              default=SalesPeriodFilter.ALL.value, show_default=True, help='Sales type filter')
@click.option('--search', default='', help='Filter by album title or artist name')
@click.pass_obj
def sales(cfg: Config, sales_type: str, search: str):
    """List all submitted sales."""

    async def action(app: AlbumPulseApp):
        return await app.catalog.sales_table(sales_type, search)

    view = run_with_app(cfg, action)
    if view.is_empty:
        console.print("[yellow]No sales found[/yellow]")
        return

    table = Table(title="Sales")
    table.add_column("Album", style="cyan")
    table.add_column("Artist")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Sales", justify="right")
    for record in view.records:
        sale = record.sale
        table.add_row(
            record.album.title,
            record.album.artist_name,
            sale.sales_date.isoformat(),
            sale.sales_type.label,
            f"{sale.sales_count:,}",
        )
    console.print(table)


@cli.command()
@click.pass_obj
def artists(cfg: Config):
    """List artists by name."""

    async def action(app: AlbumPulseApp):
        return await app.catalog.artists()

    found = run_with_app(cfg, action)
    if not found:
        console.print("[yellow]No artists found[/yellow]")
        return

    table = Table(title="Artists")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for artist in found:
        table.add_row(artist.id, artist.name)
    console.print(table)


@cli.command('albums-by')
@click.argument('artist_id')
@click.pass_obj
def albums_by(cfg: Config, artist_id: str):
    """List albums of ARTIST_ID by title."""

    async def action(app: AlbumPulseApp):
        return await app.catalog.albums_by_artist(artist_id)

    found = run_with_app(cfg, action)
    if not found:
        console.print("[yellow]No albums found[/yellow]")
        return

    table = Table(title="Albums")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Released", justify="right")
    for item in found:
        table.add_row(item.id, item.title, item.release_date.isoformat())
    console.print(table)


@cli.command('add-artist')
@click.argument('name')
@click.pass_obj
def add_artist(cfg: Config, name: str):
    """Create an artist called NAME."""
    identity = identity_from_config(cfg)

    async def action(app: AlbumPulseApp):
        return await app.entries.create_artist(name, identity)

    artist = run_with_app(cfg, action)
    console.print(f"[green]Artist created successfully[/green] ({artist.id})")


@cli.command('add-album')
@click.argument('title')
@click.option('--artist', 'artist_id', required=True, help='Artist id')
@click.option('--released', required=True, help='Release date (YYYY-MM-DD)')
@click.pass_obj
def add_album(cfg: Config, title: str, artist_id: str, released: str):
    """Create an album called TITLE."""
    identity = identity_from_config(cfg)

    async def action(app: AlbumPulseApp):
        return await app.entries.create_album(title, artist_id, released, identity)

    created = run_with_app(cfg, action)
    console.print(f"[green]Album created successfully[/green] ({created.id})")


@cli.command('add-sale')
@click.argument('album_id')
@click.argument('count')
@click.option('--date', 'sales_date', required=True, help='Sales date (YYYY-MM-DD)')
@click.option('--type', 'sales_type', type=click.Choice(SALES_TYPE_CHOICES),
              default=SalesType.FIRST_DAY.value, show_default=True, help='Sales period')
@click.pass_obj
def add_sale(cfg: Config, album_id: str, count: str, sales_date: str, sales_type: str):
    """Append COUNT sales to ALBUM_ID."""
    identity = identity_from_config(cfg)

    async def action(app: AlbumPulseApp):
        await app.entries.append_sale(album_id, count, sales_date, sales_type, identity)

    run_with_app(cfg, action)
    console.print("[green]Sales data submitted successfully[/green]")


@cli.command()
@click.argument('album_id')
@click.pass_obj
def bookmark(cfg: Config, album_id: str):
    """Toggle the bookmark on ALBUM_ID."""
    identity = identity_from_config(cfg)

    async def action(app: AlbumPulseApp):
        return await app.detail.toggle_bookmark(album_id, identity)

    state = run_with_app(cfg, action)
    if state.is_bookmarked:
        console.print("[green]★ Bookmarked[/green]")
    else:
        console.print("[yellow]☆ Bookmark removed[/yellow]")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
