"""Album Pulse domain entities.

Artists, albums and sales are append-only records owned by the remote store;
bookmarks are the only entity with a delete path. The derived types at the
bottom of the module (SalesSummary, ChartPoint, BookmarkState) are computed
per request and never persisted.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Optional

from .value_objects import SalesType, parse_date, format_iso_date


@dataclass(frozen=True, slots=True)
class Artist:
    """A performing artist."""

    id: str
    name: str
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Artist":
        return cls(id=str(row["id"]), name=row["name"], image_url=row.get("image_url"))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "image_url": self.image_url}


@dataclass(frozen=True, slots=True)
class Album:
    """A release by exactly one artist."""

    id: str
    title: str
    release_date: date
    artist_id: str
    cover_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Album":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            release_date=parse_date(row["release_date"]),
            artist_id=str(row["artist_id"]),
            cover_url=row.get("cover_url"),
        )


@dataclass(frozen=True, slots=True)
class AlbumWithArtist:
    """Catalog view record: an album joined with its owning artist."""

    id: str
    title: str
    release_date: date
    artist: Artist
    cover_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AlbumWithArtist":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            release_date=parse_date(row["release_date"]),
            artist=Artist.from_row(row["artist"]),
            cover_url=row.get("cover_url"),
        )

    @property
    def artist_name(self) -> str:
        return self.artist.name

    def matches(self, search_text: str) -> bool:
        """Case-insensitive substring match on title or artist name."""
        if not search_text:
            return True
        needle = search_text.lower()
        return needle in self.title.lower() or needle in self.artist.name.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "release_date": format_iso_date(self.release_date),
            "cover_url": self.cover_url,
            "artist": self.artist.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Sale:
    """One recorded sales figure for an album."""

    id: str
    album_id: str
    sales_count: int
    sales_date: date
    sales_type: SalesType

    def __post_init__(self):
        if isinstance(self.sales_count, bool) or not isinstance(self.sales_count, int):
            raise ValueError(f"sales_count must be an integer, got {self.sales_count!r}")
        if self.sales_count < 0:
            raise ValueError(f"sales_count must be non-negative, got {self.sales_count}")

    @classmethod
    def from_row(cls, row: Dict[str, Any], album_id: Optional[str] = None) -> "Sale":
        return cls(
            id=str(row["id"]),
            album_id=str(row.get("album_id") or album_id or ""),
            sales_count=row["sales_count"],
            sales_date=parse_date(row["sales_date"]),
            sales_type=SalesType.parse(row["sales_type"]),
        )


@dataclass(frozen=True, slots=True)
class SaleWithAlbum:
    """Sales table record: a sale joined with its album and artist."""

    sale: Sale
    album: AlbumWithArtist

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SaleWithAlbum":
        album_row = row["album"]
        album = AlbumWithArtist(
            id=str(album_row["id"]),
            title=album_row["title"],
            release_date=parse_date(album_row.get("release_date") or date.min),
            artist=Artist.from_row(album_row["artist"]),
            cover_url=album_row.get("cover_url"),
        )
        return cls(sale=Sale.from_row(row, album_id=album.id), album=album)

    def matches(self, search_text: str) -> bool:
        return self.album.matches(search_text)


@dataclass(frozen=True, slots=True)
class Bookmark:
    """A user's saved-album marker."""

    id: str
    album_id: str
    user_id: str

    @classmethod
    def from_row(cls, row: Dict[str, Any], album_id: str = "", user_id: str = "") -> "Bookmark":
        return cls(
            id=str(row["id"]),
            album_id=str(row.get("album_id") or album_id),
            user_id=str(row.get("user_id") or user_id),
        )


@dataclass(frozen=True, slots=True)
class SalesSummary:
    """Totals by sales category for one album.

    ``total`` is derived from the four buckets so it can never disagree
    with them.
    """

    first_day: int = 0
    first_week: int = 0
    first_month: int = 0
    beyond: int = 0

    @property
    def total(self) -> int:
        return self.first_day + self.first_week + self.first_month + self.beyond

    def add(self, sales_type: SalesType, count: int) -> "SalesSummary":
        """Return a new summary with ``count`` added to the matching bucket."""
        if not isinstance(sales_type, SalesType):
            sales_type = SalesType.parse(sales_type)
        bucket = sales_type.value
        return replace(self, **{bucket: getattr(self, bucket) + count})

    def to_dict(self) -> Dict[str, int]:
        return {
            "first_day": self.first_day,
            "first_week": self.first_week,
            "first_month": self.first_month,
            "beyond": self.beyond,
            "total": self.total,
        }


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """One point of the sales-over-time chart."""

    date: str
    count: int
    display_type: str
    sales_date: date = field(repr=False, compare=False, default=date.min)


@dataclass(frozen=True, slots=True)
class BookmarkState:
    """Resolved bookmark state for an (album, user) pair."""

    album_id: str
    user_id: Optional[str]
    bookmark: Optional[Bookmark] = None

    @property
    def is_bookmarked(self) -> bool:
        return self.bookmark is not None
