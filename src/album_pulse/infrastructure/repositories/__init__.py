"""Repository implementations for the four entity collections."""

from dataclasses import dataclass
from typing import Optional

from .memory import (
    InMemoryAlbumRepository,
    InMemoryArtistRepository,
    InMemoryBookmarkRepository,
    InMemorySaleRepository,
    InMemoryStore,
)
from .postgrest import (
    PostgrestAlbumRepository,
    PostgrestArtistRepository,
    PostgrestBookmarkRepository,
    PostgrestSaleRepository,
)
from ..external.postgrest_client import PostgrestClient
from ...domain.repositories import (
    AlbumRepository,
    ArtistRepository,
    BookmarkRepository,
    SaleRepository,
)


@dataclass
class Repositories:
    """The repository client: one repository per entity collection."""

    artists: ArtistRepository
    albums: AlbumRepository
    sales: SaleRepository
    bookmarks: BookmarkRepository
    client: Optional[PostgrestClient] = None

    @classmethod
    def in_memory(cls, store: Optional[InMemoryStore] = None) -> "Repositories":
        store = store or InMemoryStore()
        return cls(
            artists=InMemoryArtistRepository(store),
            albums=InMemoryAlbumRepository(store),
            sales=InMemorySaleRepository(store),
            bookmarks=InMemoryBookmarkRepository(store),
        )

    @classmethod
    def postgrest(cls, client: PostgrestClient) -> "Repositories":
        return cls(
            artists=PostgrestArtistRepository(client),
            albums=PostgrestAlbumRepository(client),
            sales=PostgrestSaleRepository(client),
            bookmarks=PostgrestBookmarkRepository(client),
            client=client,
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


__all__ = [
    "Repositories",
    "InMemoryStore",
    "InMemoryAlbumRepository",
    "InMemoryArtistRepository",
    "InMemoryBookmarkRepository",
    "InMemorySaleRepository",
    "PostgrestAlbumRepository",
    "PostgrestArtistRepository",
    "PostgrestBookmarkRepository",
    "PostgrestSaleRepository",
]
