"""Bookmark-related queries."""

from dataclasses import dataclass
from typing import Optional

from .base import Query, QueryHandler
from ...domain.entities import Bookmark
from ...domain.repositories import BookmarkRepository


@dataclass(frozen=True, slots=True, kw_only=True)
class GetBookmarkQuery(Query):
    """Query to get the bookmark for an (album, user) pair."""

    album_id: str
    user_id: str


class GetBookmarkHandler(QueryHandler[GetBookmarkQuery, Optional[Bookmark]]):
    """Handler for looking up a bookmark; absence is a valid answer."""

    def __init__(self, bookmark_repo: BookmarkRepository):
        self.bookmark_repo = bookmark_repo

    async def handle(self, query: GetBookmarkQuery) -> Optional[Bookmark]:
        return await self.bookmark_repo.find(query.album_id, query.user_id)

    def can_handle(self, query_type: type) -> bool:
        return query_type == GetBookmarkQuery
