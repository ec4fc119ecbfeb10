"""Sales-related queries."""

from dataclasses import dataclass
from typing import List

from .base import Query, QueryHandler
from ...domain.entities import Sale, SaleWithAlbum
from ...domain.repositories import SaleRepository
from ...domain.value_objects import SalesPeriodFilter


@dataclass(frozen=True, slots=True, kw_only=True)
class GetAlbumSalesQuery(Query):
    """Query to get one album's sales in ascending date order."""

    album_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ListSalesQuery(Query):
    """Query to list all sales, optionally restricted to one sales period."""

    sales_type: SalesPeriodFilter = SalesPeriodFilter.ALL


class GetAlbumSalesHandler(QueryHandler[GetAlbumSalesQuery, List[Sale]]):
    """Handler for fetching the sales rows of one album."""

    def __init__(self, sale_repo: SaleRepository):
        self.sale_repo = sale_repo

    async def handle(self, query: GetAlbumSalesQuery) -> List[Sale]:
        """Handle the get album sales query."""
        return await self.sale_repo.list_for_album(query.album_id, ascending=True)

    def can_handle(self, query_type: type) -> bool:
        """Check if this handler can handle the given query type."""
        return query_type == GetAlbumSalesQuery


class ListSalesHandler(QueryHandler[ListSalesQuery, List[SaleWithAlbum]]):
    """Handler for the sales table listing.

    Unlike the catalog listing, the period filter here constrains the
    remote request.
    """

    def __init__(self, sale_repo: SaleRepository):
        self.sale_repo = sale_repo

    async def handle(self, query: ListSalesQuery) -> List[SaleWithAlbum]:
        return await self.sale_repo.list_all(sales_type=query.sales_type.sales_type)

    def can_handle(self, query_type: type) -> bool:
        return query_type == ListSalesQuery
