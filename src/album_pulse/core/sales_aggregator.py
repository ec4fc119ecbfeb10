"""Per-album sales aggregation: chart series and totals by category."""

import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Iterable, Iterator, List

from ..application.queries import GetAlbumSalesQuery, QueryBus
from ..domain.entities import ChartPoint, Sale, SalesSummary
from ..domain.value_objects import SalesType, format_iso_date
from ..exceptions import SalesTypeError

logger = logging.getLogger(__name__)

CHART_DATE_FORMAT = "%m/%d"


@dataclass(frozen=True)
class SalesRow:
    """One row of the detailed sales tab."""

    sale_id: str
    date: str
    sales_type: str
    count: int


@dataclass(frozen=True)
class AlbumSales:
    """Everything the detail view derives from one album's sales."""

    album_id: str
    sales: List[Sale] = field(default_factory=list)
    summary: SalesSummary = field(default_factory=SalesSummary)

    @property
    def chart(self) -> List[ChartPoint]:
        return list(SalesAggregator.chart_points(self.sales))

    @property
    def rows(self) -> List[SalesRow]:
        return [
            SalesRow(
                sale_id=sale.id,
                date=format_iso_date(sale.sales_date),
                sales_type=sale.sales_type.label,
                count=sale.sales_count,
            )
            for sale in sorted(self.sales, key=lambda s: s.sales_date)
        ]

    @property
    def has_sales(self) -> bool:
        return bool(self.sales)


class SalesAggregator:
    """Turns an album's sale rows into chart points and a category summary.

    Both derivations accept rows in any order: the chart is explicitly
    sorted by date, and the summary is a commutative fold.
    """

    def __init__(self, query_bus: QueryBus):
        self.query_bus = query_bus

    async def fetch(self, album_id: str) -> List[Sale]:
        """Fetch an album's sale rows, ascending by date."""
        result = await self.query_bus.dispatch(GetAlbumSalesQuery(album_id=album_id))
        return result.unwrap()

    async def aggregate(self, album_id: str) -> AlbumSales:
        """Fetch once and derive both the chart and the summary from it."""
        sales = await self.fetch(album_id)
        summary = self.summarize(sales)
        logger.debug(f"Aggregated {len(sales)} sales for album {album_id}: total {summary.total}")
        return AlbumSales(album_id=album_id, sales=list(sales), summary=summary)

    @staticmethod
    def chart_points(sales: Iterable[Sale]) -> Iterator[ChartPoint]:
        """Lazily yield one chart point per sale row, oldest first."""
        for sale in sorted(sales, key=lambda s: s.sales_date):
            yield ChartPoint(
                date=sale.sales_date.strftime(CHART_DATE_FORMAT),
                count=sale.sales_count,
                display_type=sale.sales_type.display_name,
                sales_date=sale.sales_date,
            )

    @staticmethod
    def summarize(sales: Iterable[Sale]) -> SalesSummary:
        """Sum sales counts per category."""
        return reduce(_add_sale, sales, SalesSummary())


def _add_sale(summary: SalesSummary, sale: Sale) -> SalesSummary:
    if not isinstance(sale.sales_type, SalesType):
        raise SalesTypeError(f"Unrecognized sales type {sale.sales_type!r} on sale {sale.id}")
    return summary.add(sale.sales_type, sale.sales_count)
