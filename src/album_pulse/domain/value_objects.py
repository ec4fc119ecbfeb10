"""
Domain value objects for Album Pulse.

Value objects are immutable and defined by their attributes. The sales
categories form a closed set: anything outside it is rejected where records
enter the domain, so consumers never see an unknown category.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from ..exceptions import SalesTypeError


class SalesType(Enum):
    """Sales period category of a single sale row."""
    FIRST_DAY = "first_day"
    FIRST_WEEK = "first_week"
    FIRST_MONTH = "first_month"
    BEYOND = "beyond"

    @classmethod
    def parse(cls, value: Union[str, "SalesType"]) -> "SalesType":
        """Parse a raw store value, rejecting anything outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise SalesTypeError(f"Unrecognized sales type: {value!r}")

    @property
    def display_name(self) -> str:
        """Human-readable label, e.g. ``First Day``."""
        return " ".join(word.capitalize() for word in self.value.split("_"))

    @property
    def label(self) -> str:
        """Lower-case label used in tabular listings, e.g. ``first day``."""
        return self.value.replace("_", " ")


class SortMode(Enum):
    """Catalog ordering selected by the visitor."""
    NEWEST = "newest"
    # No popularity metric is defined; trending applies no remote ordering.
    TRENDING = "trending"


class SalesPeriodFilter(Enum):
    """Sales period filter; ``ALL`` disables filtering."""
    ALL = "all"
    FIRST_DAY = "first_day"
    FIRST_WEEK = "first_week"
    FIRST_MONTH = "first_month"
    BEYOND = "beyond"

    @property
    def sales_type(self) -> Optional[SalesType]:
        """The sales type this filter selects, or None for ``ALL``."""
        if self is SalesPeriodFilter.ALL:
            return None
        return SalesType(self.value)


class DetailTab(Enum):
    """Tabs of the album detail view."""
    OVERVIEW = "overview"
    SALES = "sales"


@dataclass(frozen=True, slots=True)
class Identity:
    """The authenticated user, as supplied by the identity collaborator."""

    user_id: str

    def __post_init__(self):
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("Identity requires a user id")


def parse_date(value: Union[str, date, datetime]) -> date:
    """Parse an ISO ``yyyy-MM-dd`` value (or timestamp) into a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # Timestamps from the store carry a time part; only the date matters here.
    return date.fromisoformat(text[:10])


def format_iso_date(value: date) -> str:
    """Format a date the way the store expects it."""
    return value.strftime("%Y-%m-%d")
