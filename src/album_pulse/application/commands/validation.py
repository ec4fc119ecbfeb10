"""Validation gates applied to entry-creation commands before any write."""

from datetime import date, datetime
from typing import Optional, Union

from ...domain.value_objects import Identity, SalesType, parse_date
from ...exceptions import AuthenticationRequired, SalesTypeError, ValidationError


def require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthenticationRequired()
    return identity


def require_text(field: str, value: Optional[str], label: Optional[str] = None) -> str:
    """Return ``value`` trimmed, or raise if nothing is left."""
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(field, f"{label or field.replace('_', ' ').capitalize()} is required")
    return text


def require_date(field: str, value: Union[date, datetime, str, None], label: Optional[str] = None) -> date:
    label = label or field.replace("_", " ").capitalize()
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, f"{label} is required")
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(field, f"{label} must be a date in yyyy-MM-dd form")


def parse_sales_count(value: Union[int, str, None], field: str = "sales_count") -> int:
    """Parse a non-negative integer sales count."""
    if value is None or isinstance(value, bool):
        raise ValidationError(field, "Sales count is required")
    if isinstance(value, int):
        count = value
    else:
        text = str(value).strip()
        if not text:
            raise ValidationError(field, "Sales count is required")
        try:
            count = int(text)
        except ValueError:
            raise ValidationError(field, f"Sales count must be a whole number, got {text!r}")
    if count < 0:
        raise ValidationError(field, "Sales count cannot be negative")
    return count


def require_sales_type(value: Union[SalesType, str, None], field: str = "sales_type") -> SalesType:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, "Sales type is required")
    try:
        return SalesType.parse(value)
    except SalesTypeError as e:
        raise ValidationError(field, str(e))
