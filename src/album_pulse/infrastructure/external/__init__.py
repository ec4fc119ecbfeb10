"""External service adapters."""

from .postgrest_client import PostgrestClient, eq, order_by

__all__ = ["PostgrestClient", "eq", "order_by"]
