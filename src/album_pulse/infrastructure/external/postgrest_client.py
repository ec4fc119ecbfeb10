"""
PostgREST Client - transport for the hosted data store.

Speaks the PostgREST dialect served by Supabase-style backends: resource
embedding in ``select`` (``artist:artist_id(id,name)``), ``column=eq.value``
filters and ``order=column.desc``. Every failure, whether HTTP, network or
timeout, is raised as StoreError carrying the store's message.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ...exceptions import StoreError

logger = logging.getLogger(__name__)


def eq(value: Any) -> str:
    """Build an equality filter value."""
    return f"eq.{value}"


def order_by(column: str, ascending: bool = True) -> str:
    return f"{column}.{'asc' if ascending else 'desc'}"


class PostgrestClient:
    """
    Async client for a PostgREST endpoint.

    The aiohttp session is created lazily and reused until ``close``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        schema: str = "public",
        timeout: float = 10
    ):
        """Initialize the client.

        Args:
            base_url: Project URL; ``/rest/v1`` is appended when missing
            api_key: Anonymous (public) API key
            access_token: Optional user JWT for authenticated writes
            schema: Database schema to read and write
            timeout: Request timeout in seconds
        """
        base_url = base_url.rstrip("/")
        if not base_url.endswith("/rest/v1"):
            base_url = f"{base_url}/rest/v1"
        self.base_url = base_url
        self.api_key = api_key
        self.access_token = access_token
        self.schema = schema
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Accept-Profile": self.schema,
            "Content-Profile": self.schema,
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Any] = None,
        prefer: Optional[str] = None
    ) -> Any:
        """Send one request and return the decoded JSON body (or None)."""
        session = await self._get_session()
        url = f"{self.base_url}/{table}"
        logger.debug(f"{method} {url} {params or {}}")

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(prefer),
            ) as response:
                body = await response.text()
                if response.status >= 400:
                    raise self._parse_error(response.status, body)
                if not body:
                    return None
                return json.loads(body)
        except aiohttp.ClientError as e:
            raise StoreError(str(e) or "Network error while contacting the store")
        except asyncio.TimeoutError:
            raise StoreError(f"Store request timed out after {self.timeout}s")
        except json.JSONDecodeError as e:
            raise StoreError(f"Store returned malformed JSON: {e}")

    def _parse_error(self, status: int, body: str) -> StoreError:
        """Build a StoreError from a PostgREST error response."""
        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        message = data.get("message") or body or f"Store responded with HTTP {status}"
        return StoreError(message, code=data.get("code"), status=status)

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        params = {"select": columns}
        if filters:
            params.update(filters)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        rows = await self.request("GET", table, params=params)
        return rows or []

    async def insert(self, table: str, rows: List[Dict[str, Any]], returning: bool = True) -> List[Dict[str, Any]]:
        prefer = "return=representation" if returning else "return=minimal"
        created = await self.request("POST", table, payload=rows, prefer=prefer)
        return created or []

    async def delete(self, table: str, filters: Dict[str, str]) -> None:
        await self.request("DELETE", table, params=filters, prefer="return=minimal")

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "PostgrestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
