"""Base classes for CQRS query pattern."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union
from uuid import uuid4

from ...exceptions import AlbumPulseError, FetchFailed

logger = logging.getLogger(__name__)

# Type variables for generic query handling
Q = TypeVar("Q", bound="Query")
R = TypeVar("R")

_BASE_FIELDS = frozenset({"query_id", "timestamp", "cache_key", "cache_ttl_seconds", "bypass_cache"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Query:
    """Base query class with metadata."""

    query_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)
    cache_key: Optional[str] = None
    cache_ttl_seconds: int = 300  # 5 minutes default cache
    bypass_cache: bool = False

    def parameters(self) -> Dict[str, Any]:
        """The input parameters that determine this query's result."""
        params = {}
        for f in fields(self):
            if f.name in _BASE_FIELDS:
                continue
            value = getattr(self, f.name)
            params[f.name] = value.value if isinstance(value, Enum) else value
        return params

    def to_dict(self) -> Dict[str, Any]:
        """Convert query to dictionary for serialization."""
        return {
            "query_id": self.query_id,
            "query_type": self.__class__.__name__,
            "timestamp": self.timestamp.isoformat(),
            "cache_key": self.cache_key,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            **self.parameters(),
        }


class QueryHandler(ABC, Generic[Q, R]):
    """Abstract base class for query handlers."""

    @abstractmethod
    async def handle(self, query: Q) -> R:
        """Handle the query and return results."""
        pass

    @abstractmethod
    def can_handle(self, query_type: type) -> bool:
        """Check if this handler can handle the given query type."""
        pass

    def get_cache_key(self, query: Q) -> Optional[str]:
        """Generate a cache key from the query type and its exact parameters."""
        if query.cache_key:
            return query.cache_key
        return make_cache_key(type(query).__name__, query.parameters())


def make_cache_key(query_type: str, params: Dict[str, Any]) -> str:
    parts = [query_type] + [f"{name}={params[name]}" for name in sorted(params)]
    return "|".join(parts)


@dataclass(frozen=True, slots=True)
class QueryResult(Generic[R]):
    """Result wrapper for query responses."""

    data: Optional[R] = None
    success: bool = True
    query_id: str = ""
    message: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None
    from_cache: bool = False
    execution_time_ms: Optional[float] = None
    cached_at: Optional[datetime] = None

    def unwrap(self) -> R:
        """Return the data, re-raising the failure for callers that propagate."""
        if not self.success:
            if self.error is not None:
                raise self.error
            raise FetchFailed("; ".join(self.errors) or "Query failed")
        return self.data


class QueryBus:
    """Mediates queries to appropriate handlers with caching support.

    Identical queries issued while one is still running share its result
    instead of reaching the store twice.
    """

    def __init__(self):
        self._handlers: Dict[type, QueryHandler] = {}
        self._cache: Optional[QueryCache] = None
        self._in_flight: Dict[str, Tuple[asyncio.Future, int]] = {}

    def register(self, query_type: type, handler: QueryHandler) -> None:
        """Register a handler for a query type."""
        self._handlers[query_type] = handler

    def set_cache(self, cache: "QueryCache") -> None:
        """Set the query cache implementation."""
        self._cache = cache

    @property
    def cache(self) -> Optional["QueryCache"]:
        return self._cache

    async def dispatch(self, query: "Query") -> QueryResult:
        """Dispatch a query to its registered handler."""
        query_type = type(query)
        start_time = _utcnow()

        if query_type not in self._handlers:
            message = f"No handler registered for query type: {query_type.__name__}"
            return QueryResult(
                success=False,
                query_id=query.query_id,
                errors=[message],
                error=AlbumPulseError(message),
            )

        handler = self._handlers[query_type]
        cache_key = None if query.bypass_cache else handler.get_cache_key(query)

        # Check cache first
        if self._cache and cache_key:
            cached_entry = await self._cache.get(cache_key)
            if cached_entry:
                logger.debug(f"Cache hit for {cache_key}")
                return QueryResult(
                    data=cached_entry.data,
                    query_id=query.query_id,
                    from_cache=True,
                    cached_at=cached_entry.timestamp,
                    execution_time_ms=self._elapsed_ms(start_time),
                )
            logger.debug(f"Cache miss for {cache_key}")

        version = self._cache.version if self._cache else 0
        task = self._join_in_flight(cache_key, version)
        if task is None:
            task = asyncio.ensure_future(handler.handle(query))
            if cache_key:
                self._track_in_flight(cache_key, task, version)

        try:
            result_data = await asyncio.shield(task)
        except AlbumPulseError as e:
            return self._failure(query, e, start_time)
        except Exception as e:
            logger.debug(f"Unexpected error handling {query_type.__name__}: {e}")
            return self._failure(query, FetchFailed(str(e)), start_time)

        # Results fetched before an invalidation are not cached
        if self._cache and cache_key:
            await self._cache.set(
                cache_key,
                result_data,
                ttl_seconds=query.cache_ttl_seconds,
                if_version=version,
            )

        return QueryResult(
            data=result_data,
            success=True,
            query_id=query.query_id,
            execution_time_ms=self._elapsed_ms(start_time),
        )

    def _join_in_flight(self, cache_key: Optional[str], version: int) -> Optional[asyncio.Future]:
        if not cache_key:
            return None
        running = self._in_flight.get(cache_key)
        if running and running[1] == version and not running[0].done():
            logger.debug(f"Joining in-flight request for {cache_key}")
            return running[0]
        return None

    def _track_in_flight(self, cache_key: str, task: asyncio.Future, version: int) -> None:
        self._in_flight[cache_key] = (task, version)

        def _release(done: asyncio.Future) -> None:
            current = self._in_flight.get(cache_key)
            if current and current[0] is done:
                del self._in_flight[cache_key]

        task.add_done_callback(_release)

    def _failure(self, query: "Query", error: AlbumPulseError, start_time: datetime) -> QueryResult:
        return QueryResult(
            success=False,
            query_id=query.query_id,
            errors=[str(error)],
            error=error,
            execution_time_ms=self._elapsed_ms(start_time),
        )

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (_utcnow() - start_time).total_seconds() * 1000

    def get_registered_queries(self) -> List[type]:
        """Get list of registered query types."""
        return list(self._handlers.keys())


class QueryCache:
    """In-memory query cache keyed by query type and exact parameters.

    Invalidation never drops data silently: matching entries are flagged
    stale and are no longer served, and results from requests that started
    before the invalidation are refused.
    """

    def __init__(self, default_ttl_seconds: int = 300):
        self._cache: Dict[str, "CacheEntry"] = {}
        self.default_ttl_seconds = default_ttl_seconds
        self.version = 0

    async def get(self, key: str) -> Optional["CacheEntry"]:
        """Get cached entry if neither expired nor stale."""
        entry = self._cache.get(key)
        if entry and entry.is_expired():
            # Remove expired entry
            del self._cache[key]
            return None
        if entry and not entry.stale:
            return entry
        return None

    async def set(self, key: str, data: Any, ttl_seconds: Optional[int] = None,
                  if_version: Optional[int] = None) -> bool:
        """Cache data with TTL. Returns False when the write was refused."""
        if if_version is not None and if_version != self.version:
            logger.debug(f"Refusing to cache {key}: invalidated while in flight")
            return False
        now = _utcnow()
        self._prune(now)
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._cache[key] = CacheEntry(
            data=data,
            timestamp=now,
            expires_at=now + timedelta(seconds=ttl),
        )
        return True

    def _prune(self, now: datetime) -> None:
        """Drop expired and stale entries."""
        dead = [key for key, entry in self._cache.items() if entry.stale or now > entry.expires_at]
        for key in dead:
            del self._cache[key]

    async def invalidate(self, query_type: Union[str, type, None] = None, **params: Any) -> int:
        """Mark matching entries stale.

        With no arguments every entry is invalidated. ``query_type`` limits
        invalidation to one query class; keyword arguments must all match
        the entry's parameters.
        """
        self.version += 1
        if isinstance(query_type, type):
            query_type = query_type.__name__
        count = 0
        for key, entry in self._cache.items():
            if _key_matches(key, query_type, params):
                entry.stale = True
                count += 1
        if count:
            logger.debug(f"Invalidated {count} cache entries for {query_type or 'all queries'} {params}")
        return count

    def is_stale(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is None or entry.stale

    def __len__(self) -> int:
        return len(self._cache)


def _key_matches(key: str, query_type: Optional[str], params: Dict[str, Any]) -> bool:
    name, *parts = key.split("|")
    if query_type and name != query_type:
        return False
    pairs = dict(part.split("=", 1) for part in parts if "=" in part)
    for param, value in params.items():
        expected = value.value if isinstance(value, Enum) else value
        if pairs.get(param) != str(expected):
            return False
    return True


@dataclass
class CacheEntry:
    """Cache entry with expiration support and a staleness flag."""

    data: Any
    timestamp: datetime
    expires_at: datetime
    stale: bool = False

    def is_expired(self) -> bool:
        """Check if the cache entry has expired."""
        return _utcnow() > self.expires_at
