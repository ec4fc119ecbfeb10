"""Application layer - CQRS pattern implementation."""

from .commands import Command, CommandHandler, CommandBus, CommandResult
from .queries import Query, QueryHandler, QueryBus, QueryCache, QueryResult
from .events import DomainEvent, EventBus, EventHandler, CacheInvalidator

__all__ = [
    "Command",
    "CommandHandler",
    "CommandBus",
    "CommandResult",
    "Query",
    "QueryHandler",
    "QueryBus",
    "QueryCache",
    "QueryResult",
    "DomainEvent",
    "EventBus",
    "EventHandler",
    "CacheInvalidator",
]
