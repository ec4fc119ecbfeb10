"""Infrastructure layer - store transport and repository implementations."""

from .external import PostgrestClient
from .repositories import InMemoryStore, Repositories

__all__ = ["PostgrestClient", "InMemoryStore", "Repositories"]
