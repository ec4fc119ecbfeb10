"""Base classes for CQRS command pattern."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

from ..events import DomainEvent, EventBus
from ...domain.value_objects import Identity
from ...exceptions import AlbumPulseError, WriteFailed

logger = logging.getLogger(__name__)

# Type variables for generic command handling
C = TypeVar("C", bound="Command")
R = TypeVar("R", bound="CommandResult")


@dataclass(frozen=True, slots=True)
class Command:
    """Base command class with metadata."""

    command_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    identity: Optional[Identity] = None
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert command to dictionary for serialization."""
        return {
            "command_id": self.command_id,
            "command_type": self.__class__.__name__,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.identity.user_id if self.identity else None,
            "correlation_id": self.correlation_id,
            **{
                name: getattr(self, name)
                for name in self.__dataclass_fields__
                if name not in {"command_id", "timestamp", "identity", "correlation_id"}
            }
        }


class CommandHandler(ABC, Generic[C, R]):
    """Abstract base class for command handlers."""

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus

    @abstractmethod
    async def handle(self, command: C) -> R:
        """Handle the command and return a result."""
        pass

    @abstractmethod
    def can_handle(self, command_type: type) -> bool:
        """Check if this handler can handle the given command type."""
        pass

    async def publish(self, events: List[DomainEvent]) -> None:
        """Publish events if an event bus is available."""
        if self.event_bus:
            await self.event_bus.publish_batch(events)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Base result class for command execution."""

    success: bool
    command_id: str
    message: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None
    events: List[DomainEvent] = field(default_factory=list)
    result_data: Dict[str, Any] = field(default_factory=dict)
    execution_time_ms: Optional[float] = None

    def raise_for_error(self) -> "CommandResult":
        """Re-raise the failure for callers that propagate errors."""
        if not self.success:
            if self.error is not None:
                raise self.error
            raise WriteFailed("; ".join(self.errors) or None)
        return self


class CommandBus:
    """Mediates commands to appropriate handlers."""

    def __init__(self):
        self._handlers: Dict[type, CommandHandler] = {}

    def register(self, command_type: type, handler: CommandHandler) -> None:
        """Register a handler for a command type."""
        self._handlers[command_type] = handler

    async def dispatch(self, command: Command) -> CommandResult:
        """Dispatch a command to its registered handler."""
        command_type = type(command)

        if command_type not in self._handlers:
            message = f"No handler registered for command type: {command_type.__name__}"
            return CommandResult(
                success=False,
                command_id=command.command_id,
                errors=[message],
                error=AlbumPulseError(message),
            )

        handler = self._handlers[command_type]
        start_time = datetime.now(timezone.utc)

        try:
            result = await handler.handle(command)
        except AlbumPulseError as e:
            result = CommandResult(
                success=False,
                command_id=command.command_id,
                message=str(e),
                errors=[str(e)],
                error=e,
            )
        except Exception as e:
            logger.debug(f"Unexpected error handling {command_type.__name__}: {e}")
            error = WriteFailed(str(e) or None)
            result = CommandResult(
                success=False,
                command_id=command.command_id,
                message=str(error),
                errors=[str(error)],
                error=error,
            )

        # Calculate execution time
        execution_time = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
        return replace(result, execution_time_ms=execution_time)

    def get_registered_commands(self) -> List[type]:
        """Get list of registered command types."""
        return list(self._handlers.keys())
