"""Custom exceptions for album pulse."""

from typing import Optional


class AlbumPulseError(Exception):
    """Base exception for album pulse errors."""
    pass


class ValidationError(AlbumPulseError):
    """Raised when a required field is missing or invalid.

    Always raised before any remote call is issued.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class AuthenticationRequired(AlbumPulseError):
    """Raised when a write is attempted without a known identity."""

    def __init__(self, message: str = "Please sign in to continue"):
        super().__init__(message)


class StoreError(AlbumPulseError):
    """Raised by the store transport with the store's own message attached."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class FetchFailed(StoreError):
    """Raised when reading from the remote store fails."""
    pass


class WriteFailed(StoreError):
    """Raised when writing to the remote store fails."""

    default_message = "Failed to save changes"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None,
                 status: Optional[int] = None):
        super().__init__(message or self.default_message, code=code, status=status)


class DuplicateRowError(WriteFailed):
    """Raised when an insert violates a uniqueness constraint in the store."""
    pass


class NotFound(AlbumPulseError):
    """Raised when a detail lookup targets an id that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class SalesTypeError(AlbumPulseError, ValueError):
    """Raised for a sales type outside the closed set of categories."""
    pass


class ShareUnavailable(AlbumPulseError):
    """Raised by a share callback when native sharing is not possible."""
    pass


class ConfigurationError(AlbumPulseError):
    """Raised when there's an error in configuration."""
    pass
