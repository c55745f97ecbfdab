"""Domain errors raised by the services and translated by the routers."""
from typing import Optional


class TimeTrackingError(ValueError):
    """Base class for errors the request layer turns into user messages."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TimeTrackingError):
    """Invalid user input, optionally tied to a single field."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TimeTrackingError):
    """Missing resource, or one owned by somebody else."""


class CsvImportError(TimeTrackingError):
    """The whole CSV import was rejected; nothing has been written."""

    def __init__(self, message: str, row: Optional[int] = None):
        if row is not None:
            message = f"Row {row}: {message}"
        super().__init__(message)
        self.row = row


class AuthenticationError(TimeTrackingError):
    """Credentials did not match."""


class SignupDisabledError(TimeTrackingError):
    """Self-service registration is switched off."""
