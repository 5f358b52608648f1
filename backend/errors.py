# backend/errors.py
from typing import List, Optional


class PortalError(RuntimeError):
    """Base class for errors rendered as `{success: false, message}`."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Raised when submitted fields, files or a status value are invalid."""

    status_code = 400

    def __init__(self, message: str, fields: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class NotFoundError(PortalError):
    """Raised when no submission exists for the requested id."""

    status_code = 404


class StorageError(PortalError):
    """Raised when a file write or a database operation fails."""

    status_code = 500
