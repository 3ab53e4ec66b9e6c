"""Project-wide custom exceptions."""

from __future__ import annotations


class MbrError(Exception):
    """Base exception for the mbr command line tools."""


class ConfigurationError(MbrError):
    """Raised when configuration loading or validation fails."""


class ValidationError(MbrError):
    """Raised when user-supplied identifiers are rejected before any remote call."""


class TerminalError(MbrError):
    """Raised when the terminal session cannot be entered or restored."""


class ApiError(MbrError):
    """Raised when a request to the remote service fails."""

    def __init__(self, message: str, *, status: int | None = None, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint


class AuthenticationError(ApiError):
    """Raised for 401/403 responses or a missing API key."""


class NotFoundError(ApiError):
    """Raised when the requested resource does not exist."""


class RequestTimeoutError(ApiError):
    """Raised when the remote service does not answer in time."""
