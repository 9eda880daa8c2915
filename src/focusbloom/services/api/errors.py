"""Errors raised by the session API client."""

from __future__ import annotations


class APIError(Exception):
    """Base class for failed API calls."""


class APIConnectionError(APIError):
    """The server could not be reached."""


class APITimeoutError(APIError):
    """The request did not finish within the configured timeout."""


class APIStatusError(APIError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, message: str | None = None):
        super().__init__(message or f"HTTP error! status: {status_code}")
        self.status_code = status_code


class SessionValidationError(ValueError):
    """Invalid input to a session operation, rejected before any I/O."""
