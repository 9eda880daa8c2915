"""Remote session API access."""

from .client import APIClient
from .errors import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    SessionValidationError,
)
from .sessions import SessionAPI

__all__ = [
    "APIClient",
    "APIConnectionError",
    "APIError",
    "APIStatusError",
    "APITimeoutError",
    "SessionAPI",
    "SessionValidationError",
]
