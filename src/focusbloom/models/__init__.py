"""Data models for FocusBloom."""

from .config_models import APIConfig, AppConfig, StorageConfig, SyncConfig
from .queue import HttpMethod, OperationKind, QueuedRequest
from .session import (
    SESSION_TYPES,
    APIResponse,
    Session,
    SessionStats,
    SessionType,
)

__all__ = [
    "APIConfig",
    "AppConfig",
    "StorageConfig",
    "SyncConfig",
    "HttpMethod",
    "OperationKind",
    "QueuedRequest",
    "SESSION_TYPES",
    "APIResponse",
    "Session",
    "SessionStats",
    "SessionType",
]
