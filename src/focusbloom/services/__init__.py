"""Services module for FocusBloom - sync core and session workflow."""

from .connectivity import ConnectivityProber, ConnectivityState
from .container import ServiceContainer
from .history import SessionHistory
from .request_queue import RequestQueue
from .session_service import SessionOutcome, SessionService
from .storage import JsonFileStore, KeyValueStore, MemoryStore, StoreError
from .sync_service import DrainResult, SyncEngine, SyncState

__all__ = [
    "ConnectivityProber",
    "ConnectivityState",
    "ServiceContainer",
    "SessionHistory",
    "RequestQueue",
    "SessionOutcome",
    "SessionService",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StoreError",
    "DrainResult",
    "SyncEngine",
    "SyncState",
]
