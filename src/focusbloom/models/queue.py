"""Queued request model for offline replay."""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class OperationKind(str, Enum):
    """Which session API operation a queued request replays as."""

    CREATE_SESSION = "create_session"
    COMPLETE_SESSION = "complete_session"
    DELETE_SESSION = "delete_session"
    BATCH_UPLOAD = "batch_upload"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_request_id() -> str:
    """Collision-resistant identifier for a queue entry."""
    return uuid.uuid4().hex


class QueuedRequest(BaseModel):
    """A mutating request that could not be completed synchronously."""

    id: str = Field(default_factory=new_request_id)
    kind: OperationKind
    endpoint: str
    method: HttpMethod
    body: dict[str, Any] | None = None
    timestamp: int = Field(default_factory=now_ms)
    # Queue id of the create entry a completion must wait for
    depends_on: str | None = None

    @property
    def session_id(self) -> str | None:
        """Session id targeted by a complete/delete entry."""
        if self.body and "sessionId" in self.body:
            return self.body["sessionId"]
        if self.kind in (OperationKind.COMPLETE_SESSION, OperationKind.DELETE_SESSION):
            return self.endpoint.rstrip("/").rsplit("/", 1)[-1] or None
        return None

    def age_ms(self, now: int | None = None) -> int:
        """How long the entry has been waiting."""
        return (now if now is not None else now_ms()) - self.timestamp
