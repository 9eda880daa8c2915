"""Durable FIFO of mutating requests awaiting replay.

The queue owns its list of entries. Every mutation is followed by a persist
of the full snapshot; a failed persist is logged and the in-memory list stays
authoritative for the rest of the process lifetime.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from focusbloom.models.queue import (
    HttpMethod,
    OperationKind,
    QueuedRequest,
    new_request_id,
    now_ms,
)
from focusbloom.services.storage import KeyValueStore, StoreError
from focusbloom.utils.logger import get_logger

logger = get_logger("queue")

DEFAULT_QUEUE_KEY = "api_request_queue"
SESSIONS_ENDPOINT = "/sessions"

_entries_adapter = TypeAdapter(list[QueuedRequest])


class RequestQueue:
    """Ordered holding area for requests that could not be sent."""

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = DEFAULT_QUEUE_KEY,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_request_id,
    ):
        self.store = store
        self.storage_key = storage_key
        self._clock = clock
        self._id_factory = id_factory
        self._entries: list[QueuedRequest] = []
        self._hydrated = False

    async def hydrate(self) -> None:
        """Load the persisted queue once. Corrupt data yields an empty queue."""
        if self._hydrated:
            return
        self._hydrated = True

        try:
            raw = await self.store.get(self.storage_key)
        except StoreError as e:
            logger.error("could not read request queue: %s", e)
            return
        if not raw:
            return

        try:
            self._entries = _entries_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("discarding malformed request queue: %s", e)
            self._entries = []
            return
        logger.debug("hydrated %d queued requests", len(self._entries))

    async def _persist(self) -> None:
        payload = json.dumps([e.model_dump(mode="json") for e in self._entries])
        try:
            await self.store.set(self.storage_key, payload)
        except StoreError as e:
            logger.error("could not persist request queue: %s", e)

    async def enqueue(
        self,
        endpoint: str,
        method: HttpMethod,
        body: dict[str, Any] | None = None,
        *,
        kind: OperationKind,
        depends_on: str | None = None,
    ) -> QueuedRequest:
        """Append a request and persist the queue.

        ``kind`` decides how the entry is replayed and is fixed here, so it
        is keyword-only. Prefer ``enqueue_create`` and ``enqueue_complete``,
        which fill in ``kind``, ``endpoint`` and ``method``.
        """
        await self.hydrate()
        request_id = self._id_factory()
        while any(e.id == request_id for e in self._entries):
            request_id = self._id_factory()

        request = QueuedRequest(
            id=request_id,
            kind=kind,
            endpoint=endpoint,
            method=method,
            body=body,
            timestamp=self._clock(),
            depends_on=depends_on,
        )
        self._entries.append(request)
        await self._persist()
        logger.info("request queued for later: %s %s (%s)", method, endpoint, request.id)
        return request

    async def enqueue_create(
        self, duration: int, session_type: str, start_time: str, local_id: str | None = None
    ) -> QueuedRequest:
        """Queue a session creation."""
        body: dict[str, Any] = {
            "duration": duration,
            "type": session_type,
            "startTime": start_time,
        }
        if local_id:
            body["localId"] = local_id
        return await self.enqueue(
            SESSIONS_ENDPOINT, "POST", body, kind=OperationKind.CREATE_SESSION
        )

    async def enqueue_complete(
        self, session_id: str, end_time: str, depends_on: str | None = None
    ) -> QueuedRequest:
        """Queue a session completion, optionally linked to a pending create."""
        return await self.enqueue(
            f"{SESSIONS_ENDPOINT}/{session_id}",
            "PUT",
            {"completed": True, "endTime": end_time, "sessionId": session_id},
            kind=OperationKind.COMPLETE_SESSION,
            depends_on=depends_on,
        )

    async def dequeue_processed(self, ids: Iterable[str]) -> None:
        """Remove the given entries, keeping the rest in order."""
        await self.hydrate()
        processed = set(ids)
        if not processed:
            return
        self._entries = [e for e in self._entries if e.id not in processed]
        await self._persist()

    async def replace(self, request: QueuedRequest) -> None:
        """Swap an entry for an updated copy with the same id, in place."""
        await self.hydrate()
        for index, entry in enumerate(self._entries):
            if entry.id == request.id:
                self._entries[index] = request
                await self._persist()
                return
        raise KeyError(f"No queued request with id {request.id}")

    async def purge_older_than(self, max_age_ms: int) -> int:
        """Drop entries older than ``max_age_ms``. Returns how many were removed."""
        await self.hydrate()
        cutoff = self._clock() - max_age_ms
        kept = [e for e in self._entries if e.timestamp > cutoff]
        removed = len(self._entries) - len(kept)
        if removed:
            self._entries = kept
            await self._persist()
            logger.info("cleaned up %d old requests", removed)
        return removed

    async def clear(self) -> None:
        """Empty the queue and remove the persisted record."""
        self._entries = []
        self._hydrated = True
        try:
            await self.store.remove(self.storage_key)
        except StoreError as e:
            logger.error("could not remove request queue: %s", e)

    def get(self, request_id: str) -> QueuedRequest | None:
        for entry in self._entries:
            if entry.id == request_id:
                return entry
        return None

    def snapshot(self) -> list[QueuedRequest]:
        """Copy of the pending entries in FIFO order."""
        return list(self._entries)

    def length(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
