"""Sync engine: drains the request queue once connectivity is confirmed.

A drain cycle probes the network, then replays a snapshot of the queue in
FIFO order. Each entry is dispatched independently; failures stay queued in
their original relative order for the next cycle. Cycles never overlap.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from focusbloom.models.queue import OperationKind, QueuedRequest
from focusbloom.models.session import APIResponse
from focusbloom.services.api.sessions import SESSIONS, SessionAPI
from focusbloom.services.connectivity import ConnectivityProber
from focusbloom.services.request_queue import RequestQueue
from focusbloom.utils.logger import get_logger

logger = get_logger("sync")

HOUR_MS = 60 * 60 * 1000

# (local session id, server session id or None when the server assigned none)
SessionSyncedHook = Callable[[str, str | None], Awaitable[None]]


class SyncState(str, Enum):
    """Where the engine is in a drain cycle."""

    IDLE = "idle"
    PROBING = "probing"
    DRAINING = "draining"


@dataclass
class DrainResult:
    """Outcome of one ``process_queued_requests`` call."""

    online: bool = False
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    blocked: int = 0
    remaining: int = 0
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReplayError(Exception):
    """A queued request was answered with ``success: false``."""


class SyncEngine:
    """Orchestrates probing, queue replay and cleanup."""

    def __init__(
        self,
        queue: RequestQueue,
        prober: ConnectivityProber,
        session_api: SessionAPI,
        on_session_synced: SessionSyncedHook | None = None,
    ):
        self.queue = queue
        self.prober = prober
        self.session_api = session_api
        self.on_session_synced = on_session_synced
        self.state = SyncState.IDLE
        self._lock = asyncio.Lock()
        self._dispatch: dict[
            OperationKind, Callable[[QueuedRequest], Awaitable[APIResponse]]
        ] = {
            OperationKind.CREATE_SESSION: self._replay_create,
            OperationKind.COMPLETE_SESSION: self._replay_complete,
            OperationKind.DELETE_SESSION: self._replay_delete,
            OperationKind.BATCH_UPLOAD: self._replay_batch,
        }

    async def _replay_create(self, request: QueuedRequest) -> APIResponse:
        body = request.body or {}
        return await self.session_api.create(
            body.get("duration"), body.get("type"), start_time=body.get("startTime")
        )

    async def _replay_complete(self, request: QueuedRequest) -> APIResponse:
        body = request.body or {}
        return await self.session_api.complete(
            request.session_id or "", end_time=body.get("endTime")
        )

    async def _replay_delete(self, request: QueuedRequest) -> APIResponse:
        return await self.session_api.delete(request.session_id or "")

    async def _replay_batch(self, request: QueuedRequest) -> APIResponse:
        return await self.session_api.batch_upload((request.body or {}).get("sessions", []))

    async def _dispatch_one(self, request: QueuedRequest) -> APIResponse:
        handler = self._dispatch.get(request.kind)
        if handler is None:
            raise ReplayError(f"No replay handler for {request.kind}")
        response = await handler(request)
        if not response.success:
            raise ReplayError(response.error or response.message or "success: false")
        return response

    @staticmethod
    def _retarget(request: QueuedRequest, session_id: str) -> QueuedRequest:
        """Point a completion at the id the server assigned to its session."""
        body = dict(request.body or {})
        body["sessionId"] = session_id
        return request.model_copy(
            update={
                "endpoint": f"{SESSIONS}/{session_id}",
                "body": body,
                "depends_on": None,
            }
        )

    async def process_queued_requests(self) -> DrainResult:
        """Run one drain cycle. Never raises for per-entry failures.

        A call arriving while another cycle is running returns immediately
        with ``skipped=True``.
        """
        if self._lock.locked():
            logger.info("drain already in progress, skipping")
            return DrainResult(skipped=True, remaining=len(self.queue))

        async with self._lock:
            try:
                return await self._drain()
            finally:
                self.state = SyncState.IDLE

    async def _drain(self) -> DrainResult:
        await self.queue.hydrate()

        self.state = SyncState.PROBING
        result = DrainResult(online=await self.prober.check_connection())
        if not result.online:
            logger.info("still offline, cannot process queued requests")
            result.remaining = len(self.queue)
            return result

        snapshot = self.queue.snapshot()
        if not snapshot:
            return result

        self.state = SyncState.DRAINING
        logger.info("processing %d queued requests", len(snapshot))

        in_snapshot = {r.id for r in snapshot}
        # create entry id -> session id assigned by the server
        created: dict[str, str] = {}
        processed: list[str] = []

        for request in snapshot:
            if self.queue.get(request.id) is None:
                # Discarded by a collaborator while the cycle was running
                logger.info("queued request %s was removed, skipping", request.id)
                continue

            if request.depends_on and request.depends_on in in_snapshot:
                server_id = created.get(request.depends_on)
                if server_id is None:
                    logger.info(
                        "completion %s waits for create %s", request.id, request.depends_on
                    )
                    result.blocked += 1
                    continue
                request = self._retarget(request, server_id)
                await self.queue.replace(request)

            result.attempted += 1
            try:
                response = await self._dispatch_one(request)
            except Exception as e:
                logger.error("failed to process queued request %s: %s", request.id, e)
                result.failed += 1
                continue

            processed.append(request.id)
            result.succeeded += 1
            logger.info("processed queued request %s", request.id)

            if request.kind is OperationKind.CREATE_SESSION:
                await self._record_created(request, response, created)
            elif request.kind is OperationKind.BATCH_UPLOAD:
                for item in (request.body or {}).get("sessions", []):
                    if item.get("id"):
                        await self._notify_synced(item["id"], None)

        await self.queue.dequeue_processed(processed)
        result.remaining = len(self.queue)
        logger.info(
            "processed %d requests successfully, %d remaining",
            result.succeeded,
            result.remaining,
        )
        return result

    async def _record_created(
        self, request: QueuedRequest, response: APIResponse, created: dict[str, str]
    ) -> None:
        try:
            session = response.session()
        except ValueError as e:
            logger.warning("create %s returned an unreadable session: %s", request.id, e)
            session = None
        local_id = (request.body or {}).get("localId")
        server_id = session.id if session else local_id
        if server_id:
            created[request.id] = server_id
        if local_id and server_id:
            await self._notify_synced(local_id, server_id)

    async def _notify_synced(self, local_id: str, server_id: str | None) -> None:
        if self.on_session_synced is None:
            return
        try:
            await self.on_session_synced(local_id, server_id)
        except Exception as e:
            logger.error("session sync hook failed for %s: %s", local_id, e)

    async def retry_queued_requests(self) -> DrainResult:
        """Manual retry entry point for the UI."""
        return await self.process_queued_requests()

    async def cleanup(self, max_age_hours: int = 24) -> int:
        """Purge queued requests older than ``max_age_hours``."""
        return await self.queue.purge_older_than(max_age_hours * HOUR_MS)

    def status(self) -> dict[str, Any]:
        """Network and queue status for display."""
        return {
            "online": self.prober.is_online(),
            "queue_length": len(self.queue),
            "state": self.state.value,
        }
