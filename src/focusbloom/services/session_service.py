"""Session lifecycle with offline fallback.

Starting or completing a session tries the remote API first. When that
fails the session is kept in local history and the write is queued for the
sync engine, so the caller can report "saved locally, will sync later"
instead of a hard error.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from focusbloom.models.queue import OperationKind, QueuedRequest
from focusbloom.models.session import Session, SessionStats, utc_now_iso
from focusbloom.services.api.errors import APIError
from focusbloom.services.api.sessions import (
    SessionAPI,
    validate_duration,
    validate_session_id,
    validate_type,
)
from focusbloom.services.history import SessionHistory
from focusbloom.services.request_queue import RequestQueue
from focusbloom.utils.logger import get_logger

logger = get_logger("sessions")

SAVED_LOCALLY = "Saved locally, will sync later"
LOCAL_PREFIX = "local-"


@dataclass
class SessionOutcome:
    """Result of a session operation as seen by the caller."""

    session: Session | None
    synced: bool
    message: str
    queued_request_id: str | None = None


class SessionService:
    """Start, complete and delete sessions, queueing writes when offline."""

    def __init__(self, session_api: SessionAPI, queue: RequestQueue, history: SessionHistory):
        self.session_api = session_api
        self.queue = queue
        self.history = history

    def _pending_create(self, session_id: str) -> QueuedRequest | None:
        for request in self.queue.snapshot():
            if (
                request.kind is OperationKind.CREATE_SESSION
                and (request.body or {}).get("localId") == session_id
            ):
                return request
        return None

    async def start_session(self, duration: int, session_type: str = "work") -> SessionOutcome:
        """Create a session remotely, or locally plus a queued create."""
        duration = validate_duration(duration)
        session_type = validate_type(session_type)
        await self.queue.hydrate()
        start_time = utc_now_iso()

        try:
            response = await self.session_api.create(duration, session_type, start_time=start_time)
            session = response.session()
            if not response.success or session is None:
                raise APIError(response.error or response.message or "create was not accepted")
        except (APIError, ValueError) as e:
            logger.warning("session create failed, queueing: %s", e)
            session = Session(
                id=f"{LOCAL_PREFIX}{uuid.uuid4().hex}",
                duration=duration,
                type=session_type,
                start_time=start_time,
            )
            await self.history.add(session)
            request = await self.queue.enqueue_create(
                duration, session_type, start_time, local_id=session.id
            )
            return SessionOutcome(session, False, SAVED_LOCALLY, request.id)

        await self.history.add(session)
        return SessionOutcome(session, True, response.message or "Session created")

    async def complete_session(self, session_id: str) -> SessionOutcome:
        """Complete a session remotely, or locally plus a queued completion.

        A session whose create is still queued is completed locally and its
        completion is linked to that create so it is never replayed first.
        """
        session_id = validate_session_id(session_id)
        await self.queue.hydrate()
        end_time = utc_now_iso()

        local = await self.history.get(session_id)
        if local is not None and local.completed:
            raise ValueError(f"Session {session_id} is already completed")

        pending = self._pending_create(session_id)
        if pending is None:
            try:
                response = await self.session_api.complete(session_id, end_time=end_time)
                if not response.success:
                    raise APIError(response.error or response.message or "complete was not accepted")
            except APIError as e:
                logger.warning("session complete failed, queueing: %s", e)
            else:
                try:
                    session = response.session()
                except ValueError as e:
                    # Accepted by the server; only the echoed body is unreadable
                    logger.warning("unreadable session in complete response: %s", e)
                    session = None
                if local is not None:
                    session = await self.history.mark_completed(session_id, end_time)
                return SessionOutcome(session, True, response.message or "Session completed")

        session = None
        if local is not None:
            session = await self.history.mark_completed(session_id, end_time)
        request = await self.queue.enqueue_complete(
            session_id, end_time, depends_on=pending.id if pending else None
        )
        return SessionOutcome(session, False, SAVED_LOCALLY, request.id)

    async def delete_session(self, session_id: str) -> SessionOutcome:
        """Delete a session everywhere it is known."""
        session_id = validate_session_id(session_id)
        await self.queue.hydrate()

        pending = self._pending_create(session_id)
        if pending is not None:
            # Never reached the server: drop the create and anything linked to it
            linked = {r.id for r in self.queue.snapshot() if r.depends_on == pending.id}
            await self.queue.dequeue_processed(linked | {pending.id})
            await self.history.remove(session_id)
            return SessionOutcome(None, True, "Unsynced session discarded")

        try:
            response = await self.session_api.delete(session_id)
            if not response.success:
                raise APIError(response.error or response.message or "delete was not accepted")
        except APIError as e:
            logger.warning("session delete failed, queueing: %s", e)
            await self.history.remove(session_id)
            request = await self.queue.enqueue(
                f"/sessions/{session_id}",
                "DELETE",
                {"sessionId": session_id},
                kind=OperationKind.DELETE_SESSION,
            )
            return SessionOutcome(None, False, SAVED_LOCALLY, request.id)

        await self.history.remove(session_id)
        return SessionOutcome(None, True, response.message or "Session deleted")

    def _queued_session_ids(self) -> set[str]:
        """Local ids already waiting in the queue as a create or batch upload."""
        ids: set[str] = set()
        for request in self.queue.snapshot():
            body = request.body or {}
            if request.kind is OperationKind.CREATE_SESSION and body.get("localId"):
                ids.add(body["localId"])
            elif request.kind is OperationKind.BATCH_UPLOAD:
                ids.update(s["id"] for s in body.get("sessions", []) if s.get("id"))
        return ids

    async def upload_history(self) -> SessionOutcome:
        """Batch-upload completed local sessions that are not queued anywhere.

        These are sessions whose queued create was purged before it could be
        replayed. Uploaded sessions lose their local id prefix.
        """
        await self.queue.hydrate()
        queued = self._queued_session_ids()
        sessions = [
            s.to_wire()
            for s in await self.history.get_all()
            if s.id.startswith(LOCAL_PREFIX) and s.completed and s.id not in queued
        ]
        if not sessions:
            return SessionOutcome(None, True, "Nothing to upload")

        try:
            response = await self.session_api.batch_upload(sessions)
            if not response.success:
                raise APIError(response.error or response.message or "batch upload was not accepted")
        except APIError as e:
            logger.warning("batch upload failed, queueing: %s", e)
            request = await self.queue.enqueue(
                "/sessions/batch",
                "POST",
                {"sessions": sessions},
                kind=OperationKind.BATCH_UPLOAD,
            )
            return SessionOutcome(None, False, SAVED_LOCALLY, request.id)

        for s in sessions:
            await self.on_session_synced(s["id"], None)
        data = response.data
        return SessionOutcome(
            None,
            True,
            f"Uploaded {data.get('uploaded', len(sessions))}, failed {data.get('failed', 0)}",
        )

    async def on_session_synced(self, local_id: str, server_id: str | None) -> None:
        """Rename a local session once the server knows it."""
        new_id = server_id or local_id.removeprefix(LOCAL_PREFIX)
        await self.history.reassign_id(local_id, new_id)

    async def list_sessions(self, remote: bool = False) -> list[Session]:
        """Sessions from the server, or from local history."""
        if remote:
            return (await self.session_api.get_all()).sessions()
        return await self.history.get_all()

    async def stats(self, remote: bool = False) -> SessionStats:
        """Aggregated statistics from the server, or computed locally."""
        if remote:
            response = await self.session_api.get_stats()
            return SessionStats.model_validate(response.data.get("stats") or {})
        return await self.history.stats()
