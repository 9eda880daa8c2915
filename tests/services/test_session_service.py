"""Tests for SessionService offline fallback."""

# pylint: disable=redefined-outer-name

from unittest.mock import AsyncMock, MagicMock

import pytest

from focusbloom.models.config_models import APIConfig
from focusbloom.models.queue import OperationKind
from focusbloom.models.session import APIResponse, Session
from focusbloom.services.api.client import APIClient
from focusbloom.services.api.errors import (
    APIConnectionError,
    APIStatusError,
    SessionValidationError,
)
from focusbloom.services.api.sessions import SessionAPI
from focusbloom.services.history import SessionHistory
from focusbloom.services.request_queue import RequestQueue
from focusbloom.services.session_service import (
    LOCAL_PREFIX,
    SAVED_LOCALLY,
    SessionService,
)


def _response(session_id="srv-1", completed=False, message=None):
    session = Session(
        id=session_id,
        duration=25,
        type="work",
        completed=completed,
        start_time="2024-01-01T00:00:00Z",
        end_time="2024-01-01T00:25:00Z" if completed else None,
    )
    return APIResponse(success=True, data={"session": session.to_wire()}, message=message)


@pytest.fixture
def session_api():
    api = MagicMock()
    api.create = AsyncMock(return_value=_response(message="Session created"))
    api.complete = AsyncMock(return_value=_response(completed=True))
    api.delete = AsyncMock(return_value=APIResponse(success=True, data={"deleted": True}))
    api.batch_upload = AsyncMock(
        return_value=APIResponse(success=True, data={"uploaded": 1, "failed": 0})
    )
    api.get_all = AsyncMock(return_value=APIResponse(success=True, data={"sessions": []}))
    api.get_stats = AsyncMock(
        return_value=APIResponse(success=True, data={"stats": {"totalSessions": 7}})
    )
    return api


@pytest.fixture
def queue(store, clock):
    return RequestQueue(store, clock=clock)


@pytest.fixture
def history(store):
    return SessionHistory(store)


@pytest.fixture
def service(session_api, queue, history):
    return SessionService(session_api, queue, history)


async def _start_offline(service, session_api):
    session_api.create.side_effect = APIConnectionError("offline")
    outcome = await service.start_session(25, "work")
    session_api.create.side_effect = None
    return outcome


class TestStartSession:
    @pytest.mark.asyncio
    async def test_online_start_records_server_session(self, service, history, queue):
        outcome = await service.start_session(25, "work")

        assert outcome.synced is True
        assert outcome.session.id == "srv-1"
        assert outcome.message == "Session created"
        assert (await history.get("srv-1")) is not None
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_offline_start_saves_locally_and_queues(self, service, session_api, history, queue):
        outcome = await _start_offline(service, session_api)

        assert outcome.synced is False
        assert outcome.message == SAVED_LOCALLY
        assert outcome.session.id.startswith(LOCAL_PREFIX)
        assert (await history.get(outcome.session.id)) is not None

        [request] = queue.snapshot()
        assert request.id == outcome.queued_request_id
        assert request.kind is OperationKind.CREATE_SESSION
        assert request.body["localId"] == outcome.session.id
        assert request.body["duration"] == 25

    @pytest.mark.asyncio
    async def test_unsuccessful_response_is_queued(self, service, session_api, queue):
        session_api.create.return_value = APIResponse(success=False, error="rejected")
        outcome = await service.start_session(5, "short-break")
        assert outcome.synced is False
        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_malformed_session_body_is_queued(self, service, session_api, history, queue):
        session_api.create.return_value = APIResponse(
            success=True, data={"session": {"id": "srv-1", "duration": "soon"}}
        )

        outcome = await service.start_session(25, "work")

        assert outcome.synced is False
        assert outcome.session.id.startswith(LOCAL_PREFIX)
        assert (await history.get(outcome.session.id)) is not None
        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_invalid_input_is_not_queued(self, service, session_api, queue):
        with pytest.raises(SessionValidationError):
            await service.start_session(0, "work")
        session_api.create.assert_not_called()
        assert len(queue) == 0


class TestCompleteSession:
    @pytest.mark.asyncio
    async def test_online_complete(self, service, session_api, history):
        await service.start_session(25, "work")

        outcome = await service.complete_session("srv-1")

        assert outcome.synced is True
        session_api.complete.assert_awaited_once()
        assert session_api.complete.await_args.args[0] == "srv-1"
        assert (await history.get("srv-1")).completed is True

    @pytest.mark.asyncio
    async def test_complete_of_unsynced_session_links_to_create(
        self, service, session_api, queue, history
    ):
        started = await _start_offline(service, session_api)

        outcome = await service.complete_session(started.session.id)

        session_api.complete.assert_not_called()
        assert outcome.synced is False
        create, complete = queue.snapshot()
        assert complete.kind is OperationKind.COMPLETE_SESSION
        assert complete.depends_on == create.id
        assert complete.session_id == started.session.id
        assert (await history.get(started.session.id)).completed is True

    @pytest.mark.asyncio
    async def test_failed_complete_is_queued(self, service, session_api, queue):
        session_api.complete.side_effect = APIStatusError(502)

        outcome = await service.complete_session("srv-remote")

        assert outcome.synced is False
        assert outcome.session is None
        [request] = queue.snapshot()
        assert request.endpoint == "/sessions/srv-remote"
        assert request.depends_on is None

    @pytest.mark.asyncio
    async def test_accepted_complete_with_malformed_body(self, service, session_api, queue, history):
        await service.start_session(25, "work")
        session_api.complete.return_value = APIResponse(
            success=True, data={"session": {"id": "srv-1"}}
        )

        outcome = await service.complete_session("srv-1")

        assert outcome.synced is True
        assert outcome.session.completed is True
        assert len(queue) == 0
        assert (await history.get("srv-1")).completed is True

    @pytest.mark.asyncio
    async def test_complete_twice_is_rejected(self, service):
        await service.start_session(25, "work")
        await service.complete_session("srv-1")
        with pytest.raises(ValueError):
            await service.complete_session("srv-1")


class TestDeleteSession:
    @pytest.mark.asyncio
    async def test_unsynced_session_discarded_locally(self, service, session_api, queue, history):
        started = await _start_offline(service, session_api)
        await service.complete_session(started.session.id)

        outcome = await service.delete_session(started.session.id)

        assert outcome.synced is True
        assert len(queue) == 0
        assert (await history.get(started.session.id)) is None
        session_api.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_online_delete(self, service, session_api, history):
        await service.start_session(25, "work")
        outcome = await service.delete_session("srv-1")
        assert outcome.synced is True
        session_api.delete.assert_awaited_once_with("srv-1")
        assert (await history.get("srv-1")) is None

    @pytest.mark.asyncio
    async def test_failed_delete_is_queued(self, service, session_api, queue):
        session_api.delete.side_effect = APIConnectionError("offline")
        outcome = await service.delete_session("srv-1")
        assert outcome.synced is False
        [request] = queue.snapshot()
        assert request.kind is OperationKind.DELETE_SESSION
        assert request.method == "DELETE"
        assert request.session_id == "srv-1"


class TestUploadHistory:
    @pytest.mark.asyncio
    async def test_nothing_to_upload(self, service, session_api):
        outcome = await service.upload_history()
        assert outcome.message == "Nothing to upload"
        session_api.batch_upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_sessions_still_queued(self, service, session_api):
        started = await _start_offline(service, session_api)
        await service.complete_session(started.session.id)

        outcome = await service.upload_history()

        assert outcome.message == "Nothing to upload"
        session_api.batch_upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_uploads_orphaned_local_sessions(self, service, session_api, queue, history):
        started = await _start_offline(service, session_api)
        await service.complete_session(started.session.id)
        await queue.clear()

        outcome = await service.upload_history()

        assert outcome.synced is True
        assert outcome.message == "Uploaded 1, failed 0"
        [uploaded] = session_api.batch_upload.await_args.args[0]
        assert uploaded["id"] == started.session.id
        renamed = started.session.id.removeprefix(LOCAL_PREFIX)
        assert (await history.get(renamed)) is not None

    @pytest.mark.asyncio
    async def test_failed_upload_is_queued(self, service, session_api, queue):
        started = await _start_offline(service, session_api)
        await service.complete_session(started.session.id)
        await queue.clear()
        session_api.batch_upload.side_effect = APIStatusError(500)

        outcome = await service.upload_history()

        assert outcome.synced is False
        [request] = queue.snapshot()
        assert request.kind is OperationKind.BATCH_UPLOAD
        assert request.body["sessions"][0]["id"] == started.session.id

        # already queued, so a second upload has nothing new
        again = await service.upload_history()
        assert again.message == "Nothing to upload"


class TestReads:
    @pytest.mark.asyncio
    async def test_local_stats(self, service):
        await service.start_session(25, "work")
        await service.complete_session("srv-1")
        stats = await service.stats()
        assert stats.total_sessions == 1
        assert stats.completed_sessions == 1
        assert stats.total_minutes == 25

    @pytest.mark.asyncio
    async def test_remote_stats(self, service):
        stats = await service.stats(remote=True)
        assert stats.total_sessions == 7

    @pytest.mark.asyncio
    async def test_remote_stats_error_propagates(self, service, session_api):
        session_api.get_stats.side_effect = APIStatusError(500)
        with pytest.raises(APIStatusError):
            await service.stats(remote=True)

    @pytest.mark.asyncio
    async def test_list_local_and_remote(self, service, session_api):
        await service.start_session(25, "work")
        assert [s.id for s in await service.list_sessions()] == ["srv-1"]
        assert await service.list_sessions(remote=True) == []
        session_api.get_all.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_synced_hook_renames_local_session(self, service, session_api, history):
        started = await _start_offline(service, session_api)
        await service.on_session_synced(started.session.id, "srv-42")
        assert (await history.get("srv-42")) is not None
        assert (await history.get(started.session.id)) is None


class TestMockModeEndToEnd:
    @pytest.mark.asyncio
    async def test_mock_mode_never_queues(self, store, clock):
        config = APIConfig(use_mock_data=True, base_url="https://api.test/api")
        api = SessionAPI(APIClient(config), config)
        queue = RequestQueue(store, clock=clock)
        service = SessionService(api, queue, SessionHistory(store))

        started = await service.start_session(25, "work")
        completed = await service.complete_session(started.session.id)

        assert started.synced is True
        assert completed.synced is True
        assert len(queue) == 0
