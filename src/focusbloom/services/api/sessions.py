"""Typed session endpoints with mock fallback.

When mock mode is on (explicit ``use_mock_data`` or a placeholder base URL)
no request is sent and a successful response is synthesized locally.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from focusbloom.models.config_models import APIConfig
from focusbloom.models.session import (
    SESSION_TYPES,
    APIResponse,
    Session,
    SessionStats,
    utc_now_iso,
)

from .client import APIClient
from .errors import APIError, SessionValidationError

SESSIONS = "/sessions"
SESSION_STATS = "/sessions/stats"
SESSION_BATCH = "/sessions/batch"


def _parse(data: Any) -> APIResponse:
    try:
        return APIResponse.model_validate(data)
    except ValidationError as e:
        raise APIError(f"Unexpected response shape: {e}") from e


def validate_duration(duration: Any) -> int:
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise SessionValidationError(f"duration must be a number, got {duration!r}")
    if duration <= 0:
        raise SessionValidationError(f"duration must be positive, got {duration}")
    if int(duration) != duration:
        raise SessionValidationError(f"duration must be whole minutes, got {duration}")
    return int(duration)


def validate_type(session_type: Any) -> str:
    if session_type not in SESSION_TYPES:
        raise SessionValidationError(
            f"type must be one of {', '.join(SESSION_TYPES)}, got {session_type!r}"
        )
    return session_type


def validate_session_id(session_id: Any) -> str:
    if not isinstance(session_id, str) or not session_id.strip():
        raise SessionValidationError("session id must be a non-empty string")
    if "/" in session_id:
        raise SessionValidationError(f"invalid session id {session_id!r}")
    return session_id.strip()


class SessionAPI:
    """Create, complete, list, summarize and delete sessions."""

    def __init__(self, client: APIClient, config: APIConfig):
        self.client = client
        self.config = config

    @property
    def mock_mode(self) -> bool:
        return self.config.mock_mode

    async def create(
        self, duration: int, session_type: str, start_time: str | None = None
    ) -> APIResponse:
        """Create a new session."""
        duration = validate_duration(duration)
        session_type = validate_type(session_type)
        payload = {
            "duration": duration,
            "type": session_type,
            "startTime": start_time or utc_now_iso(),
        }

        if self.mock_mode:
            session = Session(
                id=uuid.uuid4().hex,
                duration=duration,
                type=session_type,
                start_time=payload["startTime"],
            )
            return APIResponse(
                success=True,
                data={"session": session.to_wire()},
                message="Session created successfully (mock)",
            )

        return _parse(await self.client.post(SESSIONS, json=payload))

    async def complete(self, session_id: str, end_time: str | None = None) -> APIResponse:
        """Mark a session as completed."""
        session_id = validate_session_id(session_id)
        payload = {"completed": True, "endTime": end_time or utc_now_iso()}

        if self.mock_mode:
            end = datetime.now(UTC)
            session = Session(
                id=session_id,
                duration=25,
                type="work",
                completed=True,
                start_time=(end - timedelta(minutes=25)).isoformat(),
                end_time=end.isoformat(),
            )
            return APIResponse(
                success=True,
                data={"session": session.to_wire()},
                message="Session completed successfully (mock)",
            )

        return _parse(
            await self.client.put(f"{SESSIONS}/{session_id}", json=payload)
        )

    async def get_all(self) -> APIResponse:
        """List all sessions for the user."""
        if self.mock_mode:
            return APIResponse(
                success=True, data={"sessions": []}, message="No sessions found (mock)"
            )
        return _parse(await self.client.get(SESSIONS))

    async def get_stats(self) -> APIResponse:
        """Get aggregated session statistics."""
        if self.mock_mode:
            return APIResponse(
                success=True,
                data={"stats": SessionStats().model_dump(by_alias=True)},
                message="Stats retrieved successfully (mock)",
            )
        return _parse(await self.client.get(SESSION_STATS))

    async def delete(self, session_id: str) -> APIResponse:
        """Delete a session."""
        session_id = validate_session_id(session_id)
        if self.mock_mode:
            return APIResponse(
                success=True,
                data={"deleted": True},
                message="Session deleted successfully (mock)",
            )
        return _parse(await self.client.delete(f"{SESSIONS}/{session_id}"))

    async def batch_upload(self, sessions: list[dict[str, Any]]) -> APIResponse:
        """Upload several locally recorded sessions at once."""
        payload = []
        for item in sessions:
            entry = {
                "duration": validate_duration(item.get("duration")),
                "type": validate_type(item.get("type")),
                "startTime": item.get("startTime") or utc_now_iso(),
            }
            if item.get("endTime"):
                entry["endTime"] = item["endTime"]
            payload.append(entry)

        if self.mock_mode:
            return APIResponse(
                success=True,
                data={"uploaded": len(payload), "failed": 0},
                message="Batch upload completed successfully (mock)",
            )
        return _parse(
            await self.client.post(SESSION_BATCH, json={"sessions": payload})
        )
