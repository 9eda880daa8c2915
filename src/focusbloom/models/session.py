"""Session models exchanged with the remote API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

SessionType = Literal["work", "short-break", "long-break"]
SESSION_TYPES: tuple[str, ...] = get_args(SessionType)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Session(BaseModel):
    """One timed work or break interval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    duration: int = Field(gt=0)
    type: SessionType
    completed: bool = False
    start_time: str = Field(alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    category: str | None = None

    @model_validator(mode="after")
    def check_end_after_start(self) -> "Session":
        if self.end_time is not None:
            if parse_iso(self.end_time) < parse_iso(self.start_time):
                raise ValueError("endTime must not be earlier than startTime")
        return self

    def mark_completed(self, end_time: str | None = None) -> "Session":
        """Return a completed copy. A session completes exactly once."""
        if self.completed:
            raise ValueError(f"Session {self.id} is already completed")
        return self.model_copy(
            update={"completed": True, "end_time": end_time or utc_now_iso()}
        )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by the API."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SessionStats(BaseModel):
    """Aggregated session counters."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_sessions: int = Field(default=0, alias="totalSessions")
    completed_sessions: int = Field(default=0, alias="completedSessions")
    total_minutes: int = Field(default=0, alias="totalMinutes")
    work_sessions: int = Field(default=0, alias="workSessions")
    break_sessions: int = Field(default=0, alias="breakSessions")

    @classmethod
    def from_sessions(cls, sessions: list[Session]) -> "SessionStats":
        """Aggregate the same way the local history screen does."""
        completed = [s for s in sessions if s.completed]
        return cls(
            total_sessions=len(sessions),
            completed_sessions=len(completed),
            total_minutes=sum(s.duration for s in completed),
            work_sessions=len([s for s in completed if s.type == "work"]),
            break_sessions=len([s for s in completed if s.type != "work"]),
        )


class APIResponse(BaseModel):
    """Envelope returned by every session endpoint."""

    model_config = ConfigDict(extra="allow")

    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    message: str | None = None
    error: str | None = None

    def session(self) -> Session | None:
        """Extract ``data.session`` as a Session, if present."""
        raw = self.data.get("session")
        if raw is None:
            return None
        return Session.model_validate(raw)

    def sessions(self) -> list[Session]:
        """Extract ``data.sessions`` as a list of Session."""
        return [Session.model_validate(s) for s in self.data.get("sessions", [])]
