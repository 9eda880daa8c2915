"""Configuration models for FocusBloom.

The API section mirrors the knobs the session client needs (base URL,
timeout, retry policy, mock mode, verbose logging). The sync section holds
the connectivity probe and queue housekeeping settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

PLACEHOLDER_API_HOST = "your-api-endpoint.com"


class APIConfig(BaseModel):
    """API configuration."""

    base_url: str = Field(default=f"https://{PLACEHOLDER_API_HOST}/api")
    timeout_ms: int = Field(default=10000, gt=0)
    retry_attempts: int = Field(default=3, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    use_mock_data: bool = Field(default=False)
    enable_logging: bool = Field(default=False)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip whitespace and trailing slashes from the base URL."""
        if not v or not v.strip():
            raise ValueError("base_url cannot be empty")
        return v.strip().rstrip("/")

    @property
    def is_placeholder(self) -> bool:
        """True when the base URL still points at the placeholder host."""
        return PLACEHOLDER_API_HOST in self.base_url

    @property
    def mock_mode(self) -> bool:
        """Whether the session API should bypass the network."""
        return self.use_mock_data or self.is_placeholder


class SyncConfig(BaseModel):
    """Sync configuration."""

    probe_url: str = Field(default="https://www.google.com/favicon.ico")
    probe_timeout_ms: int = Field(default=5000, gt=0)
    max_queue_age_hours: int = Field(default=24, gt=0)
    queue_key: str = Field(default="api_request_queue")

    @field_validator("probe_url")
    @classmethod
    def validate_probe_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("probe_url must be an http(s) URL")
        return v


class StorageConfig(BaseModel):
    """Local durable store configuration."""

    data_dir: str | None = Field(
        default=None, description="Override for the key-value store directory"
    )
    sessions_key: str = Field(default="pomodoro_sessions")
    token_key: str = Field(default="focusbloom_auth_token")


class AppConfig(BaseModel):
    """Main FocusBloom configuration."""

    api: APIConfig = Field(default_factory=APIConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
