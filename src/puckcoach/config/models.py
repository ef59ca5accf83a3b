"""Pydantic models for central YAML configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator

from puckcoach.constants import (
    ANALYSIS_FPS,
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_UPLOAD_URL,
    MAX_INLINE_BYTES,
    MAX_UPLOAD_BYTES,
    MAX_VIDEO_FPS,
    SCHEMA_VERSION,
    VALIDATION_FPS,
)
from puckcoach.schemas.base import StrictSchemaModel


class GeminiConfig(StrictSchemaModel):
    """Hosted model endpoint settings."""

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1)
    upload_url: str = Field(default=DEFAULT_UPLOAD_URL, min_length=1)
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    api_key_env: str = Field(default="GEMINI_API_KEY", min_length=1)

    @field_validator("base_url", "upload_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("model")
    @classmethod
    def strip_models_prefix(cls, value: str) -> str:
        normalized = value.strip()
        if normalized.startswith("models/"):
            return normalized[len("models/") :]
        return normalized


class RetryConfig(StrictSchemaModel):
    """Retry controls for model calls."""

    max_retries: int = Field(default=1, ge=0, le=5)
    retry_delay_seconds: float = Field(default=1.5, ge=0.0)


class CircuitBreakerConfig(StrictSchemaModel):
    """Circuit breaker thresholds."""

    failure_threshold: int = Field(default=3, ge=1, le=20)
    recovery_seconds: float = Field(default=60.0, gt=0.0)


class TimeoutConfig(StrictSchemaModel):
    """Request and validation timeout profile."""

    video_seconds: float = Field(default=120.0, gt=0)
    default_seconds: float = Field(default=90.0, gt=0)
    validation_clip_seconds: float = Field(default=120.0, gt=0)


class MediaConfig(StrictSchemaModel):
    """Media transfer and sampling policy."""

    max_inline_bytes: int = Field(default=MAX_INLINE_BYTES, gt=0)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)
    analysis_fps: int = Field(default=ANALYSIS_FPS, ge=1)
    validation_fps: int = Field(default=VALIDATION_FPS, ge=1)
    max_fps: int = Field(default=MAX_VIDEO_FPS, ge=1)

    @model_validator(mode="after")
    def validate_limits(self) -> "MediaConfig":
        if self.max_inline_bytes > self.max_upload_bytes:
            raise ValueError("max_inline_bytes cannot exceed max_upload_bytes")
        return self


class ValidationPolicyConfig(StrictSchemaModel):
    """Pre-flight validation policy.

    ``fail_open`` keeps a clip whose check timed out or errored in the flow as
    assumed-valid, with its confidence capped by the matching fallback value.
    """

    fail_open: bool = True
    timeout_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    error_confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class StorageConfig(StrictSchemaModel):
    """Local state storage."""

    db_path: Path = Path(".puckcoach/state.db")
    flow_state_ttl_days: int = Field(default=7, ge=1)
    max_results: int = Field(default=50, ge=1)


class AppConfig(StrictSchemaModel):
    """Central application configuration."""

    schema_version: str = Field(default=SCHEMA_VERSION, min_length=1)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    retries: RetryConfig = Field(default_factory=RetryConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    validation: ValidationPolicyConfig = Field(default_factory=ValidationPolicyConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
