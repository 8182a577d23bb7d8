"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Silence watchdog
    silence_timeout_s: float = Field(
        default=9.0,
        gt=0.0,
        description="Seconds without speech activity before the 'are you there' prompt plays.",
    )

    # Speech capture
    speech_language: str = Field(default="en-US")
    finalize_delay_s: float = Field(
        default=1.5,
        gt=0.0,
        description="Quiet period after the last speech segment before an utterance is committed.",
    )
    restart_delay_s: float = Field(default=0.3, ge=0.0)
    max_restarts: int = Field(
        default=3,
        ge=0,
        description="Automatic engine restarts allowed inside one restart window.",
    )
    restart_window_s: float = Field(default=10.0, gt=0.0)
    network_retry_delays_s: tuple[float, ...] = Field(default=(0.5, 1.0, 2.0))

    # Clips
    clip_base_url: str = Field(default="/video_files")
    clip_directory: Path | None = Field(
        default=None,
        description="Optional local directory holding <clip>.mp4 files, verified on startup.",
    )
    console_clip_duration_s: float = Field(
        default=2.0,
        gt=0.0,
        description="Simulated length of non-looping clips in the console runner.",
    )

    # Remote classification (consumed by the session)
    remote_classifier_enabled: bool = Field(default=False)
    remote_classifier_endpoint: str | None = Field(
        default=None,
        description="URL of the analyze-speech endpoint, e.g. http://localhost:8000/api/analyze-speech",
    )
    remote_classifier_timeout_s: float = Field(default=8.0, gt=0.0)
    max_utterance_chars: int = Field(default=2000, gt=0)

    # LLM connectivity (served by the analyze-speech endpoint)
    llm_provider: Literal["openai", "self_hosted_vllm"] = Field(default="openai")
    llm_endpoint: str | None = Field(
        default=None, description="HTTP endpoint for the self-hosted inference server."
    )
    llm_api_key: str | None = Field(default=None)
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier for the selected provider.",
    )
    llm_timeout_s: float = Field(default=8.0, gt=0.0)

    @field_validator("network_retry_delays_s")
    @classmethod
    def non_negative_delays(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if any(delay < 0 for delay in value):
            raise ValueError("Retry delays must not be negative.")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
