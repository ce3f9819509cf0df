"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream record store (Supabase / PostgREST)
    supabase_url: Optional[AnyHttpUrl] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"),
    )
    supabase_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_KEY", "supabase_key"),
    )
    source_table: str = Field(
        default="eburon_tts_current",
        validation_alias=AliasChoices("SOURCE_TABLE", "source_table"),
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias=AliasChoices("POLL_INTERVAL_SECONDS", "poll_interval_seconds"),
    )
    source_timeout_seconds: float = Field(
        default=10.0,
        ge=1,
        validation_alias=AliasChoices("SOURCE_TIMEOUT_SECONDS", "source_timeout_seconds"),
    )
    webhook_secret: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("WEBHOOK_SECRET", "webhook_secret"),
        description="Shared secret expected in the X-Webhook-Secret header of push deliveries.",
    )

    # Dispatch pacing
    pre_roll_seconds: float = Field(
        default=6.0,
        ge=0,
        validation_alias=AliasChoices("PRE_ROLL_SECONDS", "pre_roll_seconds"),
    )
    retrigger_delay_seconds: float = Field(
        default=0.05,
        ge=0,
        validation_alias=AliasChoices("RETRIGGER_DELAY_SECONDS", "retrigger_delay_seconds"),
    )
    pacing_jitter_ms: int = Field(
        default=300,
        ge=0,
        validation_alias=AliasChoices("PACING_JITTER_MS", "pacing_jitter_ms"),
    )
    dialogue_base_delay_ms: int = Field(
        default=200,
        ge=0,
        validation_alias=AliasChoices("DIALOGUE_BASE_DELAY_MS", "dialogue_base_delay_ms"),
    )

    # Idle watchdog
    watchdog_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        validation_alias=AliasChoices(
            "WATCHDOG_INTERVAL_SECONDS", "watchdog_interval_seconds"
        ),
    )
    idle_threshold_seconds: float = Field(
        default=6.0,
        gt=0,
        validation_alias=AliasChoices("IDLE_THRESHOLD_SECONDS", "idle_threshold_seconds"),
    )

    # Segmentation
    segment_soft_limit: int = Field(
        default=80,
        ge=1,
        validation_alias=AliasChoices("SEGMENT_SOFT_LIMIT", "segment_soft_limit"),
    )
    segment_hard_limit: int = Field(
        default=180,
        ge=1,
        validation_alias=AliasChoices("SEGMENT_HARD_LIMIT", "segment_hard_limit"),
    )

    # Show defaults
    default_language: str = Field(
        default="Tagalog (Taglish)",
        validation_alias=AliasChoices("DEFAULT_LANGUAGE", "default_language"),
    )
    default_voice_style: str = Field(
        default="breathy",
        validation_alias=AliasChoices("DEFAULT_VOICE_STYLE", "default_voice_style"),
    )

    # Observability
    max_turns: int = Field(
        default=500,
        ge=1,
        validation_alias=AliasChoices("MAX_TURNS", "max_turns"),
    )
    turn_log_dir: Path = Field(
        default_factory=lambda: Path("logs/turns"),
        validation_alias=AliasChoices("TURN_LOG_DIR", "turn_log_dir"),
    )
    log_dir: Path = Field(
        default_factory=lambda: Path("logs/app"),
        validation_alias=AliasChoices("LOG_DIR", "log_dir"),
    )

    @property
    def source_enabled(self) -> bool:
        return self.supabase_url is not None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["PROJECT_ROOT", "Settings", "get_settings"]
