"""Configuration for the transcript automation process."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from automation.errors import ConfigurationError


DEFAULT_CATEGORIES: List[str] = ["Games", "Movies", "TV", "Comics", "Anime", "Tech"]


class AutomationSettings(BaseSettings):
    """Environment-driven configuration, loaded once at process start."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Language model
    openai_api_key: Optional[SecretStr] = Field(None, alias="OPENAI_API_KEY", description="OpenAI API key")
    llm_model: str = Field("gpt-4o-mini", alias="LLM_MODEL", description="Chat completion model name")
    llm_max_tokens: PositiveInt = Field(4096, alias="LLM_MAX_TOKENS", description="Max completion tokens")
    llm_temperature: NonNegativeFloat = Field(0.7, alias="LLM_TEMPERATURE", description="Sampling temperature")
    llm_request_timeout_seconds: PositiveFloat = Field(
        60,
        alias="LLM_REQUEST_TIMEOUT_SECONDS",
        description="Per-attempt timeout for the completion call",
    )
    llm_json_mode: bool = Field(True, alias="LLM_JSON_MODE", description="Request a JSON object response format")
    retry_attempts: PositiveInt = Field(3, alias="RETRY_ATTEMPTS", description="Max attempts for the completion call")
    retry_delay_seconds: NonNegativeFloat = Field(2.0, alias="RETRY_DELAY_SECONDS", description="Initial backoff delay")
    retry_multiplier: PositiveFloat = Field(2.0, alias="RETRY_MULTIPLIER", description="Backoff multiplier per attempt")
    prompt_template_path: Optional[Path] = Field(
        None,
        alias="PROMPT_TEMPLATE_PATH",
        description="Optional prompt template file containing {{TRANSCRIPT}}",
    )

    # Image search
    unsplash_enabled: bool = Field(True, alias="UNSPLASH_ENABLED", description="Use Unsplash search for images")
    unsplash_access_key: Optional[SecretStr] = Field(None, alias="UNSPLASH_ACCESS_KEY", description="Unsplash access key")
    unsplash_endpoint: str = Field(
        "https://api.unsplash.com/search/photos",
        alias="UNSPLASH_ENDPOINT",
        description="Unsplash photo search endpoint",
    )
    image_request_timeout_seconds: PositiveFloat = Field(
        10,
        alias="IMAGE_REQUEST_TIMEOUT_SECONDS",
        description="Image search request timeout",
    )

    # Content
    categories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        alias="CATEGORIES",
        description="Allowed article categories (JSON array)",
    )
    default_category: str = Field("Games", alias="DEFAULT_CATEGORY", description="Category used for unknown values")
    default_images: Dict[str, str] = Field(
        default_factory=dict,
        alias="DEFAULT_IMAGES",
        description="Category to default image URL mapping (JSON object)",
    )
    transcript_min_chars: PositiveInt = Field(100, alias="TRANSCRIPT_MIN_CHARS")
    transcript_max_chars: PositiveInt = Field(100_000, alias="TRANSCRIPT_MAX_CHARS")

    # Filesystem
    watch_dir: Path = Field(Path("transcripts/inbox"), alias="WATCH_DIR")
    processed_dir: Path = Field(Path("transcripts/processed"), alias="PROCESSED_DIR")
    failed_dir: Path = Field(Path("transcripts/failed"), alias="FAILED_DIR")
    articles_path: Path = Field(Path("data/articles.json"), alias="ARTICLES_PATH")
    backup_dir: Path = Field(Path("data/backups"), alias="BACKUP_DIR")
    max_backups: PositiveInt = Field(10, alias="MAX_BACKUPS", description="Backups kept after each append")

    # Watcher
    settle_seconds: NonNegativeFloat = Field(1.0, alias="SETTLE_SECONDS", description="Wait before first read")
    stability_seconds: NonNegativeFloat = Field(
        2.0,
        alias="STABILITY_SECONDS",
        description="Quiet window before a file counts as fully written",
    )
    poll_interval_seconds: PositiveFloat = Field(0.5, alias="POLL_INTERVAL_SECONDS")
    shutdown_grace_seconds: NonNegativeFloat = Field(30, alias="SHUTDOWN_GRACE_SECONDS")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit one JSON object per log line")
    log_file: Optional[Path] = Field(None, alias="LOG_FILE", description="Optional rotating log file")

    @field_validator("openai_api_key", "unsplash_access_key", mode="before")
    @classmethod
    def _blank_secret_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("CATEGORIES must be a JSON array") from exc
        return value

    @field_validator("categories")
    @classmethod
    def _non_empty_categories(cls, value: List[str]) -> List[str]:
        cleaned = [c.strip() for c in value if c and c.strip()]
        if not cleaned:
            raise ValueError("CATEGORIES must contain at least one category")
        return cleaned

    @field_validator("default_images", mode="before")
    @classmethod
    def _parse_default_images(cls, value: Any) -> Any:
        if value in (None, ""):
            return {}
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("DEFAULT_IMAGES must be a JSON object") from exc
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "AutomationSettings":
        if self.default_category not in self.categories:
            raise ValueError(f"DEFAULT_CATEGORY {self.default_category!r} is not one of CATEGORIES")
        if self.transcript_min_chars > self.transcript_max_chars:
            raise ValueError("TRANSCRIPT_MIN_CHARS must not exceed TRANSCRIPT_MAX_CHARS")
        return self


def load_settings(**overrides: Any) -> AutomationSettings:
    """Build the settings value; call once and pass it to every component."""
    try:
        return AutomationSettings(**overrides)
    except (ValidationError, SettingsError) as exc:
        raise ConfigurationError(f"Settings validation failed: {exc}") from exc
