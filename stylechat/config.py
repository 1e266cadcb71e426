"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from stylechat.config import get_settings

    settings = get_settings()
    print(settings.llm.google_model)
    print(settings.history_database.url)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, PostgresDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MEDIA_CAPTION = "Please analyze this outfit and provide feedback"


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    default_provider: Literal["google", "local"] = Field(
        default="google", description="LLM provider used for generation"
    )

    # Google configuration
    google_api_key: str | None = Field(None, description="Google AI (Gemini) API key")
    google_model: str = Field(
        default="gemini-2.0-flash", description="Gemini model used for chat and image turns"
    )

    # Local model configuration
    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL for local model server (Ollama)",
    )
    local_model: str = Field(default="llava:7b", description="Local multimodal model name")

    # Generation parameters
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    top_p: float = Field(
        default=1.0,
        gt=0.0,
        le=1.0,
        description="Nucleus sampling cap",
    )
    top_k: int = Field(
        default=32,
        gt=0,
        description="Top-k sampling cap",
    )
    max_tokens: int = Field(
        default=4096,
        gt=0,
        le=16000,
        description="Maximum output tokens per reply",
    )
    timeout: int = Field(
        default=60,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("google_api_key", mode="before")
    @classmethod
    def normalize_google_key(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_provider_keys(self) -> "LLMSettings":
        """Ensure an API key is set for the selected provider."""
        if self.default_provider == "google" and not self.google_api_key:
            raise ValueError(
                "API key required for google provider. Set LLM_GOOGLE_API_KEY"
            )
        return self


class HistoryDatabaseSettings(BaseSettings):
    """Durable conversation history store (PostgreSQL) configuration."""

    url: PostgresDsn | None = Field(
        None,
        description="PostgreSQL URL for conversation history (unset = file fallback)",
    )
    pool_min_size: int = Field(default=1, ge=1, le=20, description="Minimum pool size")
    pool_max_size: int = Field(default=5, ge=1, le=50, description="Maximum pool size")
    connect_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for the store at startup before falling back",
    )

    model_config = SettingsConfigDict(
        env_prefix="HISTORY_DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | PostgresDsn | None) -> str | PostgresDsn | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "HistoryDatabaseSettings":
        """Ensure the pool can grow to at least its minimum size."""
        if self.pool_min_size > self.pool_max_size:
            raise ValueError(
                f"pool_min_size ({self.pool_min_size}) must not exceed "
                f"pool_max_size ({self.pool_max_size})"
            )
        return self


class HistoryFileSettings(BaseSettings):
    """Local file fallback store configuration."""

    dir: Path = Field(
        default=Path("./chat_history"),
        description="Directory holding one JSON file per user",
    )

    model_config = SettingsConfigDict(
        env_prefix="HISTORY_FILE_",
        env_file=".env",
        extra="ignore",
    )


class SessionSettings(BaseSettings):
    """Conversation session behavior."""

    max_exchanges: int | None = Field(
        default=None,
        gt=0,
        description=(
            "Number of recent user/model exchanges submitted to the model "
            "alongside the persona turn (unset = full history)."
        ),
    )
    serialize_per_user: bool = Field(
        default=True,
        description="Serialize interactions for the same user id within this process.",
    )
    default_caption: str = Field(
        default=DEFAULT_MEDIA_CAPTION,
        min_length=1,
        description="Caption used when an image arrives without a message",
    )

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        extra="ignore",
    )


class MediaSettings(BaseSettings):
    """Inline media (image upload) limits."""

    max_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Maximum size of one attachment in bytes",
    )
    allowed_mime_prefixes: list[str] = Field(
        default_factory=lambda: ["image/"],
        min_length=1,
        description="Allowed MIME type prefixes for attachments",
    )

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,  # Override any existing configuration
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, history stores, session, media, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        LLM_*: LLM provider configuration (see LLMSettings)
        HISTORY_DATABASE_*: Durable history store (see HistoryDatabaseSettings)
        HISTORY_FILE_*: File fallback store (see HistoryFileSettings)
        SESSION_*: Session behavior (see SessionSettings)
        MEDIA_*: Attachment limits (see MediaSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.llm.default_provider
        'google'
        >>> settings.media.max_bytes
        5242880
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="StyleChat",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=3000,
        gt=0,
        le=65535,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    history_database: HistoryDatabaseSettings = Field(default_factory=HistoryDatabaseSettings)
    history_file: HistoryFileSettings = Field(default_factory=HistoryFileSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "debug": self.debug,
                "llm_provider": self.llm.default_provider,
                "durable_history": self.history_database.url is not None,
                "max_exchanges": self.session.max_exchanges,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("STYLECHAT_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
