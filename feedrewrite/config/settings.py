"""
FeedRewrite Configuration System
================================

Process-level settings for the plugins: network limits, remote API
defaults and logging. Environment variables override Field defaults.

Per-user plugin configuration (rules, enabled feeds, prompts) is NOT
here: it belongs to the host and reaches the plugins through
``feedrewrite.host.UserConfiguration``.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class HttpSettings(BaseModel):
    """Shared HTTP client configuration."""
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; feedrewrite)",
        description="User-Agent sent with outgoing requests",
    )
    max_retries: int = Field(default=2, ge=0, le=5, description="Retries for idempotent requests")
    backoff_factor: float = Field(default=0.5, ge=0.0, le=10.0, description="urllib3 retry backoff factor")


class InlineImageSettings(BaseModel):
    """Image inlining limits."""
    max_file_size: int = Field(
        default=5 * 1024 * 1024, ge=1024, description="Largest image to inline, in bytes"
    )
    download_timeout: float = Field(default=10.0, gt=0, le=60, description="Download timeout in seconds")
    user_agent: str = Field(default="feedrewrite/InlineImages", description="User-Agent for image downloads")
    default_mime_type: str = Field(default="image/jpeg", description="MIME type used when detection fails")


class XEmbedSettings(BaseModel):
    """fxtwitter API access for the X.com embed fix."""
    api_base: str = Field(default="https://api.fxtwitter.com", description="fxtwitter API base URL")
    timeout: float = Field(default=5.0, gt=0, le=60, description="API timeout in seconds")

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize the base URL."""
        return v.rstrip("/")


class AISettings(BaseModel):
    """Defaults for the OpenAI-compatible converter."""
    default_endpoint: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint used when the user did not set one",
    )
    default_model: str = Field(default="gpt-4o-mini", description="Model used when the user did not set one")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    request_timeout: float = Field(default=60.0, gt=0, le=600, description="API timeout in seconds")
    pending_batch_size: int = Field(default=5, ge=1, le=100, description="Deferred entries converted per batch")
    update_attempts: int = Field(default=3, ge=1, le=10, description="Attempts when storing a converted entry")


class LoggingSettings(BaseModel):
    """Logging configuration (used by the developer CLI)."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FeedRewriteSettings(BaseSettings):
    """Main plugin settings."""

    http: HttpSettings = Field(default_factory=HttpSettings)
    inline_images: InlineImageSettings = Field(default_factory=InlineImageSettings)
    x_embed: XEmbedSettings = Field(default_factory=XEmbedSettings)
    ai: AISettings = Field(default_factory=AISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="feedrewrite", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "FEEDREWRITE_",
        "extra": "ignore",
    }

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> FeedRewriteSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        return FeedRewriteSettings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


_settings: Optional[FeedRewriteSettings] = None


def get_settings(reload: bool = False) -> FeedRewriteSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
