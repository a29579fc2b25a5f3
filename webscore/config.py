"""Application configuration settings."""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Narrative generation (optional collaborator)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"
    NARRATIVE_TIMEOUT: int = 60  # seconds, whole call including retries
    NARRATIVE_MAX_TOKENS: int = 2500
    NARRATIVE_TEMPERATURE: float = 0.7

    # Renderer pool
    MAX_RENDERERS: int = 3
    PAGE_TIMEOUT: int = 30  # seconds per navigation
    VIEWPORT_WIDTH: int = 1280
    VIEWPORT_HEIGHT: int = 720
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Batches and sessions
    MAX_URLS_PER_BATCH: int = 10
    SESSION_TTL: int = 1800  # 30 minutes from creation
    SESSION_SWEEP_INTERVAL: int = 300  # 5 minutes
    SHUTDOWN_GRACE: int = 10  # seconds to let batches stop between URLs

    # Accessibility engine
    AXE_SOURCES: List[str] = [
        "https://unpkg.com/axe-core@4.8.2/axe.min.js",
        "https://cdn.jsdelivr.net/npm/axe-core@4.8.2/axe.min.js",
        "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.8.2/axe.min.js",
    ]
    AXE_LOAD_TIMEOUT: int = 10  # seconds per source
    AXE_RUN_TIMEOUT: int = 30

    # Thresholds
    TOUCH_TARGET_MIN_SIZE: int = 44  # px
    SLOW_LOAD_THRESHOLD_MS: int = 3000

    # Connection pool limits
    AIOHTTP_CONNECTION_LIMIT: int = 20

    # Paths
    REPORTS_DIR: str = "./reports"

    # Localization
    LANGUAGE: str = "en"  # Supported: en, ja

    # HTTP
    CORS_ORIGINS: str = "*"
    STATUS_STREAM_INTERVAL: float = 1.0  # seconds between SSE snapshots
    MAX_SSE_DURATION: int = 3600  # 1 hour max SSE connection

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("OPENAI_API_KEY", mode="before")
    @classmethod
    def clean_api_key(cls, value: Optional[str]) -> Optional[str]:
        """Strip stray whitespace and drop keys that are obviously malformed."""
        if value is None:
            return None
        value = "".join(str(value).split())
        if not value:
            return None
        if not value.startswith("sk-"):
            logger.error("Invalid OPENAI_API_KEY format, narrative generation disabled")
            return None
        return value

    @property
    def narrative_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    def ensure_dirs(self) -> None:
        """Create necessary directories if they don't exist."""
        Path(self.REPORTS_DIR).mkdir(parents=True, exist_ok=True)


settings = Settings()
