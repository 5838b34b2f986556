"""
Application configuration.

Centralized environment-based settings using Pydantic v2.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field


class Settings(BaseSettings):
    # --------------------
    # Environment
    # --------------------
    ENV: str = "dev"

    # --------------------
    # CORS
    # --------------------
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        ],
        description="Allowed CORS origins for frontend",
    )

    # --------------------
    # LLM
    # --------------------
    GEMINI_API_KEY: Optional[str] = Field(
        None,
        description="Gemini API key; never logged or sent in payloads",
    )
    TEXT_MODEL: str = "gemini-3-flash-preview"
    IMAGE_MODEL: str = "gemini-2.5-flash"
    REQUEST_TIMEOUT_SEC: float = Field(120.0, gt=0)

    # --------------------
    # Analysis input
    # --------------------
    MAX_IMAGE_BYTES: int = Field(5 * 1024 * 1024, gt=0)
    DEFAULT_MODE: str = Field("text", pattern="^(text|image)$")

    # --------------------
    # Sessions
    # --------------------
    SESSION_TTL_SECONDS: int = 30 * 60

    # --------------------
    # Rate limiting
    # --------------------
    ANALYSIS_RATE_LIMIT: str = "10/minute"

    # --------------------
    # Observability
    # --------------------
    MLFLOW_TRACKING_URI: Optional[str] = None
    SENTRY_DSN: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="TRADESCOUT_",
        extra="ignore",
    )


settings = Settings()
