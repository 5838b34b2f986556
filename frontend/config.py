"""
Frontend configuration.

Loads frontend-specific environment variables only.
Safely ignores unrelated backend environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field


class Settings(BaseSettings):
    """
    Frontend application settings.

    Environment variables must be prefixed with:
        TRADESCOUT_

    Example:
        TRADESCOUT_API_BASE_URL=http://localhost:8000
    """

    API_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL for backend API",
        min_length=1,
    )

    # Analyses include live web search; allow for slow answers
    REQUEST_TIMEOUT_SEC: float = Field(default=180.0, gt=0)

    STORAGE_SECRET: str = "dev-secret"

    MAX_UPLOAD_MB: int = 5

    # IMPORTANT:
    # - env_prefix prevents backend/frontend collisions
    # - extra='ignore' safely ignores backend env variables
    model_config = ConfigDict(
        env_file=".env",
        env_prefix="TRADESCOUT_",
        extra="ignore",
    )


settings = Settings()
