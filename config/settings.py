"""
config/settings.py

- Reads environment variables (and .env) and exposes them as application-wide settings.
- Uses pydantic v2 / pydantic-settings v2.
- The hosted data API (records + identity) is reached through DATA_API_BASE_URL;
  nothing in this service owns a database connection.
"""

from typing import List, Literal
from pydantic import field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # App / runtime
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "School Records API"
    APP_DESCRIPTION: str = "K-12 student records, grading and attendance backend"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # comma separated string -> List[str]
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            # "a,b , c" -> ["a","b","c"]
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # Hosted data API
    # =========================
    DATA_API_BASE_URL: str = "http://localhost:54321"
    DATA_API_KEY: str = "dev-service-key"
    DATA_API_TIMEOUT: int = 10

    @computed_field  # type: ignore[misc]
    @property
    def DATA_REST_URL(self) -> str:
        """Table resources live under /rest/v1."""
        return f"{self.DATA_API_BASE_URL.rstrip('/')}/rest/v1"

    @computed_field  # type: ignore[misc]
    @property
    def DATA_AUTH_URL(self) -> str:
        return f"{self.DATA_API_BASE_URL.rstrip('/')}/auth/v1"

    # =========================
    # Grading
    # =========================
    # Fallback weights when no grading system is active (DepEd K-12)
    DEFAULT_WRITTEN_WORK_PERCENTAGE: float = 25.0
    DEFAULT_PERFORMANCE_TASK_PERCENTAGE: float = 50.0
    DEFAULT_QUARTERLY_ASSESSMENT_PERCENTAGE: float = 25.0
    PASSING_GRADE: float = 75.0

    # =========================
    # Analytics
    # =========================
    # At-risk scoring only counts attendance from the last N days
    ATTENDANCE_WINDOW_DAYS: int = 30

    # =========================
    # Logging / Misc
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# ✅ import `settings` anywhere
settings = Settings()
