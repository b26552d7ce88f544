"""
Connections Puzzle Service - Configuration Settings
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Connections Puzzle Service"
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # =========================
    # Server Configuration
    # =========================
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    # =========================
    # Cache
    # =========================
    CACHE_TTL_SECONDS: float = 86400.0  # 24 hours
    ENABLE_CACHE: bool = True

    # =========================
    # Health Monitoring
    # =========================
    HEALTH_CHECK_INTERVAL_SECONDS: float = 300.0  # 0 disables the probe

    # =========================
    # Fetch Behaviour
    # =========================
    FETCH_TIMEOUT_SECONDS: float = 10.0
    FETCH_RETRY_ATTEMPTS: int = 3
    FETCH_RETRY_DELAY_SECONDS: float = 1.0
    MAX_IN_FLIGHT_DATES: Optional[int] = None  # unbounded
    ALLOW_FUTURE_DATES: bool = False

    @field_validator("FETCH_TIMEOUT_SECONDS", "FETCH_RETRY_ATTEMPTS", "CACHE_TTL_SECONDS")
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("HEALTH_CHECK_INTERVAL_SECONDS", "FETCH_RETRY_DELAY_SECONDS")
    @classmethod
    def must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("MAX_IN_FLIGHT_DATES")
    @classmethod
    def validate_in_flight_limit(cls, v):
        if v is not None and v < 1:
            raise ValueError("must be at least 1 when set")
        return v

    # =========================
    # Puzzle Sources
    # =========================
    BACKEND_API_URL: str = "http://localhost:3001"
    STATIC_PUZZLES_PATH: str = ""

    # =========================
    # Logging
    # =========================
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = False


# Create global settings instance
settings = Settings()
