"""
Environment configuration for the meeting settlement service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from typing import Any, Dict, Optional
from pathlib import Path
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application configuration
    APP_NAME: str = Field(default="Meeting Settlement Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "UTC"

    # Database configuration - support both individual fields and DATABASE_URL
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "meetings"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False
    DB_CONNECT_ARGS: Dict[str, Any] = {}

    # Redis (event fan-out)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Payment processor
    CURRENCY: str = "usd"
    STRIPE_API_KEY: Optional[str] = None
    STRIPE_API_VERSION: str = "2023-08-16"

    # Verification protocol
    VERIFICATION_RADIUS_METERS: float = 100.0
    OTP_LENGTH: int = 6
    MAX_OTP_ATTEMPTS: int = 3
    AUTO_SETTLE_ON_VERIFICATION: bool = True

    # Events
    EVENT_PUBLISHER: str = "logging"
    EVENT_CHANNEL: str = "booking-events"

    # Background tasks (Celery beat runs the settlement sweep)
    SWEEP_INTERVAL_SECONDS: int = 300
    TASK_BROKER_URL: Optional[str] = None
    TASK_RESULT_BACKEND: Optional[str] = None
    TASK_TIMEOUT: int = 600
    ENABLE_PERIODIC_TASKS: bool = True

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_FILE: Optional[str] = None
    LOG_SQL_QUERIES: bool = False
    ENABLE_STRUCTURED_LOGGING: bool = True

    # Validators
    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from .env"""
        return str(v).upper()

    @field_validator('EVENT_PUBLISHER')
    @classmethod
    def validate_event_publisher(cls, v: str) -> str:
        if v not in ("logging", "redis", "none"):
            raise ValueError("EVENT_PUBLISHER must be one of: logging, redis, none")
        return v

    @field_validator('OTP_LENGTH', 'MAX_OTP_ATTEMPTS')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator('VERIFICATION_RADIUS_METERS')
    @classmethod
    def validate_radius(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("VERIFICATION_RADIUS_METERS must be positive")
        return v

    def get_database_url(self) -> str:
        """Construct database URL from components or use provided URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def get_redis_url(self) -> str:
        """Get Redis URL"""
        return self.REDIS_URL

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
