"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (e.g. "sqlite://" for local runs and tests).
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="fitflow")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=20)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # External workout planner (optional; plans fall back to the local engine)
    WORKOUT_PLANNER_API_URL: Optional[str] = Field(default=None)
    WORKOUT_PLANNER_API_KEY: Optional[str] = Field(default=None)
    WORKOUT_PLANNER_TIMEOUT_S: float = Field(default=12.0, gt=0)

    # External exercise search (api-ninjas compatible)
    EXERCISES_API_URL: str = Field(default="https://api.api-ninjas.com/v1/exercises")
    EXERCISES_API_KEY: Optional[str] = Field(default=None)
    EXERCISES_API_TIMEOUT_S: float = Field(default=10.0, gt=0)
    EXERCISE_LOOKUP_LIMIT: int = Field(default=4, ge=1, le=20)

    # Mood signal
    MOOD_RECENCY_HOURS: int = Field(default=24, ge=1)
    MOOD_LOOKBACK_LIMIT: int = Field(default=5, ge=1)

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


# Global settings instance
settings = Settings()
