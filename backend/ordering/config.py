"""Application configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),  # Load root .env first, then backend/.env (overrides)
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Product ordering API (TMF622-style REST resource)
    api_base_url: str = "http://localhost:3000/api"
    api_timeout: float = 30.0

    # Network retries for the ordering API (exponential backoff)
    request_max_attempts: int = 3
    request_min_wait: float = 1.0
    request_max_wait: float = 10.0

    # Order creation retries on duplicate order ID (linear backoff: attempt * base_delay)
    order_create_max_attempts: int = Field(default=3, ge=1)
    order_create_base_delay: float = Field(default=0.1, ge=0.0)

    # Application
    log_level: str = "info"


settings = Settings()
