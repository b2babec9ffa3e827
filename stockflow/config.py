"""Configuration management for the stock and order service."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_port: int = Field(default=8000, description="API server port")
    api_host: str = Field(default="0.0.0.0", description="API server host")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Redis Configuration
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    reservation_backend: Literal["memory", "redis"] = Field(
        default="memory", description="Where session reservations are kept"
    )
    session_ttl: int = Field(
        default=1800, description="Session reservation map TTL in seconds"
    )

    # Inventory Ledger
    stock_max_attempts: int = Field(
        default=5, ge=1, description="Compare-and-swap attempts per stock adjustment"
    )
    stock_retry_delay: float = Field(
        default=0.01, ge=0, description="Initial backoff between stock attempts in seconds"
    )

    # Reservations
    reservation_ttl: int = Field(
        default=0,
        ge=0,
        description="Age in seconds after which a reservation is swept (0 disables)",
    )

    # Fulfillment Scheduler
    fulfillment_enabled: bool = Field(default=True, description="Run the scheduler")
    fulfillment_interval_min: float = Field(default=10.0, ge=0)
    fulfillment_interval_max: float = Field(default=20.0, ge=0)
    fulfillment_delay_min: float = Field(default=1.0, ge=0)
    fulfillment_delay_max: float = Field(default=5.0, ge=0)

    # Catalog
    seed_catalog: bool = Field(default=True, description="Seed demo products on startup")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Jitter bounds must be ordered."""
        if self.fulfillment_interval_min > self.fulfillment_interval_max:
            raise ValueError("fulfillment_interval_min exceeds fulfillment_interval_max")
        if self.fulfillment_delay_min > self.fulfillment_delay_max:
            raise ValueError("fulfillment_delay_min exceeds fulfillment_delay_max")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
