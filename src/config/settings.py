"""Configuration settings loaded from environment variables."""

from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OverlapPolicy(str, Enum):
    """How overlapping reservations are arbitrated on one resource."""

    SINGLE_SLOT = "single_slot"
    CAPACITY = "capacity"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/reservations"
    db_pool_size: int = Field(default=10, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    redis_lock_ttl_seconds: int = 5

    # Locking
    lock_wait_seconds: float = Field(default=2.0, gt=0)

    # Pricing
    currency: str = Field(default="USD", min_length=3, max_length=3)
    period_length_hours: int = Field(default=24, gt=0)
    extra_driver_surcharge: Decimal = Field(default=Decimal("10"), ge=0)
    insurance_surcharge: Decimal = Field(default=Decimal("15"), ge=0)

    # Reservation lifecycle
    overlap_policy: OverlapPolicy = OverlapPolicy.SINGLE_SLOT
    initial_status: Literal["pending", "confirmed"] = "confirmed"
    release_unit_on_completion: bool = False
    admin_cancellation_reason: str = "Cancelled by admin"

    # Notifications
    notification_timeout_seconds: float = Field(default=5.0, gt=0)

    # Admin User IDs (comma-separated)
    admin_user_ids_csv: str = ""

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "vehicle-reservations"
    environment: str = "development"

    @property
    def admin_user_ids(self) -> list[str]:
        """Parse admin user IDs from comma-separated string."""
        if not self.admin_user_ids_csv:
            return []
        return [uid.strip() for uid in self.admin_user_ids_csv.split(",") if uid.strip()]


def load_settings() -> Settings:
    """Load and validate settings from environment."""
    return Settings()
