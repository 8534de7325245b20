# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Configuration management using Pydantic Settings."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from beartype import beartype
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with immutable configuration."""

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        frozen=True,  # Immutable settings
        validate_default=True,
        extra="forbid",
    )

    # Database
    database_url: str = Field(
        default="postgresql://localhost:5432/insurance",
        description="PostgreSQL connection URL",
        min_length=1,
    )
    database_pool_min: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Minimum database pool size",
    )
    database_pool_max: int = Field(
        default=10,
        ge=2,
        le=100,
        description="Maximum database pool size",
    )
    database_pool_timeout: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="Connection acquisition timeout in seconds",
    )
    database_command_timeout: float = Field(
        default=30.0,
        ge=5.0,
        le=300.0,
        description="Query execution timeout in seconds",
    )
    database_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a statement that fails on a lost connection",
    )

    # Clock
    batch_timezone: str = Field(
        default="Asia/Tokyo",
        min_length=1,
        description="IANA timezone the batch wall clock runs in",
    )

    # Contract lifecycle thresholds
    review_timeout_days: int = Field(
        default=30,
        ge=1,
        description="Days a contract may stay UNDER_REVIEW before cancellation",
    )
    payment_lapse_days: int = Field(
        default=60,
        ge=1,
        description="Days without payment before an APPROVED contract lapses",
    )
    payment_overdue_days: int = Field(
        default=30,
        ge=1,
        description="Days without payment before a contract is reported overdue",
    )
    payment_reminder_days: int = Field(
        default=15,
        ge=1,
        description="Days without payment before a reminder is due",
    )

    # Document request monitoring
    request_stale_days: int = Field(
        default=7,
        ge=1,
        description="Days a request may stay PROCESSING before it is stale",
    )

    # Triggers
    premium_update_hour: int = Field(default=2, ge=0, le=23)
    request_check_minute: int = Field(default=0, ge=0, le=59)
    contract_status_hour: int = Field(default=3, ge=0, le=23)
    payment_check_minute: int = Field(default=30, ge=0, le=59)
    weekly_report_weekday: int = Field(
        default=0, ge=0, le=6, description="Weekday for weekly reports (Monday=0)"
    )
    weekly_report_hour: int = Field(default=4, ge=0, le=23)
    monthly_report_day: int = Field(default=1, ge=1, le=31)
    monthly_report_hour: int = Field(default=5, ge=0, le=23)

    # Scheduler
    scheduler_drain_timeout_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=3600.0,
        description="Seconds stop() waits for in-flight runs before cancelling",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level",
    )

    @field_validator("database_pool_max")
    @classmethod
    def validate_pool_sizes(cls: type["Settings"], v: int, info: ValidationInfo) -> int:
        """Ensure pool max is greater than pool min."""
        if "database_pool_min" in info.data:
            min_size = info.data["database_pool_min"]
            if v < min_size:
                raise ValueError(
                    f"database_pool_max ({v}) must be >= database_pool_min ({min_size})"
                )
        return v

    @field_validator("batch_timezone")
    @classmethod
    def validate_timezone(cls: type["Settings"], v: str) -> str:
        """Reject timezone names the zoneinfo database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("payment_reminder_days")
    @classmethod
    def validate_reminder_before_overdue(
        cls: type["Settings"], v: int, info: ValidationInfo
    ) -> int:
        """A reminder must come due before the contract is reported overdue."""
        overdue = info.data.get("payment_overdue_days")
        if overdue is not None and v >= overdue:
            raise ValueError(
                f"payment_reminder_days ({v}) must be < payment_overdue_days ({overdue})"
            )
        return v


_settings: Settings | None = None


@beartype
def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None
