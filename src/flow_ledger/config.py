"""Deployment settings for Flow Ledger, read with pydantic-settings."""

from datetime import time
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flow_ledger.domain.value_objects import Currency


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Settings taken from ``FLOW_``-prefixed variables or a ``.env`` file.

        FLOW_SQLITE_PATH=/var/lib/flow-ledger/ledger.db
        FLOW_LOG_FORMAT=json
        FLOW_FORECAST_INCLUDE_PAUSED=false

    The preference fields only seed the stored ``AppSettings`` row when the
    database is first opened. From then on the stored row wins.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Flow Ledger"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool | None = Field(
        default=None, description="Defaults to on in development, off elsewhere"
    )

    sqlite_path: Path = Field(
        default=Path("flow_ledger.db"),
        description="Database file, or ':memory:' for a throwaway store",
    )

    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] | None = Field(
        default=None, description="Defaults to json in production, console elsewhere"
    )
    log_file: Path | None = None

    # Preferences
    default_currency: Currency = Currency.USD
    default_tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    default_reminder_days_before: int = Field(default=2, ge=0)
    default_reminder_time: time = time(9, 0)
    enable_reminders: bool = True

    invoice_due_days: int = Field(default=30, ge=0)
    forecast_days: int = Field(default=30, ge=1)
    forecast_include_paused: bool = Field(
        default=True, description="Count paused subscriptions as forecast outflows"
    )

    @model_validator(mode="after")
    def _apply_environment_defaults(self) -> "Settings":
        if self.debug is None:
            self.debug = self.environment == Environment.DEVELOPMENT
        if self.log_format is None:
            self.log_format = "json" if self.is_production else "console"
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings; ``get_settings.cache_clear()`` reloads them."""
    return Settings()
