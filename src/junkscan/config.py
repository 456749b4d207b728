"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from junkscan.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Liveness endpoint
    port: int = 3000

    # Telegram
    telegram_bot_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("telegram_bot_token", "telegram_token"),
    )
    telegram_chat_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("telegram_chat_id", "chat_id"),
    )
    telegram_timeout_seconds: float = 10.0

    # Signal store
    store_credentials: SecretStr | None = None
    database_url: str = "sqlite:///junkscan.db"

    # Feed
    feed_url: str = "https://api.llama.fi/protocols"
    feed_timeout_seconds: float = 20.0

    # Scan thresholds
    min_tvl: float = 5000
    max_tvl: float = 1_500_000
    max_listing_age_seconds: int = 30 * 86400
    scan_interval_ms: int = 5 * 60 * 1000

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


@dataclass(frozen=True)
class ScanConfig:
    """Numeric thresholds for one scanner process."""

    min_tvl: float
    max_tvl: float
    max_listing_age_seconds: int
    scan_interval_ms: int

    def __post_init__(self) -> None:
        if self.min_tvl > self.max_tvl:
            raise ConfigError(f"min_tvl ({self.min_tvl}) exceeds max_tvl ({self.max_tvl})")
        if self.max_listing_age_seconds <= 0:
            raise ConfigError("max_listing_age_seconds must be positive")
        if self.scan_interval_ms <= 0:
            raise ConfigError("scan_interval_ms must be positive")

    @property
    def scan_interval_seconds(self) -> float:
        return self.scan_interval_ms / 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> ScanConfig:
        return cls(
            min_tvl=settings.min_tvl,
            max_tvl=settings.max_tvl,
            max_listing_age_seconds=settings.max_listing_age_seconds,
            scan_interval_ms=settings.scan_interval_ms,
        )


def get_settings() -> Settings:
    return Settings()
