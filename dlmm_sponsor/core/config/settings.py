from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SuiNetwork = Literal["testnet", "mainnet", "devnet"]

DEFAULT_PACKAGE_ID = "0x6a01a88c704d76ef8b0d4db811dff4dd13104a35e7a125131fa35949d0bc2ada"
DEFAULT_FACTORY_ID = "0x160e34d10029993bccf6853bb5a5140bcac1794b7c2faccc060fb3d5b7167d7f"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DLMM_SPONSOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = Field(default=3001, gt=0, lt=65536)
    log_level: str = "info"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    enoki_private_key: str | None = None
    enoki_base_url: str = "https://api.enoki.mystenlabs.com"
    enoki_timeout_seconds: float = Field(default=30.0, gt=0)
    default_network: SuiNetwork = "testnet"

    package_id: str = DEFAULT_PACKAGE_ID
    factory_id: str = DEFAULT_FACTORY_ID
    allowed_modules: list[str] = Field(default_factory=lambda: ["position", "position_manager"])
    allowed_functions: list[str] = Field(
        default_factory=lambda: ["create_position", "create_position_simple", "add_liquidity_to_position"]
    )

    daily_limit: int = Field(default=3, ge=0)
    monthly_limit: int = Field(default=10, ge=0)
    total_value_limit: float = Field(default=50.0, ge=0)
    cost_per_operation: float = Field(default=0.08, ge=0)
    high_value_threshold: float = Field(default=100.0, ge=0)

    @field_validator("enoki_private_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().lower() or "info"


@lru_cache
def get_settings() -> Settings:
    return Settings()
