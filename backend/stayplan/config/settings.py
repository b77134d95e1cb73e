"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_NAMESPACE = "budget-app-"
DEFAULT_STORE_RECORD_KEY = "jimmi-budget-data"


class AppSettings(BaseSettings):
    """Configuration options for the revenue planning service."""

    app_name: str = Field(default="Stayplan Revenue Desk")

    storage_namespace: str = Field(
        default=DEFAULT_NAMESPACE,
        description="Key prefix shared by every persisted planning slot.",
    )
    local_database_url: str = Field(
        default="sqlite:///stayplan-local.db",
        description="SQLAlchemy URL of the durable local slot storage.",
    )

    store_database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy URL holding the shared remote snapshot record.",
    )
    store_record_key: str = Field(default=DEFAULT_STORE_RECORD_KEY)

    remote_store_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the service exposing /store for sync.",
    )
    remote_store_timeout_seconds: float = Field(default=15.0)
    sync_debounce_seconds: float = Field(default=2.0, ge=0.0)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="stayplan")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"store_database_url", "local_database_url"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_NAMESPACE",
    "DEFAULT_STORE_RECORD_KEY",
    "get_settings",
]
