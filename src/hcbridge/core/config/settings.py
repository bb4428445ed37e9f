"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Health Connect bridge configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback to avoid exposing the bridge to your LAN/WAN.
    hcb_host: str = "127.0.0.1"
    hcb_port: int = 8001
    hcb_log_level: str = "info"
    # If binding to non-loopback, refuse to start unless this is set true
    # (there is no auth layer).
    hcb_allow_insecure_bind: bool = False

    # Health store
    store_backend: Literal["memory", "unavailable"] = "memory"
    memory_store_auto_grant: bool = True
    memory_store_auto_route_consent: bool = True

    # Reads
    page_size_max: int = 5000
    default_lookback_hours: int = 24


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
