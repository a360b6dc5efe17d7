"""Configuration management for the challan notifier."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "Challan Notifier - WhatsApp Delivery Status"
DEFAULT_APP_VERSION = "0.1.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


class Settings(BaseModel):
    """Application settings read from the environment."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Environment
    env: str = Field(default_factory=lambda: os.getenv("ENV", "dev"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*"))
    enable_docs: bool = Field(default_factory=lambda: os.getenv("NOTIFIER_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default_factory=lambda: os.getenv("DOCS_URL", "/docs"))

    # Operator-side dispatch; provider credentials are read by the adapter itself
    whatsapp_template_name: str = Field(default_factory=lambda: os.getenv("WHATSAPP_TEMPLATE_NAME", "hello_world"))
    whatsapp_template_language: str = Field(
        default_factory=lambda: os.getenv("WHATSAPP_TEMPLATE_LANGUAGE", "en_US")
    )
    dispatch_interval_seconds: float = Field(default_factory=lambda: _env_float("DISPATCH_INTERVAL_SECONDS", 1.0))
    websocket_url: str = Field(default_factory=lambda: os.getenv("WEBSOCKET_URL", "ws://localhost:8000/ws"))

    # Fan-out
    observer_queue_size: int = Field(default_factory=lambda: _env_int("OBSERVER_QUEUE_SIZE", 100))

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
