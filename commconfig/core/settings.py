"""Application settings for the commconfig service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SNAPSHOT_PATH = Path(__file__).resolve().parent.parent / "data" / "snapshot.json"


class Settings(BaseSettings):
    """Centralised configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="COMMCONFIG_", case_sensitive=False)

    app_name: str = "commconfig"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Configuration snapshot
    snapshot_path: Path = Field(default_factory=lambda: DEFAULT_SNAPSHOT_PATH)

    # Gateway uptime; None keeps the tunables shipped in the snapshot
    probe_timeout_ms: int | None = None
    uptime_ttl_seconds: int | None = None
    probe_workers: int = 16
    probe_user_agent: str = "commconfig-uptime/1.0"

    # Rate limiting / monitoring
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    rate_limit_storage_url: str | None = None
    redis_url: str | None = None
    enable_prometheus: bool = True
    metrics_namespace: str = "commconfig"

    @property
    def resolved_rate_limit_storage(self) -> str:
        if self.rate_limit_storage_url:
            return self.rate_limit_storage_url
        if self.redis_url:
            return f"redis://{self.redis_url.split('://')[-1]}"
        return "memory://"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["DEFAULT_SNAPSHOT_PATH", "Settings", "get_settings"]
