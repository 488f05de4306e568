"""
Application settings.

Typed, immutable view over the environment (see config.env) used by the
API server, the admin CLI and main.py. get_settings() caches the result;
tests call reset_settings_cache() after changing env vars.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from blinkguard.config import env


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process."""

    registry_path: Path
    registry_database_url: str | None = None
    admin_token: str | None = None
    cors_origins: tuple[str, ...] = ("*",)
    api_host: str = env.DEFAULT_API_HOST
    api_port: int = env.DEFAULT_API_PORT
    log_level: str = "INFO"
    log_format: str = "json"
    extra_trusted_programs: tuple[str, ...] = field(default_factory=tuple)
    extra_trusted_domains: tuple[str, ...] = field(default_factory=tuple)

    @property
    def uses_sql_registry(self) -> bool:
        return self.registry_database_url is not None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the current application settings (cached per process)."""
    env.load_blinkguard_env()
    return Settings(
        registry_path=env.get_registry_path(),
        registry_database_url=env.get_registry_database_url(),
        admin_token=env.get_admin_token(),
        cors_origins=tuple(env.get_cors_origins()),
        api_host=env.get_api_host(),
        api_port=env.get_api_port(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        log_format=(os.getenv("LOG_FORMAT") or "json").strip().lower(),
        extra_trusted_programs=tuple(env.get_extra_trusted_programs()),
        extra_trusted_domains=tuple(env.get_extra_trusted_domains()),
    )


def reset_settings_cache() -> None:
    get_settings.cache_clear()
