"""
Environment variable loading and validation for BlinkGuard.

- BLINKGUARD_REGISTRY_PATH: JSON registry file (default: data/registry.json)
- BLINKGUARD_REGISTRY_DATABASE_URL: SQLAlchemy URL; when set the registry lives in SQL instead
- BLINKGUARD_ADMIN_TOKEN: token for POST /registry/verify (unset = endpoint disabled)
- BLINKGUARD_CORS_ORIGINS: comma-separated origins (default: *)
- BLINKGUARD_TRUSTED_PROGRAMS: extra trusted program IDs (comma-separated, base58)
- BLINKGUARD_TRUSTED_DOMAINS: extra trusted domain substrings (comma-separated)
- API_HOST / API_PORT: server bind address
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from blinkguard.guard_logging import get_logger

logger = get_logger(__name__)

# Project root: config is blinkguard/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_REGISTRY_PATH = Path("data") / "registry.json"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 3000


def load_blinkguard_env() -> None:
    """Load .env from project root. Safe to call multiple times; real env wins."""
    load_dotenv(_ENV_PATH, override=False)


def _get_str(name: str) -> str:
    return (os.getenv(name) or "").strip()


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def get_registry_path() -> Path:
    """Return the JSON registry location (relative paths resolve against cwd)."""
    load_blinkguard_env()
    raw = _get_str("BLINKGUARD_REGISTRY_PATH")
    return Path(raw) if raw else DEFAULT_REGISTRY_PATH


def get_registry_database_url() -> str | None:
    """Return the SQL registry URL, or None for the JSON file backend."""
    load_blinkguard_env()
    return _get_str("BLINKGUARD_REGISTRY_DATABASE_URL") or None


def get_admin_token() -> str | None:
    load_blinkguard_env()
    return _get_str("BLINKGUARD_ADMIN_TOKEN") or None


def get_cors_origins() -> list[str]:
    load_blinkguard_env()
    origins = _split_csv(_get_str("BLINKGUARD_CORS_ORIGINS"))
    return origins or ["*"]


def get_api_host() -> str:
    load_blinkguard_env()
    return _get_str("API_HOST") or DEFAULT_API_HOST


def get_api_port() -> int:
    """Return API_PORT (or PORT, as the hosted deployment sets it); default 3000."""
    load_blinkguard_env()
    raw = _get_str("API_PORT") or _get_str("PORT")
    if not raw:
        return DEFAULT_API_PORT
    try:
        return int(raw)
    except ValueError:
        logger.warning("config_invalid_port", value=raw, fallback=DEFAULT_API_PORT)
        return DEFAULT_API_PORT


def is_valid_program_id(program_id: str) -> bool:
    """True if program_id parses as a Solana public key."""
    try:
        Pubkey.from_string(program_id)
    except Exception:
        return False
    return True


def get_extra_trusted_programs() -> list[str]:
    """
    Extra trusted program IDs from env. Each is validated as a Solana
    PublicKey; invalid values are dropped and logged.
    """
    load_blinkguard_env()
    programs: list[str] = []
    for program_id in _split_csv(_get_str("BLINKGUARD_TRUSTED_PROGRAMS")):
        if is_valid_program_id(program_id):
            programs.append(program_id)
        else:
            logger.warning("config_invalid_trusted_program", program_id=program_id[:16] + "...")
    return programs


def get_extra_trusted_domains() -> list[str]:
    load_blinkguard_env()
    return _split_csv(_get_str("BLINKGUARD_TRUSTED_DOMAINS"))
