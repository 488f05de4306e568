"""
Configuration layer: .env loading (env) and typed settings (settings).
"""

from blinkguard.config.settings import Settings, get_settings, reset_settings_cache

__all__ = ["Settings", "get_settings", "reset_settings_cache"]
