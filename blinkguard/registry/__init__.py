"""
Community registry of malicious URLs: storage (store) and lookups (matcher).
"""

from blinkguard.registry.matcher import RegistryCheck, RegistryMatcher
from blinkguard.registry.models import MaliciousUrlEntry
from blinkguard.registry.store import (
    JsonFileBackend,
    RegistryBackend,
    RegistryStore,
    SQLAlchemyBackend,
    build_registry_backend,
    open_registry_store,
)

__all__ = [
    "JsonFileBackend",
    "MaliciousUrlEntry",
    "RegistryBackend",
    "RegistryCheck",
    "RegistryMatcher",
    "RegistryStore",
    "SQLAlchemyBackend",
    "build_registry_backend",
    "open_registry_store",
]
