"""Core application pieces shared by the engine, registry, and API server."""

from blinkguard.core.exceptions import (
    AdminAuthError,
    AnalysisError,
    BlinkGuardError,
    InvalidInputError,
    RegistryStorageError,
)

__all__ = [
    "AdminAuthError",
    "AnalysisError",
    "BlinkGuardError",
    "InvalidInputError",
    "RegistryStorageError",
]
