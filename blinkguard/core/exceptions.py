"""
Application-level exceptions.

Domain exceptions with stable error codes for the API layer and the admin CLI.
Input validation maps to 400, storage and analysis failures to 500.
"""

from __future__ import annotations


class BlinkGuardError(Exception):
    """Base class for all BlinkGuard errors."""

    code = "blinkguard_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidInputError(BlinkGuardError, ValueError):
    """A required field is missing or a payload does not match the data model."""

    code = "invalid_input"


class RegistryStorageError(BlinkGuardError):
    """Reading or writing the malicious-URL registry failed."""

    code = "registry_storage"


class AnalysisError(BlinkGuardError):
    """Unexpected failure while scoring a transaction; no partial result exists."""

    code = "analysis_failed"


class AdminAuthError(BlinkGuardError):
    """Admin operation rejected: token missing, wrong, or admin endpoints disabled."""

    code = "admin_auth"

    def __init__(self, message: str, *, disabled: bool = False) -> None:
        super().__init__(message)
        self.disabled = disabled
