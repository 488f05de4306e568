"""
Request-scoped dependencies.

The service (and the registry store inside it) lives on app.state; it is
created in the app lifespan, never at import time.
"""

from __future__ import annotations

from fastapi import Request

from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.config.settings import Settings


def get_service(request: Request) -> SafetyAnalysisService:
    """Dependency: the app's SafetyAnalysisService."""
    return request.app.state.service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
