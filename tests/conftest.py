"""
Pytest fixtures for BlinkGuard tests. Each test gets its own registry file under tmp_path.
"""

from __future__ import annotations

import pytest

from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.config.settings import Settings
from blinkguard.registry.store import JsonFileBackend, RegistryStore

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def registry_path(tmp_path):
    return tmp_path / "data" / "registry.json"


@pytest.fixture
def settings(registry_path):
    """Settings pointing at a temporary JSON registry, admin endpoint enabled."""
    return Settings(registry_path=registry_path, admin_token=ADMIN_TOKEN)


@pytest.fixture
def store(registry_path):
    """Opened JSON-backed RegistryStore; closed after the test."""
    registry_store = RegistryStore(JsonFileBackend(registry_path)).open()
    yield registry_store
    registry_store.close()


@pytest.fixture
def service(store):
    return SafetyAnalysisService(store)


@pytest.fixture
def client(settings):
    """FastAPI TestClient with the lifespan running (registry store opened from settings)."""
    from fastapi.testclient import TestClient

    from blinkguard.api_server.server import create_app

    with TestClient(create_app(settings)) as test_client:
        yield test_client
