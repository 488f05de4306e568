"""
Tests for the FastAPI server: /health, /analyze and the /registry routes,
including error mapping to {"detail": ...} responses.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from blinkguard.api_server.server import create_app
from blinkguard.config.settings import Settings
from blinkguard.registry.store import JsonFileBackend, RegistryStore

USER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
EVIL_URL = "https://evil.example/claim"
ADMIN_TOKEN = "test-admin-token"  # matches the settings fixture


def _drain_tx(pre: int = 1000, post: int = 50) -> dict:
    return {
        "success": True,
        "logs": ["Program log: Instruction: Transfer"],
        "balanceChanges": [{"account": USER, "preBalance": pre, "postBalance": post, "change": post - pre}],
    }


def _report(client, url: str = EVIL_URL, reason: str = "fake airdrop") -> dict:
    resp = client.post("/registry/report", json={"url": url, "reason": reason, "reportedBy": "user1"})
    assert resp.status_code == 200
    return resp.json()


def _verify(client, url: str = EVIL_URL, verified: bool = True, token: str | None = ADMIN_TOKEN):
    headers = {"X-Admin-Token": token} if token is not None else {}
    return client.post("/registry/verify", json={"url": url, "verified": verified}, headers=headers)


# -----------------------------------------------------------------------------
# /health
# -----------------------------------------------------------------------------


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert isinstance(data["timestamp"], int)


# -----------------------------------------------------------------------------
# /analyze
# -----------------------------------------------------------------------------


def test_analyze_drainer(client):
    resp = client.post("/analyze", json={"transactionData": _drain_tx(), "domain": "unknown"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["level"] == "high_risk"
    assert data["score"] == 45
    assert [f["type"] for f in data["flags"]] == ["drainer", "domain_risk"]
    assert data["flags"][0]["severity"] == "critical"
    assert data["reasons"][0].startswith("High balance transfer detected: ")
    assert data["transactionSimulation"]["balanceChanges"][0]["account"] == USER


def test_analyze_trusted_domain_safe(client):
    tx = {"success": True, "logs": [], "balanceChanges": []}
    resp = client.post("/analyze", json={"transactionData": tx, "domain": "jup.ag"})
    assert resp.status_code == 200
    assert resp.json()["level"] == "safe"
    assert resp.json()["score"] == 100


def test_analyze_missing_domain_defaults_to_unknown(client):
    resp = client.post("/analyze", json={"transactionData": {"success": True}})
    assert resp.status_code == 200
    data = resp.json()
    assert data["score"] == 95
    assert data["flags"][0]["description"] == "Domain unknown has limited trust signals"


def test_analyze_domain_derived_from_blink_url(client):
    resp = client.post(
        "/analyze",
        json={
            "transactionData": {"success": True},
            "url": "https://dial.to/?action=solana-action:https://jup.ag/swap",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["score"] == 100


def test_analyze_missing_transaction_data(client):
    resp = client.post("/analyze", json={"domain": "jup.ag"})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Transaction data required"}


def test_analyze_malformed_transaction_data(client):
    bad = {"balanceChanges": [{"account": USER, "preBalance": 10, "postBalance": 5, "change": 7}]}
    resp = client.post("/analyze", json={"transactionData": bad})
    assert resp.status_code == 400
    assert "change" in resp.json()["detail"]


def test_analyze_wrong_body_type_is_400(client):
    resp = client.post("/analyze", json={"transactionData": ["not", "an", "object"]})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid request body or parameters"}


def test_analyze_flagged_url_overrides_simulation(client):
    _report(client, reason="wallet drainer")
    assert _verify(client).status_code == 200
    resp = client.post(
        "/analyze",
        json={"transactionData": {"success": True}, "domain": "jup.ag", "url": "https://evil.example/other"},
    )
    data = resp.json()
    assert data["level"] == "high_risk"
    assert data["score"] == 0
    assert data["flags"] == [
        {"type": "flagged_address", "severity": "critical", "description": "URL flagged in community registry"}
    ]
    assert data["reasons"] == ["Flagged as malicious: wallet drainer"]


# -----------------------------------------------------------------------------
# /registry
# -----------------------------------------------------------------------------


def test_check_requires_url(client):
    resp = client.get("/registry/check")
    assert resp.status_code == 400
    assert resp.json() == {"detail": "URL parameter required"}
    assert client.get("/registry/check", params={"url": ""}).status_code == 400


def test_check_unknown_url(client):
    resp = client.get("/registry/check", params={"url": EVIL_URL})
    assert resp.status_code == 200
    assert resp.json() == {"isMalicious": False}


def test_report_then_verify_then_check(client):
    """Reports only count once an admin verifies them."""
    data = _report(client)
    assert data["success"] is True
    assert data["entry"]["domain"] == "evil.example"
    assert data["entry"]["verified"] is False
    assert isinstance(data["entry"]["reportedAt"], int)

    assert client.get("/registry/check", params={"url": EVIL_URL}).json() == {"isMalicious": False}

    resp = _verify(client)
    assert resp.json() == {"success": True, "updated": True}

    check = client.get("/registry/check", params={"url": "https://evil.example/x"}).json()
    assert check["isMalicious"] is True
    assert check["reason"] == "fake airdrop"
    assert check["entry"]["url"] == EVIL_URL


def test_report_missing_fields(client):
    resp = client.post("/registry/report", json={"url": EVIL_URL, "reason": "x"})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Missing required fields"}


def test_report_url_without_hostname(client):
    resp = client.post("/registry/report", json={"url": "not a url", "reason": "x", "reportedBy": "u"})
    assert resp.status_code == 400


def test_latest_lists_all_entries_in_order(client):
    _report(client, "https://a.example/")
    _report(client, "https://b.example/")
    _report(client, "https://a.example/", reason="updated")
    resp = client.get("/registry/latest")
    assert resp.status_code == 200
    entries = resp.json()
    assert [e["url"] for e in entries] == ["https://a.example/", "https://b.example/"]
    assert entries[0]["reason"] == "updated"


def test_verify_rejects_bad_token(client):
    _report(client)
    assert _verify(client, token=None).status_code == 401
    assert _verify(client, token="wrong").status_code == 401
    assert client.get("/registry/latest").json()[0]["verified"] is False


def test_verify_missing_entry(client):
    resp = _verify(client, url="https://never.example/")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "updated": False}


def test_verify_disabled_without_admin_token(registry_path):
    settings = Settings(registry_path=registry_path, admin_token=None)
    with TestClient(create_app(settings)) as test_client:
        resp = _verify(test_client, token="anything")
    assert resp.status_code == 403


def test_storage_failure_is_500(client, registry_path):
    registry_path.write_text("garbage", encoding="utf-8")
    resp = client.get("/registry/latest")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
    assert client.get("/registry/check", params={"url": EVIL_URL}).status_code == 500


def test_injected_store_stays_open(registry_path):
    registry_store = RegistryStore(JsonFileBackend(registry_path))
    settings = Settings(registry_path=registry_path)
    with TestClient(create_app(settings, store=registry_store)) as test_client:
        assert test_client.get("/registry/latest").json() == []
    assert registry_store.is_open is True
    registry_store.close()


def test_cors_headers(settings):
    with TestClient(create_app(settings)) as test_client:
        resp = test_client.get("/health", headers={"Origin": "chrome-extension://abcdef"})
    assert resp.headers.get("access-control-allow-origin") == "*"
