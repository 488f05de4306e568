"""
BlinkGuard API Python client.

Thin requests wrapper over the HTTP API, for integrations (bots, the
extension backend, scripts) that consume verdicts and registry lookups.

Usage:
    from blinkguard.client import BlinkGuardClient
    client = BlinkGuardClient("http://localhost:3000")
    verdict = client.analyze({"success": True, "logs": [], "balanceChanges": []}, domain="jup.ag")
"""

from __future__ import annotations

from typing import Any

import requests


class BlinkGuardClientError(Exception):
    """Raised when the API returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, response: requests.Response | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class BlinkGuardClient:
    """Client for the BlinkGuard safety API."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        *,
        admin_token: str | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.admin_token = admin_token
        self._session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        resp = self._session.request(
            method, url, params=params, json=json, headers=headers, timeout=self.timeout
        )
        if not resp.ok:
            is_json = resp.headers.get("content-type", "").startswith("application/json")
            detail = resp.json().get("detail", resp.text) if is_json else resp.text
            raise BlinkGuardClientError(
                f"API error: {detail}",
                status_code=resp.status_code,
                response=resp,
            )
        return resp

    def health(self) -> dict[str, Any]:
        """Liveness probe."""
        return self._request("GET", "/health").json()

    def analyze(
        self,
        transaction_data: dict[str, Any],
        domain: str | None = None,
        url: str | None = None,
    ) -> dict[str, Any]:
        """Score a simulated transaction. Returns the SafetyAnalysis JSON."""
        body: dict[str, Any] = {"transactionData": transaction_data}
        if domain is not None:
            body["domain"] = domain
        if url is not None:
            body["url"] = url
        return self._request("POST", "/analyze", json=body).json()

    def check_url(self, url: str) -> dict[str, Any]:
        """Registry lookup: {isMalicious, reason?, entry?}."""
        return self._request("GET", "/registry/check", params={"url": url}).json()

    def latest_registry(self) -> list[dict[str, Any]]:
        """Full registry, for local caching."""
        return self._request("GET", "/registry/latest").json()

    def report_url(self, url: str, reason: str, reported_by: str) -> dict[str, Any]:
        """Report a malicious URL. The stored entry starts unverified."""
        body = {"url": url, "reason": reason, "reportedBy": reported_by}
        return self._request("POST", "/registry/report", json=body).json()

    def verify_url(self, url: str, verified: bool = True) -> dict[str, Any]:
        """Admin: set the verified flag. Requires admin_token."""
        if not self.admin_token:
            raise ValueError("admin_token is required to verify registry entries")
        return self._request(
            "POST",
            "/registry/verify",
            json={"url": url, "verified": verified},
            headers={"X-Admin-Token": self.admin_token},
        ).json()
