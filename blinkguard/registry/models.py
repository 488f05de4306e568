"""
Registry entities.

A MaliciousUrlEntry is one community report, keyed by its exact URL string.
Reports start unverified; only an admin verify changes that flag.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Mapping

from blinkguard.core.exceptions import InvalidInputError
from blinkguard.utils.urls import parse_hostname


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class MaliciousUrlEntry:
    """Stored registry record."""

    url: str
    domain: str
    """Hostname derived from url when reported."""
    reason: str
    reported_by: str
    reported_at: int
    """Unix timestamp (milliseconds) assigned by the server."""
    verified: bool = False

    @classmethod
    def from_report(
        cls,
        url: str,
        reason: str,
        reported_by: str,
        *,
        reported_at: int | None = None,
    ) -> MaliciousUrlEntry:
        """
        Build a new unverified entry from a user report. Raises
        InvalidInputError when a field is empty or the URL has no hostname.
        """
        for name, value in (("url", url), ("reason", reason), ("reportedBy", reported_by)):
            if not isinstance(value, str) or not value.strip():
                raise InvalidInputError(f"{name} is required")
        domain = parse_hostname(url)
        if domain is None:
            raise InvalidInputError("url must be an absolute URL with a hostname")
        return cls(
            url=url,
            domain=domain,
            reason=reason,
            reported_by=reported_by,
            reported_at=reported_at if reported_at is not None else now_millis(),
            verified=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "reason": self.reason,
            "reportedBy": self.reported_by,
            "reportedAt": self.reported_at,
            "verified": self.verified,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MaliciousUrlEntry:
        if not isinstance(data, Mapping) or not isinstance(data.get("url"), str):
            raise InvalidInputError("registry entry must be an object with a string url")
        url = data["url"]
        verified = data.get("verified", False)
        if not isinstance(verified, bool):
            raise InvalidInputError(f"registry entry {url} has a non-boolean verified flag")
        return cls(
            url=url,
            domain=str(data.get("domain") or parse_hostname(url) or ""),
            reason=str(data.get("reason") or ""),
            reported_by=str(data.get("reportedBy") or ""),
            reported_at=int(data.get("reportedAt") or 0),
            verified=verified,
        )
