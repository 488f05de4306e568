"""
Registry lookups: is this URL, or its hostname, flagged?

Only verified entries match. Unverified reports are advisory and never
produce a malicious verdict. A URL that cannot be parsed skips the hostname
stage instead of failing; storage errors still propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from blinkguard.guard_logging import get_logger, short_url
from blinkguard.registry.models import MaliciousUrlEntry
from blinkguard.registry.store import RegistryStore
from blinkguard.utils.urls import parse_hostname

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistryCheck:
    is_malicious: bool
    reason: str | None = None
    entry: MaliciousUrlEntry | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"isMalicious": self.is_malicious}
        if self.reason is not None:
            out["reason"] = self.reason
        if self.entry is not None:
            out["entry"] = self.entry.to_dict()
        return out


NOT_MALICIOUS = RegistryCheck(is_malicious=False)


class RegistryMatcher:
    def __init__(self, store: RegistryStore) -> None:
        self._store = store

    def check(self, url: str) -> RegistryCheck:
        """Exact verified URL match first, then a verified entry on the same hostname."""
        registry = self._store.read()

        for entry in registry:
            if entry.url == url and entry.verified:
                return self._hit(url, entry, "exact")

        hostname = parse_hostname(url)
        if hostname is None:
            return NOT_MALICIOUS

        for entry in registry:
            if entry.verified and parse_hostname(entry.url) == hostname:
                return self._hit(url, entry, "domain")

        return NOT_MALICIOUS

    @staticmethod
    def _hit(url: str, entry: MaliciousUrlEntry, match_type: str) -> RegistryCheck:
        logger.info(
            "registry_match",
            url=short_url(url),
            matched_url=short_url(entry.url),
            match_type=match_type,
        )
        return RegistryCheck(is_malicious=True, reason=entry.reason, entry=entry)
