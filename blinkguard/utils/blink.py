"""
Blink URL parsing.

A Blink is a link that encodes a Solana action, either as a
"solana-action:<action url>" URI or as a web URL carrying the action URL in
its "action" query parameter. Used to find the domain a transaction request
really comes from.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlsplit

from blinkguard.utils.urls import parse_hostname

SOLANA_ACTION_PREFIX = "solana-action:"
ACTION_QUERY_PARAM = "action"


@dataclass(frozen=True)
class BlinkMetadata:
    url: str
    domain: str
    action_url: str
    timestamp: int
    """Unix millis when the blink was parsed."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "actionUrl": self.action_url,
            "timestamp": self.timestamp,
        }


def _action_param(url: str) -> str | None:
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    values = parse_qs(parts.query, keep_blank_values=True).get(ACTION_QUERY_PARAM)
    if values is None:
        return None
    return values[0]


def is_blink_url(url: str | None) -> bool:
    if not url:
        return False
    if url.startswith(SOLANA_ACTION_PREFIX):
        return True
    return _action_param(url) is not None


def extract_blink_metadata(url: str | None, *, now: int | None = None) -> BlinkMetadata | None:
    """Parse a blink into its action URL and action domain; None if not a usable blink."""
    if not url or not is_blink_url(url):
        return None
    if url.startswith(SOLANA_ACTION_PREFIX):
        action_url = url[len(SOLANA_ACTION_PREFIX):]
    else:
        action_url = _action_param(url) or url
    # dial.to style links nest the prefixed form inside the query parameter
    if action_url.startswith(SOLANA_ACTION_PREFIX):
        action_url = action_url[len(SOLANA_ACTION_PREFIX):]
    domain = parse_hostname(action_url)
    if domain is None:
        return None
    return BlinkMetadata(
        url=url,
        domain=domain,
        action_url=action_url,
        timestamp=now if now is not None else int(time.time() * 1000),
    )


def domain_for_url(url: str | None) -> str | None:
    """Action domain for blinks, the URL's own hostname otherwise."""
    metadata = extract_blink_metadata(url)
    if metadata is not None:
        return metadata.domain
    return parse_hostname(url)
