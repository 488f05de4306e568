"""URL helpers shared by the registry and blink parsing."""

from __future__ import annotations

from urllib.parse import urlsplit


def parse_hostname(url: str | None) -> str | None:
    """
    Return the lowercased hostname of an absolute URL, or None when the URL
    is malformed or has no host (e.g. "evil.example/x" without a scheme).
    """
    if not url or not isinstance(url, str):
        return None
    try:
        host = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return host or None
