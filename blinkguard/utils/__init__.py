"""Small helpers: URL hostnames and blink parsing."""

from blinkguard.utils.blink import BlinkMetadata, domain_for_url, extract_blink_metadata, is_blink_url
from blinkguard.utils.urls import parse_hostname

__all__ = [
    "BlinkMetadata",
    "domain_for_url",
    "extract_blink_metadata",
    "is_blink_url",
    "parse_hostname",
]
