"""
Tests for blink URL parsing (utils.blink).
"""

from __future__ import annotations

import pytest

from blinkguard.utils.blink import domain_for_url, extract_blink_metadata, is_blink_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("solana-action:https://jup.ag/swap/SOL-USDC", True),
        ("https://dial.to/?action=solana-action:https://evil.example/api", True),
        ("https://example.com/page?ref=1", False),
        ("https://example.com/page", False),
        ("not a url?action=x", False),
        ("", False),
        (None, False),
    ],
)
def test_is_blink_url(url, expected):
    assert is_blink_url(url) is expected


def test_extract_action_uri():
    meta = extract_blink_metadata("solana-action:https://jup.ag/swap/SOL-USDC", now=42)
    assert meta.domain == "jup.ag"
    assert meta.action_url == "https://jup.ag/swap/SOL-USDC"
    assert meta.timestamp == 42
    assert meta.to_dict() == {
        "url": "solana-action:https://jup.ag/swap/SOL-USDC",
        "domain": "jup.ag",
        "actionUrl": "https://jup.ag/swap/SOL-USDC",
        "timestamp": 42,
    }


def test_extract_action_query_param_percent_encoded():
    url = "https://dial.to/?action=solana-action%3Ahttps%3A%2F%2Fevil.example%2Fapi%2Fclaim"
    meta = extract_blink_metadata(url)
    assert meta.domain == "evil.example"
    assert meta.action_url == "https://evil.example/api/claim"
    assert meta.timestamp > 0


def test_extract_plain_action_query_param():
    meta = extract_blink_metadata("https://dial.to/?action=https://actions.example/donate")
    assert meta.domain == "actions.example"


def test_extract_non_blink_returns_none():
    assert extract_blink_metadata("https://jup.ag/swap") is None
    assert extract_blink_metadata(None) is None


def test_extract_blink_without_action_host_returns_none():
    assert extract_blink_metadata("solana-action:not-a-url") is None


def test_domain_for_url_prefers_action_domain():
    assert domain_for_url("https://dial.to/?action=solana-action:https://evil.example/api") == "evil.example"
    assert domain_for_url("https://jup.ag/swap") == "jup.ag"
    assert domain_for_url("garbage") is None
