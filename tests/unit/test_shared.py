"""
Unit tests for the shared/ utility modules.

Covers:
- shared.datetime_utils  (parse_datetime, parse_window_bound)
- shared.ip_utils        (get_client_ip, is_public_address)
- shared.crypto          (hash_token, visitor_key)
- shared.logging         (should_sample, hash_ip)
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from config import LoggingSettings
from shared import logging as shared_logging
from shared.crypto import hash_token, visitor_key
from shared.datetime_utils import parse_datetime, parse_window_bound
from shared.ip_utils import get_client_ip, is_public_address
from shared.logging_config import SAMPLING_RATES, _state, setup_logging


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(headers: dict, client_host: str = "10.0.0.1") -> MagicMock:
    """Minimal mock of a FastAPI Request."""
    req = MagicMock()
    req.headers = headers
    req.client = MagicMock()
    req.client.host = client_host
    return req


# ---------------------------------------------------------------------------
# shared.datetime_utils — parse_datetime
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (0, datetime(1970, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-15T12:00:00Z", datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)),
        (
            "2024-01-15T14:00:00+02:00",
            datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc),
        ),
        (" 2024-01-15 ", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("not-a-date", None),
        ("", None),
    ],
    ids=["none", "epoch_int", "zulu", "offset", "padded_date", "garbage", "empty"],
)
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_parse_datetime_naive_assumed_utc():
    dt = parse_datetime("2024-06-01T00:00:00")
    assert dt is not None and dt.tzinfo == timezone.utc


# ---------------------------------------------------------------------------
# shared.datetime_utils — parse_window_bound
# ---------------------------------------------------------------------------


class TestParseWindowBound:
    def test_date_only_start_is_midnight(self):
        assert parse_window_bound("2024-01-31") == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_date_only_end_covers_whole_day(self):
        end = parse_window_bound("2024-01-31", end=True)
        assert end == datetime(2024, 1, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert end + timedelta(microseconds=1) == datetime(2024, 2, 1, tzinfo=timezone.utc)

    def test_full_timestamp_end_kept(self):
        end = parse_window_bound("2024-01-31T10:00:00Z", end=True)
        assert end == datetime(2024, 1, 31, 10, tzinfo=timezone.utc)

    def test_unparseable(self):
        assert parse_window_bound("yesterday", end=True) is None

    def test_last_representable_day_end_is_none(self):
        assert parse_window_bound("9999-12-31", end=True) is None

    def test_last_representable_day_start_kept(self):
        assert parse_window_bound("9999-12-31") == datetime(9999, 12, 31, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# shared.ip_utils — get_client_ip
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "headers, client_host, expected_ip",
    [
        ({"CF-Connecting-IP": "1.2.3.4"}, "10.0.0.1", "1.2.3.4"),
        ({"X-Forwarded-For": "5.6.7.8, 10.0.0.2"}, "10.0.0.1", "5.6.7.8"),
        ({"X-Real-IP": "9.9.9.9"}, "10.0.0.1", "9.9.9.9"),
        ({}, "10.0.0.1", "10.0.0.1"),
    ],
    ids=["cloudflare", "forwarded_for_first", "real_ip", "socket_fallback"],
)
def test_get_client_ip(headers, client_host, expected_ip):
    assert get_client_ip(_make_request(headers, client_host)) == expected_ip


def test_get_client_ip_no_client():
    req = _make_request({})
    req.client = None
    assert get_client_ip(req) == ""


# ---------------------------------------------------------------------------
# shared.ip_utils — is_public_address
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("8.8.8.8", True),
        ("2001:4860:4860::8888", True),
        ("127.0.0.1", False),
        ("10.1.2.3", False),
        ("169.254.0.1", False),
        ("not-an-ip", False),
        (None, False),
    ],
    ids=["public_v4", "public_v6", "loopback", "private", "link_local", "garbage", "none"],
)
def test_is_public_address(value, expected):
    assert is_public_address(value) is expected


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


class TestHashToken:
    def test_matches_sha256(self):
        assert hash_token("abc") == hashlib.sha256(b"abc").hexdigest()

    def test_length(self):
        assert len(hash_token("x")) == 64


class TestVisitorKey:
    def test_same_day_same_key(self):
        morning = datetime(2024, 3, 1, 1, tzinfo=timezone.utc)
        night = datetime(2024, 3, 1, 23, tzinfo=timezone.utc)
        assert visitor_key("L1", "8.8.8.8", morning) == visitor_key("L1", "8.8.8.8", night)

    @pytest.mark.parametrize(
        "subject, address, at",
        [
            ("L2", "8.8.8.8", datetime(2024, 3, 1, tzinfo=timezone.utc)),
            ("L1", "8.8.4.4", datetime(2024, 3, 1, tzinfo=timezone.utc)),
            ("L1", "8.8.8.8", datetime(2024, 3, 2, tzinfo=timezone.utc)),
        ],
        ids=["other_subject", "other_address", "other_day"],
    )
    def test_key_changes(self, subject, address, at):
        base = visitor_key("L1", "8.8.8.8", datetime(2024, 3, 1, tzinfo=timezone.utc))
        assert visitor_key(subject, address, at) != base

    def test_raw_address_not_in_key(self):
        assert "8.8.8.8" not in visitor_key("L1", "8.8.8.8", datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


class TestSampling:
    def test_unconfigured_event_always_logged(self):
        assert shared_logging.should_sample("something_else") is True

    def test_zero_rate_never_logged(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "click_tracked", 0.0)
        assert shared_logging.should_sample("click_tracked") is False

    def test_full_rate_always_logged(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "click_tracked", 1.0)
        assert shared_logging.should_sample("click_tracked") is True


class TestHashIp:
    def test_none_passthrough(self):
        assert shared_logging.hash_ip(None) is None

    def test_development_keeps_ip(self, monkeypatch):
        monkeypatch.setitem(_state, "is_production", False)
        assert shared_logging.hash_ip("8.8.8.8") == "8.8.8.8"

    def test_production_hashes_ip(self, monkeypatch):
        monkeypatch.setitem(_state, "is_production", True)
        hashed = shared_logging.hash_ip("8.8.8.8")
        assert hashed != "8.8.8.8"
        assert len(hashed) == 16


def test_setup_logging_applies_sample_rates(monkeypatch):
    for key, value in list(SAMPLING_RATES.items()):
        monkeypatch.setitem(SAMPLING_RATES, key, value)

    setup_logging(LoggingSettings(sample_rate_click=0.5), "development")

    assert SAMPLING_RATES["click_tracked"] == 0.5
    assert shared_logging.SAMPLING_RATES is SAMPLING_RATES
