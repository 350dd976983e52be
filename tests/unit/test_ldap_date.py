import logging
from datetime import datetime, timedelta, timezone

import pytest

from ldap_user_provider.ldap_date import parse_ldap_date


@pytest.mark.parametrize(
    "text",
    ["20030228150820Z", "20060711011740.0Z", " 20030228150820Z "],
)
def test_utc_dates(text):
    parsed = parse_ldap_date(text)
    assert parsed.tzinfo is timezone.utc
    assert parsed.year == int(text.strip()[:4])
    assert parsed.utcoffset() == timedelta(0)


def test_exact_utc_value():
    assert parse_ldap_date("20030228150820Z") == datetime(2003, 2, 28, 15, 8, 20, tzinfo=timezone.utc)


@pytest.mark.parametrize("text", ["20020228150820", "20050228150820.12"])
def test_local_dates(text):
    parsed = parse_ldap_date(text)
    expected = datetime(int(text[:4]), 2, 28, 15, 8, 20).astimezone()
    assert parsed == expected
    assert parsed.tzinfo is not None


@pytest.mark.parametrize("text", ["garbage", "2003", "20031328150820Z", "2003022815082xZ", "", None])
def test_invalid_dates_fall_back_to_now(text, caplog):
    before = datetime.now(timezone.utc)
    with caplog.at_level(logging.ERROR, logger="ldap_user_provider.date"):
        parsed = parse_ldap_date(text)
    after = datetime.now(timezone.utc)
    assert before <= parsed <= after
    assert "Failed to parse LDAP date" in caplog.text


def test_bytes_value_falls_back_to_now(caplog):
    before = datetime.now(timezone.utc)
    with caplog.at_level(logging.ERROR, logger="ldap_user_provider.date"):
        parsed = parse_ldap_date(b"20030228150820Z")
    after = datetime.now(timezone.utc)
    assert before <= parsed <= after
    assert "Failed to parse LDAP date" in caplog.text
