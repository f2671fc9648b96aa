from datetime import timezone

import pytest
from pydantic import ValidationError

from incident_desk.core.config import Settings
from incident_desk.core.validation import (
    first_present,
    parse_int,
    parse_text,
    parse_timestamp,
    resolve_timezone,
)


@pytest.mark.parametrize("raw, expected", [
    (5, 5),
    ("12", 12),
    (" 7 ", 7),
    ("-3", -3),
    (4.0, 4),
    ("3.0", 3),
    ("1e3", 1000),
])
def test_parse_int_accepts_whole_numbers(raw, expected):
    assert parse_int(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "1.5", 2.5, True, False, "nan", "inf", [1], {"a": 1}])
def test_parse_int_rejects_everything_else(raw):
    assert parse_int(raw) is None


def test_parse_int_positive():
    assert parse_int("30", positive=True) == 30
    assert parse_int(0, positive=True) is None
    assert parse_int("-1", positive=True) is None


def test_first_present_prefers_earlier_sources():
    assert first_present(None, "2", 3) == "2"
    assert first_present(None, None) is None
    assert first_present("", "x") == ""


def test_parse_text_trims_and_limits():
    check = parse_text("  fuga de agua  ")
    assert check.ok
    assert check.value == "fuga de agua"
    assert check.length == 12

    assert parse_text("x" * 100).ok

    too_long = parse_text("x" * 101)
    assert too_long.reason == "too_long"
    assert too_long.length == 101


@pytest.mark.parametrize("raw", [None, "", "   ", 42])
def test_parse_text_empty(raw):
    assert parse_text(raw).reason == "empty"


def test_iso_and_space_separated_normalize_to_the_same_timestamp():
    utc = resolve_timezone("UTC")
    assert parse_timestamp("2025-09-01T00:00:00Z", utc) == "2025-09-01 00:00:00"
    assert parse_timestamp("2025-09-01 00:00:00", utc) == "2025-09-01 00:00:00"


def test_parse_timestamp_converts_offsets():
    assert parse_timestamp("2025-09-01T05:30:09+02:00", timezone.utc) == "2025-09-01 03:30:09"


def test_parse_timestamp_date_only_and_padding():
    assert parse_timestamp("2025-01-02", timezone.utc) == "2025-01-02 00:00:00"
    assert parse_timestamp("2025-03-04T05:06:07", timezone.utc) == "2025-03-04 05:06:07"


@pytest.mark.parametrize("raw", [
    None, "", "ayer", "2025-13-01 00:00:00", "01/09/2025", 1693526400,
    "0001-01-01T00:00:00+01:00",
])
def test_parse_timestamp_rejects_garbage(raw):
    assert parse_timestamp(raw, timezone.utc) is None


def test_resolve_timezone():
    assert resolve_timezone(None) is None
    assert resolve_timezone("utc") is timezone.utc


def test_settings_reject_unknown_timezone():
    with pytest.raises(ValidationError):
        Settings(TIMESTAMP_TIMEZONE="Mars/Olympus_Mons")

    assert Settings(TIMESTAMP_TIMEZONE="UTC").TIMESTAMP_TIMEZONE == "UTC"
    assert Settings(TIMESTAMP_TIMEZONE="").TIMESTAMP_TIMEZONE is None
