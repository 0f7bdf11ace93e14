from datetime import timedelta, timezone

import pytest

from loghub.utils.timeparse import parse_age, parse_rfc3339


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1h", timedelta(hours=1)),
        ("2d", timedelta(days=2)),
        ("1w", timedelta(weeks=1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("500ms", timedelta(milliseconds=500)),
        ("1.5h", timedelta(minutes=90)),
        ("0", timedelta(0)),
    ],
)
def test_parse_age(value, expected):
    assert parse_age(value) == expected


@pytest.mark.parametrize("value", ["", "h", "1x", "2024-01-01T00:00:00Z", "-1h", "1 h"])
def test_parse_age_rejects_non_ages(value):
    assert parse_age(value) is None


def test_parse_rfc3339_utc():
    ts = parse_rfc3339("2024-01-01T00:00:00Z")
    assert ts is not None
    assert ts.tzinfo is not None
    assert ts.utcoffset() == timedelta(0)
    assert (ts.year, ts.month, ts.day) == (2024, 1, 1)


def test_parse_rfc3339_offset_and_nanoseconds():
    ts = parse_rfc3339("2024-03-04T05:06:07.123456789+01:00")
    assert ts is not None
    assert ts.astimezone(timezone.utc).hour == 4
    assert ts.microsecond == 123456


@pytest.mark.parametrize(
    "value",
    ["2024-01-01", "2024-01-01T00:00:00", "2024-13-01T00:00:00Z", "worker", ""],
)
def test_parse_rfc3339_rejects(value):
    assert parse_rfc3339(value) is None
