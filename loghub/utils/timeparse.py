"""Relative ages ("1h", "2d", "1h30m") and strict RFC3339 timestamps."""

import re
from datetime import datetime, timedelta, timezone

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 7 * 86400.0,
    "y": 365 * 86400.0,
}

_AGE_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h|d|w|y)")
_AGE_FULL = re.compile(r"(?:\d+(?:\.\d+)?(?:ns|us|µs|ms|s|m|h|d|w|y))+")

_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def parse_age(value: str) -> timedelta | None:
    """Parse a relative age such as ``1h``, ``2d``, ``1w`` or ``1h30m``.

    Returns None when ``value`` is not an age expression.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text == "0":
        return timedelta(0)
    if not _AGE_FULL.fullmatch(text):
        return None
    seconds = sum(float(n) * _UNIT_SECONDS[unit] for n, unit in _AGE_PART.findall(text))
    return timedelta(seconds=seconds)


def parse_rfc3339(value: str) -> datetime | None:
    """Parse an RFC3339 timestamp; anything else (dates, naive times) gives None."""
    match = _RFC3339.fullmatch((value or "").strip())
    if not match:
        return None
    date_part, time_part, fraction, offset = match.groups()
    iso = f"{date_part}T{time_part}"
    if fraction:
        iso += "." + fraction[:6].ljust(6, "0")
    iso += "+00:00" if offset in ("Z", "z") else offset
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


def resolve_instant(value: str, now: datetime) -> datetime | None:
    """Resolve an age (relative to ``now``) or an RFC3339 timestamp."""
    age = parse_age(value)
    if age is not None:
        return now - age
    return parse_rfc3339(value)


def format_iso_millis(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
