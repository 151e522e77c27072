"""Wire formats shared by several rules: timestamps, GPS, durations."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

# "12.9716,77.5946", optional spaces after the comma.
_GPS_PATTERN = re.compile(r"^(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)$")

# ISO 8601 duration, e.g. PT30S, P1D, PT1H30M.
_DURATION_PATTERN = re.compile(
    r"^P(?!$)(\d+Y)?(\d+M)?(\d+W)?(\d+D)?(T(?=\d)(\d+H)?(\d+M)?(\d+(\.\d+)?S)?)?$"
)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp; None if *value* is not one.

    A timestamp without an offset is rejected.

    Examples:
        >>> parse_timestamp("2023-12-10T08:03:34.294Z") is not None
        True
        >>> parse_timestamp("2023-12-10 08:03") is None
        True
    """
    if not isinstance(value, str) or "T" not in value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def is_valid_gps(value: Any) -> bool:
    """Whether *value* is a ``"lat,lng"`` pair inside coordinate bounds."""
    if not isinstance(value, str):
        return False
    match = _GPS_PATTERN.match(value.strip())
    if match is None:
        return False
    lat, lng = float(match.group(1)), float(match.group(2))
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def is_iso_duration(value: Any) -> bool:
    """Whether *value* is an ISO 8601 duration string."""
    return isinstance(value, str) and bool(_DURATION_PATTERN.match(value))
