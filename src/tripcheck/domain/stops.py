"""Stop-sequence rules for a fulfillment.

A stop sequence is acceptable when it carries both a START and an END
stop with GPS locations, or (for scheduled rides) at least one stop
whose ``time.range`` is valid and whose location has GPS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tripcheck.domain.formats import is_valid_gps, parse_timestamp
from tripcheck.domain.report import ErrorReport
from tripcheck.domain.types import StopType


@dataclass(frozen=True)
class StopsCheck:
    """Result of validating one fulfillment's stops."""

    valid: bool
    errors: ErrorReport


def _gps_of(stop: dict[str, Any]) -> Any:
    location = stop.get("location")
    if not isinstance(location, dict):
        return None
    return location.get("gps")


def _check_time(report: ErrorReport, stop: dict[str, Any], path: str) -> bool:
    """Validate ``stop.time``; True when it holds a usable time range."""
    time = stop.get("time")
    if time is None:
        return False
    if not isinstance(time, dict):
        report.add(f"{path}.time", "time must be an object")
        return False

    if "timestamp" in time and parse_timestamp(time["timestamp"]) is None:
        report.add(f"{path}.time.timestamp", "timestamp must be RFC3339 with an offset")

    time_range = time.get("range")
    if time_range is None:
        return False
    if not isinstance(time_range, dict):
        report.add(f"{path}.time.range", "time.range must be an object")
        return False
    start = parse_timestamp(time_range.get("start"))
    end = parse_timestamp(time_range.get("end"))
    if start is None:
        report.add(f"{path}.time.range.start", "range start is missing or not RFC3339")
    if end is None:
        report.add(f"{path}.time.range.end", "range end is missing or not RFC3339")
    if start is not None and end is not None and end < start:
        report.add(f"{path}.time.range", "range end must not precede range start")
        return False
    return start is not None and end is not None


def _check_otp(report: ErrorReport, stop: dict[str, Any], path: str) -> None:
    auth = stop.get("authorization")
    if not isinstance(auth, dict):
        report.add(f"{path}.authorization", "authorization is missing on START stop")
        return
    if auth.get("type") != "OTP":
        report.add(f"{path}.authorization.type", "authorization.type must be OTP")
    if not auth.get("token"):
        report.add(f"{path}.authorization.token", "authorization.token is missing")


def validate_stops(stops: Any, index: int, otp: bool = False, cancel: bool = False) -> StopsCheck:
    """Validate ``fulfillments[index].stops``.

    Args:
        stops: The stops array as received.
        index: Fulfillment index, used to key findings.
        otp: Require OTP authorization on the START stop.
        cancel: Cancelled rides may omit the END stop.
    """
    report = ErrorReport()
    base = f"fulfillments[{index}].stops"

    if not isinstance(stops, list) or not stops:
        report.add(base, f"stops are missing or empty in fulfillments[{index}]")
        return StopsCheck(valid=False, errors=report)

    types_seen: set[str] = set()
    has_timed_stop = False

    for idx, stop in enumerate(stops):
        path = f"{base}[{idx}]"
        if not isinstance(stop, dict):
            report.add(path, "stop must be an object")
            continue

        stop_type = stop.get("type")
        gps = _gps_of(stop)
        if stop_type is not None and (
            not isinstance(stop_type, str) or stop_type not in StopType.__members__
        ):
            report.add(f"{path}.type", f"stop type must be one of {', '.join(StopType)}")
        elif stop_type is not None:
            if stop_type in types_seen:
                report.add(f"{path}.type", f"{stop_type} stop is repeated")
            types_seen.add(stop_type)
            if gps is None:
                report.add(f"{path}.location.gps", f"gps is missing on {stop_type} stop")

        if gps is not None and not is_valid_gps(gps):
            report.add(f"{path}.location.gps", f"gps {gps!r} is not a valid lat,lng pair")

        if _check_time(report, stop, path) and is_valid_gps(gps):
            has_timed_stop = True

        if otp and stop_type == StopType.START:
            _check_otp(report, stop, path)

    required = {str(StopType.START)} if cancel else {str(StopType.START), str(StopType.END)}
    if not required <= types_seen and not has_timed_stop:
        report.add(
            base,
            f"stops must contain {' and '.join(sorted(required, reverse=True))} "
            "or a time range with timestamp and gps",
        )

    return StopsCheck(valid=not report, errors=report)
