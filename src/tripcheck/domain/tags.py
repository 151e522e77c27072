"""Tag-group grammars for fulfillments and items.

A tag group is a loosely-typed block::

    {"descriptor": {"code": "ROUTE_INFO"}, "display": true,
     "list": [{"descriptor": {"code": "ENCODED_POLYLINE"}, "value": "..."}]}

Each grammar names the groups it accepts, which of them are mandatory,
and the codes (with value kinds) allowed inside each group.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from tripcheck.domain.report import ErrorReport


class ValueKind(StrEnum):
    """How a tag entry's ``value`` string is interpreted."""

    TEXT = "text"
    DECIMAL = "decimal"
    INTEGER = "integer"
    TIME = "time"


_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


@dataclass(frozen=True)
class GroupRule:
    """Codes allowed in one tag group."""

    codes: dict[str, ValueKind]
    required: bool = False
    required_codes: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TagGrammar:
    """A named set of tag-group rules."""

    name: str
    groups: dict[str, GroupRule]


@dataclass(frozen=True)
class TagCheck:
    """Result of validating a tags array against a grammar."""

    is_valid: bool
    errors: ErrorReport


ROUTE_INFO_GRAMMAR = TagGrammar(
    name="ROUTE_INFO",
    groups={
        "ROUTE_INFO": GroupRule(
            codes={
                "ENCODED_POLYLINE": ValueKind.TEXT,
                "WAYPOINTS": ValueKind.TEXT,
            },
            required=True,
        ),
    },
)

ITEM_TAGS_GRAMMAR = TagGrammar(
    name="FARE_POLICY/INFO",
    groups={
        "FARE_POLICY": GroupRule(
            codes={
                "MIN_FARE": ValueKind.DECIMAL,
                "MIN_FARE_DISTANCE_KM": ValueKind.DECIMAL,
                "PER_KM_CHARGE": ValueKind.DECIMAL,
                "PICKUP_CHARGE": ValueKind.DECIMAL,
                "WAITING_CHARGE_PER_MIN": ValueKind.DECIMAL,
                "NIGHT_CHARGE_MULTIPLIER": ValueKind.DECIMAL,
                "NIGHT_SHIFT_START_TIME": ValueKind.TIME,
                "NIGHT_SHIFT_END_TIME": ValueKind.TIME,
            },
            required=True,
        ),
        "INFO": GroupRule(
            codes={
                "DISTANCE_TO_NEAREST_DRIVER_METER": ValueKind.INTEGER,
                "ETA_TO_NEAREST_DRIVER_MIN": ValueKind.INTEGER,
            },
        ),
    },
)


def _value_matches(value: str, kind: ValueKind) -> bool:
    if kind is ValueKind.TEXT:
        return True
    if kind is ValueKind.TIME:
        return bool(_TIME_PATTERN.match(value))
    try:
        number = Decimal(value)
    except InvalidOperation:
        return False
    if not number.is_finite():
        return False
    if kind is ValueKind.INTEGER:
        return number == number.to_integral_value()
    return True


def _descriptor_code(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return None
    descriptor = entry.get("descriptor")
    if not isinstance(descriptor, dict):
        return None
    return descriptor.get("code")


def _check_group(
    report: ErrorReport, group: dict[str, Any], rule: GroupRule, path: str
) -> None:
    if "display" in group and not isinstance(group["display"], bool):
        report.add(f"{path}.display", "display must be a boolean")

    entries = group.get("list")
    if not isinstance(entries, list) or not entries:
        report.add(f"{path}.list", "tag-group list is missing or empty")
        return

    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        entry_path = f"{path}.list[{idx}]"
        code = _descriptor_code(entry)
        if not code:
            report.add(f"{entry_path}.descriptor.code", "descriptor.code is missing")
            continue
        if not isinstance(code, str):
            report.add(f"{entry_path}.descriptor.code", "descriptor.code must be a string")
            continue
        kind = rule.codes.get(code)
        if kind is None:
            report.add(
                f"{entry_path}.descriptor.code",
                f"{code} is not one of {', '.join(rule.codes)}",
            )
            continue
        if code in seen:
            report.add(f"{entry_path}.descriptor.code", f"{code} is repeated in the tag-group")
        seen.add(code)

        value = entry.get("value")
        if not isinstance(value, str) or not value.strip():
            report.add(f"{entry_path}.value", f"value for {code} is missing or empty")
        elif not _value_matches(value, kind):
            report.add(f"{entry_path}.value", f"value for {code} must be a valid {kind}")

    for code in sorted(rule.required_codes - seen):
        report.add(f"{path}.list", f"{code} is missing in the tag-group")


def validate_tag_groups(tags: Any, grammar: TagGrammar, *, path: str = "tags") -> TagCheck:
    """Validate a ``tags`` array against *grammar*.

    Errors are keyed under *path* (e.g. ``fulfillments[0].tags``) so
    findings from different owners never share a key.
    """
    report = ErrorReport()
    if not isinstance(tags, list) or not tags:
        report.add(path, f"Missing {grammar.name} tag-group at {path}")
        return TagCheck(is_valid=False, errors=report)

    present: set[str] = set()
    for idx, group in enumerate(tags):
        group_path = f"{path}[{idx}]"
        code = _descriptor_code(group)
        if not code:
            report.add(f"{group_path}.descriptor.code", "tag-group descriptor.code is missing")
            continue
        if not isinstance(code, str):
            report.add(
                f"{group_path}.descriptor.code", "tag-group descriptor.code must be a string"
            )
            continue
        rule = grammar.groups.get(code)
        if rule is None:
            report.add(
                f"{group_path}.descriptor.code",
                f"{code} is not one of {', '.join(grammar.groups)}",
            )
            continue
        present.add(code)
        _check_group(report, group, rule, group_path)

    for code, rule in grammar.groups.items():
        if rule.required and code not in present:
            report.add(path, f"{code} tag-group is missing at {path}")

    return TagCheck(is_valid=not report, errors=report)


def validate_route_info_tags(tags: Any, *, path: str = "tags") -> TagCheck:
    """Fulfillment tags: ROUTE_INFO grammar."""
    return validate_tag_groups(tags, ROUTE_INFO_GRAMMAR, path=path)


def validate_items_tags(tags: Any, *, path: str = "tags") -> TagCheck:
    """Item tags: FARE_POLICY / INFO grammar."""
    return validate_tag_groups(tags, ITEM_TAGS_GRAMMAR, path=path)
