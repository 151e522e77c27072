"""Referential integrity — identifiers must have been declared earlier.

Pure functions, no infrastructure dependencies. Identifier sets come
from state recorded by earlier steps of the same transaction and are
only ever read here.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from enum import StrEnum
from typing import Any

from tripcheck.domain.report import ErrorReport


class RefStatus(StrEnum):
    """Outcome of resolving one identifier against a reference set."""

    OK = "ok"
    MISSING = "missing"
    UNDECLARED = "undeclared"


def is_declared(candidate: str, known: Collection[str]) -> bool:
    """Membership test of *candidate* in *known*."""
    return candidate in known


def resolve_reference(
    candidate: Any,
    known: Collection[str],
    *,
    required_when_empty: bool = True,
) -> RefStatus:
    """Classify *candidate* against the previously declared ids in *known*.

    An absent or empty candidate is MISSING. When *known* is empty and
    *required_when_empty* is False, any present candidate is accepted
    (the earlier step published nothing to check against).
    """
    if candidate is None or candidate == "":
        return RefStatus.MISSING
    if not isinstance(candidate, str):
        return RefStatus.UNDECLARED
    if not known and not required_when_empty:
        return RefStatus.OK
    if not is_declared(candidate, known):
        return RefStatus.UNDECLARED
    return RefStatus.OK


def extra_keys(obj: Any, allowed: Iterable[str]) -> list[str]:
    """Keys on *obj* that are not in *allowed* (empty for non-mappings)."""
    if not isinstance(obj, Mapping):
        return []
    allowed_set = set(allowed)
    return [str(k) for k in obj if k not in allowed_set]


def validate_provider_id(
    provider_id: Any,
    *,
    selected_id: str | None,
    catalog_ids: Collection[str],
    previous_step: str,
    current_step: str,
) -> ErrorReport:
    """Check ``provider.id`` against the provider chosen earlier.

    The provider selected in *previous_step* wins when recorded; otherwise
    the id must be one of the providers published by the catalog.
    """
    report = ErrorReport()
    if not provider_id:
        report.add("provider.id", f"provider.id is missing in /{current_step}")
        return report
    if selected_id is not None:
        if provider_id != selected_id:
            report.add(
                "provider.id",
                f"provider.id {provider_id} in /{current_step} does not match "
                f"provider.id {selected_id} sent in /{previous_step}",
            )
        return report
    if resolve_reference(provider_id, catalog_ids, required_when_empty=False) is not RefStatus.OK:
        report.add(
            "provider.id",
            f"provider.id {provider_id} in /{current_step} was not declared in the catalog",
        )
    return report


def _check_ref_list(
    report: ErrorReport,
    path: str,
    value: Any,
    known: Collection[str],
    *,
    what: str,
    step: str,
    required: bool,
) -> None:
    if value is None:
        if required:
            report.add(path, f"{what} are missing at {path.rsplit('.', 1)[0]} in /{step}")
        return
    if not isinstance(value, list):
        report.add(path, f"{what} must be an array in /{step}")
        return
    if required and not value:
        report.add(path, f"{what} must not be empty in /{step}")
        return
    for ref in value:
        status = resolve_reference(ref, known)
        if status is RefStatus.MISSING:
            report.add(path, f"empty id in {what} in /{step}")
        elif status is RefStatus.UNDECLARED:
            report.add(path, f"{ref} in {what} is not previously declared in /{step}")


def validate_item_ref_ids(
    item: Mapping[str, Any],
    step: str,
    index: int,
    fulfillment_ids: Collection[str],
    location_ids: Collection[str],
    payment_ids: Collection[str],
) -> ErrorReport:
    """Cross-reference an item's ``*_ids`` arrays against declared sets.

    ``fulfillment_ids`` is required; ``location_ids`` and ``payment_ids``
    are checked only when the item carries them.
    """
    report = ErrorReport()
    key = f"items[{index}]"
    _check_ref_list(
        report,
        f"{key}.fulfillment_ids",
        item.get("fulfillment_ids"),
        fulfillment_ids,
        what="fulfillment_ids",
        step=step,
        required=True,
    )
    _check_ref_list(
        report,
        f"{key}.location_ids",
        item.get("location_ids"),
        location_ids,
        what="location_ids",
        step=step,
        required=False,
    )
    _check_ref_list(
        report,
        f"{key}.payment_ids",
        item.get("payment_ids"),
        payment_ids,
        what="payment_ids",
        step=step,
        required=False,
    )
    return report
