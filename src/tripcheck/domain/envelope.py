"""Envelope (``context``) rules for a step and its paired request.

A response must echo the transaction and message ids of the request it
answers and may not be stamped earlier than that request. The set of
previously seen message ids lets a response be tied back to a request
even when the request context itself was not recorded.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any

from tripcheck.domain.formats import is_iso_duration, parse_timestamp
from tripcheck.domain.report import ErrorReport
from tripcheck.domain.types import is_response

REQUIRED_CONTEXT_FIELDS: tuple[str, ...] = (
    "domain",
    "action",
    "version",
    "bap_id",
    "bap_uri",
    "bpp_id",
    "bpp_uri",
    "transaction_id",
    "message_id",
    "timestamp",
)

# Fields a response must carry over unchanged from its request.
_ECHOED_FIELDS: tuple[str, ...] = ("transaction_id", "message_id", "bap_id", "bap_uri")


@dataclass(frozen=True)
class ContextCheck:
    """Result of validating a step's ``context``."""

    valid: bool
    errors: ErrorReport


def _nested(obj: Mapping[str, Any], *keys: str) -> Any:
    current: Any = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def validate_context(
    context: Any,
    seen_ids: Collection[str],
    previous_step: str,
    current_step: str,
    *,
    paired_context: Mapping[str, Any] | None = None,
    domain: str | None = None,
) -> ContextCheck:
    """Validate *context* for *current_step* against its paired request.

    Args:
        context: The envelope as received.
        seen_ids: Message ids already seen in this transaction.
        previous_step: The request step this message pairs with.
        current_step: The step being validated (expected ``action``).
        paired_context: The recorded context of *previous_step*, if any.
        domain: Expected ``context.domain``; unchecked when None.
    """
    report = ErrorReport()
    if not isinstance(context, Mapping):
        report.add("context", f"context is missing in /{current_step}")
        return ContextCheck(valid=False, errors=report)

    for name in REQUIRED_CONTEXT_FIELDS:
        if not context.get(name):
            report.add(f"context.{name}", f"context.{name} is missing in /{current_step}")

    for name in ("city", "country"):
        if not _nested(context, "location", name, "code"):
            report.add(
                f"context.location.{name}.code",
                f"context.location.{name}.code is missing in /{current_step}",
            )

    action = context.get("action")
    if action and action != current_step:
        report.add("context.action", f"context.action must be {current_step}, got {action}")

    if domain is not None and context.get("domain") and context["domain"] != domain:
        report.add("context.domain", f"context.domain must be {domain}")

    stamp = parse_timestamp(context.get("timestamp"))
    if context.get("timestamp") and stamp is None:
        report.add("context.timestamp", "context.timestamp must be RFC3339 with an offset")

    if "ttl" in context and not is_iso_duration(context["ttl"]):
        report.add("context.ttl", "context.ttl must be an ISO 8601 duration")

    message_id = context.get("message_id")
    if not isinstance(message_id, str):
        message_id = None
    if is_response(current_step):
        if seen_ids and message_id and message_id not in seen_ids:
            report.add(
                "context.message_id",
                f"message_id {message_id} does not answer any request seen in this transaction",
            )
    elif message_id and message_id in seen_ids:
        report.add("context.message_id", f"message_id {message_id} is a duplicate")

    if paired_context:
        for name in _ECHOED_FIELDS:
            expected = paired_context.get(name)
            if expected and context.get(name) and context[name] != expected:
                report.add(
                    f"context.{name}",
                    f"context.{name} for /{current_step} must match /{previous_step} ({expected})",
                )
        previous_stamp = parse_timestamp(paired_context.get("timestamp"))
        if stamp is not None and previous_stamp is not None and stamp < previous_stamp:
            report.add(
                "context.timestamp",
                f"context.timestamp for /{current_step} precedes /{previous_step}",
            )

    return ContextCheck(valid=not report, errors=report)
