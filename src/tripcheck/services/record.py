"""RecordService — record what earlier steps published.

The ``on_search`` catalog and the ``select`` request are not validated
here; they are only mined for the identifiers and envelope that the
``on_select`` validator cross-references.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import structlog

from tripcheck.domain.state import StateField
from tripcheck.domain.types import Step
from tripcheck.services.base import BaseService
from tripcheck.services.result import ServiceError, ServiceResult
from tripcheck.services.telemetry import traced

logger = logging.getLogger(__name__)

RECORDABLE_STEPS: tuple[Step, ...] = (Step.ON_SEARCH, Step.SELECT)


def _ids(entries: Any) -> set[str]:
    """Collect the string ``id`` of every mapping in *entries*."""
    if not isinstance(entries, list):
        return set()
    return {
        entry["id"]
        for entry in entries
        if isinstance(entry, Mapping) and isinstance(entry.get("id"), str) and entry["id"]
    }


def extract_catalog_state(message: Mapping[str, Any]) -> dict[str, set[str]]:
    """Identifier sets declared by an ``on_search`` catalog."""
    catalog = message.get("catalog")
    providers = catalog.get("providers") if isinstance(catalog, Mapping) else None
    if not isinstance(providers, list):
        providers = []

    out: dict[str, set[str]] = {
        StateField.PROVIDER_IDS: _ids(providers),
        StateField.ITEM_IDS: set(),
        StateField.LOCATION_IDS: set(),
        StateField.FULFILLMENT_IDS: set(),
    }
    for provider in providers:
        if not isinstance(provider, Mapping):
            continue
        out[StateField.ITEM_IDS] |= _ids(provider.get("items"))
        out[StateField.LOCATION_IDS] |= _ids(provider.get("locations"))
        out[StateField.FULFILLMENT_IDS] |= _ids(provider.get("fulfillments"))
    return out


def extract_select_state(message: Mapping[str, Any]) -> dict[str, Any]:
    """Provider chosen by a ``select`` order."""
    order = message.get("order")
    if not isinstance(order, Mapping):
        order = {}
    provider = order.get("provider")
    provider_id = provider.get("id") if isinstance(provider, Mapping) else None
    return {
        StateField.PROVIDER_ID: provider_id if isinstance(provider_id, str) else None,
    }


class RecordService(BaseService):
    """Records the state published by ``on_search`` and ``select``."""

    @traced
    def record(self, step: str, payload: Any) -> ServiceResult:
        """Store *payload*'s context and identifiers under *step*."""
        op = "record"
        if step not in RECORDABLE_STEPS:
            allowed = ", ".join(RECORDABLE_STEPS)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="UNSUPPORTED_STEP",
                    message=f"Cannot record step '{step}'; expected one of: {allowed}",
                    detail={"step": step},
                ),
            )

        context = payload.get("context") if isinstance(payload, Mapping) else None
        message = payload.get("message") if isinstance(payload, Mapping) else None
        if not isinstance(context, Mapping) or not isinstance(message, Mapping):
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="MISSING_FIELDS",
                    message="/context or /message is missing or empty",
                ),
            )

        transaction_id = context.get("transaction_id")
        if not isinstance(transaction_id, str) or not transaction_id:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="NO_TRANSACTION",
                    message="context.transaction_id is missing",
                ),
            )

        step = Step(step)
        if step is Step.ON_SEARCH:
            fields: dict[str, Any] = extract_catalog_state(message)
        else:
            fields = extract_select_state(message)

        with structlog.contextvars.bound_contextvars(transaction_id=transaction_id, step=str(step)):
            with self._store.transaction(transaction_id) as state:
                state.set(step, StateField.CONTEXT, dict(context))
                for name, value in fields.items():
                    state.set(step, name, sorted(value) if isinstance(value, set) else value)
            logger.info("Recorded %s state", step)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "transaction_id": transaction_id,
                "step": str(step),
                "fields": sorted(str(name) for name in (StateField.CONTEXT, *fields)),
            },
        )
