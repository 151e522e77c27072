"""OnSelectService — step validator for the ``on_select`` response.

Validates one message for structural correctness and for referential
consistency with what earlier steps of the same transaction recorded.
(Pipeline: presence gate → schema + envelope → provider → fulfillments
→ items → quote → forbidden fields → version extensions → publish.)

Findings accumulate in one ErrorReport and never interrupt sibling
checks. Each business section runs in its own guard: an unexpected
failure discards that section's partial findings, is logged, and becomes
a single finding for the section while later sections still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from tripcheck.config.models import ValidationConfig
from tripcheck.domain.envelope import validate_context
from tripcheck.domain.extensions import ExtensionRegistry
from tripcheck.domain.quote import validate_quote
from tripcheck.domain.refs import (
    RefStatus,
    extra_keys,
    resolve_reference,
    validate_item_ref_ids,
    validate_provider_id,
)
from tripcheck.domain.report import ErrorReport
from tripcheck.domain.schema import validate_schema
from tripcheck.domain.state import PriorState, StateField
from tripcheck.domain.stops import validate_stops
from tripcheck.domain.tags import validate_items_tags, validate_route_info_tags
from tripcheck.domain.types import (
    FORBIDDEN_ORDER_FIELDS,
    FULFILLMENT_TYPE,
    ITEM_DESCRIPTOR_CODE,
    MAX_VEHICLE_KEYS,
    PAIRED_REQUEST,
    PROVIDER_KEYS,
    Step,
)
from tripcheck.services.base import BaseService
from tripcheck.services.result import ServiceError, ServiceResult
from tripcheck.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from tripcheck.infrastructure.store import StateStore, TransactionState

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "/context, /message, /order or /message/order is missing or empty"


def _present(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value)


def _get(obj: Any, *keys: str) -> Any:
    """Walk nested mappings; None as soon as a level is not a mapping."""
    current = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


class OnSelectService(BaseService):
    """Validates ``on_select`` responses and publishes their state."""

    step = Step.ON_SELECT
    previous_step = PAIRED_REQUEST[Step.ON_SELECT]

    def __init__(
        self,
        store: StateStore,
        *,
        config: ValidationConfig | None = None,
        extensions: ExtensionRegistry | None = None,
    ) -> None:
        super().__init__(store)
        self._config = config or ValidationConfig()
        self._extensions = extensions if extensions is not None else ExtensionRegistry()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def validate(
        self,
        payload: Any,
        seen_message_ids: Collection[str] | None = None,
        *,
        version: str | None = None,
    ) -> ServiceResult:
        """Validate an ``on_select`` payload.

        Args:
            payload: The decoded message (``context`` + ``message.order``).
            seen_message_ids: Message ids already seen in the transaction.
                Defaults to the message id recorded for ``select``.
            version: Protocol version selecting extension rules. Falls back
                to the configured default, then to ``context.version``.

        Returns:
            ``ok=True`` when the message conforms; otherwise ``ok=False``
            with the findings in ``error.detail["errors"]``.
        """
        if not _present(payload):
            return self._rejected("EMPTY_PAYLOAD", str(self.step), "JSON cannot be empty")

        context = payload.get("context")
        message = payload.get("message")
        if not (_present(context) and _present(message) and _present(message.get("order"))):
            return self._rejected("MISSING_FIELDS", "missing_fields", MISSING_FIELDS_MESSAGE)

        transaction_id = context.get("transaction_id")
        resolved_version = version or self._config.default_version or context.get("version")

        with structlog.contextvars.bound_contextvars(
            transaction_id=transaction_id, step=str(self.step)
        ):
            if not isinstance(transaction_id, str) or not transaction_id:
                logger.warning("No transaction_id; validating without recorded state")
                report, accepted = self._run(
                    payload, PriorState(), seen_message_ids, resolved_version
                )
                transaction_id = None
            else:
                with self._store.transaction(transaction_id) as state:
                    prior = PriorState.load(state)
                    report, accepted = self._run(payload, prior, seen_message_ids, resolved_version)
                    self._publish(state, payload, accepted)

        data = {
            "transaction_id": transaction_id,
            "step": str(self.step),
            "version": resolved_version if isinstance(resolved_version, str) else None,
            "fulfillment_ids": sorted(accepted),
        }
        if not report:
            return ServiceResult(ok=True, op=str(self.step), data=data)
        logger.info("Validation found %d finding(s)", report.count())
        return ServiceResult(
            ok=False,
            op=str(self.step),
            data=data,
            error=ServiceError(
                code="NON_CONFORMANT",
                message=f"{report.count()} finding(s) in /{self.step}",
                detail={"errors": report.as_dict()},
            ),
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _rejected(self, code: str, path: str, message: str) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=str(self.step),
            error=ServiceError(code=code, message=message, detail={"errors": {path: [message]}}),
        )

    def _run(
        self,
        payload: Mapping[str, Any],
        prior: PriorState,
        seen_message_ids: Collection[str] | None,
        version: str | None,
    ) -> tuple[ErrorReport, set[str]]:
        """Run every stage; returns the report and the accepted fulfillment ids."""
        report = ErrorReport()
        context = payload["context"]
        order = payload["message"]["order"]
        seen = (
            frozenset(seen_message_ids)
            if seen_message_ids is not None
            else prior.seen_message_ids()
        )

        with trace_span("schema"):
            report.merge(validate_schema(self._config.schema_domain, self.step, payload))

        with trace_span("context"):
            context_check = validate_context(
                context,
                seen,
                self.previous_step,
                self.step,
                paired_context=prior.select_context,
                domain=self._config.domain,
            )
            if not context_check.valid:
                report.merge(context_check.errors)

        accepted: set[str] = set()
        self._section(report, "provider", lambda r: self._check_provider(r, order, prior))
        self._section(
            report, "fulfillments", lambda r: self._check_fulfillments(r, order, prior, accepted)
        )
        self._section(report, "items", lambda r: self._check_items(r, order, prior, accepted))
        self._section(
            report, "quote", lambda r: r.merge(validate_quote(order.get("quote"), self.step))
        )

        for name in FORBIDDEN_ORDER_FIELDS:
            if name in order:
                report.add(name, f"{name} is not part of /{self.step}")

        if self._config.extensions_enabled:
            self._section(
                report, "extensions", lambda r: self._check_extensions(r, payload, version)
            )

        return report, accepted

    def _section(
        self, report: ErrorReport, name: str, check: Callable[[ErrorReport], None]
    ) -> None:
        """Run one section's checks, containing any unexpected failure to it."""
        scratch = ErrorReport()
        with trace_span(name) as span:
            logger.debug("Validating %s in /%s", name, self.step)
            try:
                check(scratch)
            except Exception as exc:
                logger.exception("Error while checking %s in /%s", name, self.step)
                report.add(name, f"{name} could not be validated in /{self.step}: {exc}")
                return
            if span is not None:
                span.annotate("findings", scratch.count())
        report.merge(scratch)

    def _publish(
        self, state: TransactionState, payload: Mapping[str, Any], accepted: set[str]
    ) -> None:
        """Record this step's message, envelope and fulfillment ids for the next step."""
        state.set(self.step, StateField.MESSAGE, payload["message"])
        state.set(self.step, StateField.CONTEXT, payload["context"])
        state.set(self.step, StateField.FULFILLMENT_IDS, sorted(accepted))

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _check_extensions(
        self, report: ErrorReport, payload: Mapping[str, Any], version: Any
    ) -> None:
        if version is not None and not isinstance(version, str):
            report.add("context.version", f"context.version must be a string in /{self.step}")
            return
        report.merge(self._extensions.check(version, self.step, payload))

    def _check_provider(
        self, report: ErrorReport, order: Mapping[str, Any], prior: PriorState
    ) -> None:
        provider = order.get("provider")
        report.merge(
            validate_provider_id(
                _get(provider, "id"),
                selected_id=prior.selected_provider_id,
                catalog_ids=prior.provider_ids,
                previous_step=self.previous_step,
                current_step=self.step,
            )
        )
        additional = extra_keys(provider, PROVIDER_KEYS)
        if additional:
            report.add(
                "provider", f"provider obj is having additional keys {', '.join(additional)}"
            )

    def _check_fulfillments(
        self,
        report: ErrorReport,
        order: Mapping[str, Any],
        prior: PriorState,
        accepted: set[str],
    ) -> None:
        fulfillments = order.get("fulfillments")
        if not fulfillments:
            report.add("fulfillments", "Fulfillments is missing or empty")
            return

        categories = self._config.vehicle_categories
        for index, fulfillment in enumerate(fulfillments):
            key = f"fulfillments[{index}]"
            fulfillment_id = fulfillment.get("id")

            status = resolve_reference(
                fulfillment_id, prior.fulfillment_ids, required_when_empty=False
            )
            if status is RefStatus.MISSING:
                report.add(key, f"id is missing in {key}")
            elif status is RefStatus.UNDECLARED:
                report.add(
                    f"{key}.id",
                    f"/message/order/fulfillments/id in fulfillments: {fulfillment_id} "
                    "should be one of the /fulfillments/id mapped in previous call",
                )
            else:
                accepted.add(fulfillment_id)

            vehicle = fulfillment.get("vehicle")
            category = _get(vehicle, "category")
            if not category:
                report.add(f"{key}.vehicle.category", "category is missing in fulfillments.vehicle")
            elif category not in categories:
                report.add(
                    f"{key}.vehicle.category",
                    f"Vehicle category should be one of {', '.join(categories)}",
                )

            fulfillment_type = fulfillment.get("type")
            if not fulfillment_type:
                report.add(f"{key}.type", "Fulfillment type is missing")
            elif fulfillment_type != FULFILLMENT_TYPE:
                report.add(
                    f"{key}.type",
                    f"Fulfillment type must be {FULFILLMENT_TYPE} at index {index} "
                    f"in /{self.step}",
                )

            stops = validate_stops(fulfillment.get("stops"), index, otp=False, cancel=False)
            if not stops.valid:
                report.merge(stops.errors)

            tags = validate_route_info_tags(fulfillment.get("tags"), path=f"{key}.tags")
            if not tags.is_valid:
                report.merge(tags.errors)

            if isinstance(vehicle, Mapping) and len(vehicle) > MAX_VEHICLE_KEYS:
                report.add(f"{key}.vehicle", "additional keys present in fulfillments.vehicle")

    def _check_items(
        self,
        report: ErrorReport,
        order: Mapping[str, Any],
        prior: PriorState,
        accepted: set[str],
    ) -> None:
        items = order.get("items")
        if not items:
            report.add("items", f"items is missing or empty in /{self.step}")
            return

        for index, item in enumerate(items):
            key = f"items[{index}]"
            item_id = item.get("id")

            status = resolve_reference(item_id, prior.item_ids)
            if status is RefStatus.MISSING:
                report.add(f"{key}.id", f"id is missing in [{key}]")
            elif status is RefStatus.UNDECLARED:
                report.add(
                    f"{key}.id",
                    f"/message/order/items/id in item: {item_id} should be one of the "
                    f"/item/id mapped in /{Step.ON_SEARCH}",
                )

            if not _get(item, "price", "value"):
                report.add(f"{key}.price.value", f"value is missing at item.index {index}")
            if not _get(item, "price", "currency"):
                report.add(f"{key}.price.currency", f"currency is missing at item.index {index}")

            report.merge(
                validate_item_ref_ids(
                    item,
                    self.step,
                    index,
                    accepted,
                    prior.location_ids,
                    frozenset(),
                )
            )

            code = _get(item, "descriptor", "code")
            if not code:
                report.add(
                    f"{key}.descriptor.code",
                    f"descriptor.code is missing at index: {index} in /{self.step}",
                )
            elif code != ITEM_DESCRIPTOR_CODE:
                report.add(
                    f"{key}.descriptor.code",
                    f"descriptor.code must be {ITEM_DESCRIPTOR_CODE} at item.index {index} "
                    f"in /{self.step}",
                )

            tags = validate_items_tags(item.get("tags"), path=f"{key}.tags")
            if not tags.is_valid:
                report.merge(tags.errors)
