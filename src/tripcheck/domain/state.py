"""What each step publishes into transaction state, and what on_select reads.

State is addressed as ``(transaction_id, step, field)``. A step only ever
writes under its own step name; later steps read those values and never
mutate them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from tripcheck.domain.types import Step


class StateField(StrEnum):
    """Field names used inside a step's state."""

    CONTEXT = "context"
    MESSAGE = "message"
    PROVIDER_ID = "provider_id"
    PROVIDER_IDS = "provider_ids"
    ITEM_IDS = "item_ids"
    LOCATION_IDS = "location_ids"
    FULFILLMENT_IDS = "fulfillment_ids"


class StateReader(Protocol):
    """Read side of a transaction-scoped state view."""

    def get(self, step: str, field: str, default: Any = None) -> Any: ...


def _id_set(values: Any) -> frozenset[str]:
    if not isinstance(values, Iterable) or isinstance(values, (str, bytes, Mapping)):
        return frozenset()
    return frozenset(str(v) for v in values if v is not None)


@dataclass(frozen=True)
class PriorState:
    """Identifiers and envelope recorded by the steps before on_select."""

    item_ids: frozenset[str] = field(default_factory=frozenset)
    location_ids: frozenset[str] = field(default_factory=frozenset)
    fulfillment_ids: frozenset[str] = field(default_factory=frozenset)
    provider_ids: frozenset[str] = field(default_factory=frozenset)
    selected_provider_id: str | None = None
    select_context: Mapping[str, Any] | None = None

    @classmethod
    def load(cls, state: StateReader) -> PriorState:
        """Collect what ``on_search`` and ``select`` published."""
        context = state.get(Step.SELECT, StateField.CONTEXT)
        provider_id = state.get(Step.SELECT, StateField.PROVIDER_ID)
        return cls(
            item_ids=_id_set(state.get(Step.ON_SEARCH, StateField.ITEM_IDS)),
            location_ids=_id_set(state.get(Step.ON_SEARCH, StateField.LOCATION_IDS)),
            fulfillment_ids=_id_set(state.get(Step.ON_SEARCH, StateField.FULFILLMENT_IDS)),
            provider_ids=_id_set(state.get(Step.ON_SEARCH, StateField.PROVIDER_IDS)),
            selected_provider_id=str(provider_id) if provider_id else None,
            select_context=context if isinstance(context, Mapping) else None,
        )

    def seen_message_ids(self) -> frozenset[str]:
        """Message ids of recorded requests (the select step's, if any)."""
        if self.select_context and self.select_context.get("message_id"):
            return frozenset({str(self.select_context["message_id"])})
        return frozenset()
