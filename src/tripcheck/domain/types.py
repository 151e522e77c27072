"""Protocol steps and the pinned vocabularies of the mobility flow.

These enums name the steps of a "search → select → confirm" transaction
and the fixed literals the ``on_select`` response must carry.
"""

from __future__ import annotations

from enum import StrEnum


class Step(StrEnum):
    """Message exchanges in a mobility transaction, in flow order."""

    SEARCH = "search"
    ON_SEARCH = "on_search"
    SELECT = "select"
    ON_SELECT = "on_select"


class VehicleCategory(StrEnum):
    """Vehicle categories served on demand."""

    AUTO_RICKSHAW = "AUTO_RICKSHAW"
    CAB = "CAB"
    TWO_WHEELER = "TWO_WHEELER"


class StopType(StrEnum):
    """Stop markers in a fulfillment's stop sequence."""

    START = "START"
    END = "END"


# --- Pinned literals for on_select ---

FULFILLMENT_TYPE = "DELIVERY"
ITEM_DESCRIPTOR_CODE = "RIDE"

ON_DEMAND_VEHICLES: tuple[str, ...] = tuple(str(v) for v in VehicleCategory)

PROVIDER_KEYS: frozenset[str] = frozenset({"id", "descriptor"})
FORBIDDEN_ORDER_FIELDS: tuple[str, ...] = ("payments", "cancellation_terms")

MAX_VEHICLE_KEYS = 2

# Response step -> the request step it answers.
PAIRED_REQUEST: dict[Step, Step] = {
    Step.ON_SEARCH: Step.SEARCH,
    Step.ON_SELECT: Step.SELECT,
}


def is_response(step: str) -> bool:
    """Whether *step* is a response (``on_*``) action."""
    return step.startswith("on_")
