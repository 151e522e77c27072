"""Structural schemas for protocol messages, declared as pydantic models.

These models check shape and primitive types only. Presence of
business-relevant fields is owned by the step rules so a missing field
is reported once, by the rule that needs it. Unknown keys are allowed;
closed attribute sets are enforced by the step rules where required.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tripcheck.domain.report import ErrorReport, format_path
from tripcheck.domain.types import Step


class _Open(BaseModel):
    model_config = ConfigDict(extra="allow")


class Code(_Open):
    code: str | None = None


class Descriptor(_Open):
    code: str | None = None
    name: str | None = None
    short_desc: str | None = None


class Price(_Open):
    value: str | None = None
    currency: str | None = None


class ContextLocation(_Open):
    city: Code | None = None
    country: Code | None = None


class Context(_Open):
    domain: str | None = None
    action: str | None = None
    version: str | None = None
    bap_id: str | None = None
    bap_uri: str | None = None
    bpp_id: str | None = None
    bpp_uri: str | None = None
    transaction_id: str | None = None
    message_id: str | None = None
    timestamp: str | None = None
    ttl: str | None = None
    location: ContextLocation | None = None


class TagEntry(_Open):
    descriptor: Descriptor | None = None
    value: str | None = None


class TagGroup(_Open):
    descriptor: Descriptor | None = None
    display: bool | None = None
    entries: list[TagEntry] | None = Field(default=None, alias="list")


class Provider(_Open):
    id: str | None = None
    descriptor: Descriptor | None = None


class Vehicle(_Open):
    category: str | None = None
    variant: str | None = None


class StopLocation(_Open):
    gps: str | None = None


class TimeRange(_Open):
    start: str | None = None
    end: str | None = None


class StopTime(_Open):
    timestamp: str | None = None
    range: TimeRange | None = None


class Authorization(_Open):
    type: str | None = None
    token: str | None = None


class Stop(_Open):
    type: str | None = None
    location: StopLocation | None = None
    time: StopTime | None = None
    authorization: Authorization | None = None


class Fulfillment(_Open):
    id: str | None = None
    type: str | None = None
    vehicle: Vehicle | None = None
    stops: list[Stop] | None = None
    tags: list[TagGroup] | None = None


class Item(_Open):
    id: str | None = None
    descriptor: Descriptor | None = None
    price: Price | None = None
    fulfillment_ids: list[str] | None = None
    location_ids: list[str] | None = None
    payment_ids: list[str] | None = None
    tags: list[TagGroup] | None = None


class BreakupLine(_Open):
    title: str | None = None
    price: Price | None = None


class Quote(_Open):
    price: Price | None = None
    breakup: list[BreakupLine] | None = None
    ttl: str | None = None


class Order(_Open):
    provider: Provider | None = None
    fulfillments: list[Fulfillment] | None = None
    items: list[Item] | None = None
    quote: Quote | None = None


class OrderMessage(_Open):
    order: Order | None = None


class OnSelectPayload(_Open):
    """Shape of an ``on_select`` response."""

    context: Context | None = None
    message: OrderMessage | None = None


SCHEMAS: dict[tuple[str, str], type[BaseModel]] = {
    ("TRV", Step.ON_SELECT): OnSelectPayload,
}


def validate_schema(domain: str, step: str, payload: Any) -> ErrorReport:
    """Validate *payload* against the schema declared for (*domain*, *step*).

    Returns an empty report when the payload conforms.

    Raises:
        KeyError: If no schema is declared for the pair.
    """
    try:
        model = SCHEMAS[(domain, step)]
    except KeyError:
        msg = f"No schema declared for domain {domain!r}, step {step!r}"
        raise KeyError(msg) from None

    report = ErrorReport()
    try:
        model.model_validate(payload)
    except ValidationError as exc:
        for err in exc.errors():
            path = format_path(err["loc"]) or "payload"
            report.add(path, err["msg"])
    return report
