"""Quote shape rules: price, breakup lines, and their arithmetic."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from tripcheck.domain.formats import is_iso_duration
from tripcheck.domain.report import ErrorReport

BREAKUP_TITLES: frozenset[str] = frozenset(
    {
        "BASE_FARE",
        "DISTANCE_FARE",
        "TAX",
        "DISCOUNT",
        "WAITING_CHARGE",
        "PICKUP_CHARGE",
        "NIGHT_CHARGE",
        "TOLL_CHARGES",
    }
)

# Breakup lines that reduce the total.
_NEGATIVE_TITLES = frozenset({"DISCOUNT"})

# Rounding slack when comparing the breakup sum against the total.
_TOLERANCE = Decimal("0.01")


def _decimal(value: Any) -> Decimal | None:
    if not isinstance(value, str):
        return None
    try:
        number = Decimal(value)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _check_price(report: ErrorReport, price: Any, path: str) -> tuple[Decimal | None, Any]:
    """Validate a ``{value, currency}`` object; returns (value, currency)."""
    if not isinstance(price, dict):
        report.add(path, f"{path} is missing")
        return None, None
    value = _decimal(price.get("value"))
    if price.get("value") is None:
        report.add(f"{path}.value", f"{path}.value is missing")
    elif value is None:
        report.add(f"{path}.value", f"{path}.value must be a numeric string")
    currency = price.get("currency")
    if not currency:
        report.add(f"{path}.currency", f"{path}.currency is missing")
    return value, currency


def validate_quote(quote: Any, step: str) -> ErrorReport:
    """Validate ``order.quote`` for *step*.

    The breakup must be non-empty, use known titles, share the quote's
    currency, and add up to ``quote.price.value`` (discounts subtract).
    """
    report = ErrorReport()
    if not isinstance(quote, dict) or not quote:
        report.add("quote", f"quote is missing in /{step}")
        return report

    total, currency = _check_price(report, quote.get("price"), "quote.price")

    if "ttl" in quote and not is_iso_duration(quote["ttl"]):
        report.add("quote.ttl", "quote.ttl must be an ISO 8601 duration")

    breakup = quote.get("breakup")
    if not isinstance(breakup, list) or not breakup:
        report.add("quote.breakup", f"quote.breakup is missing or empty in /{step}")
        return report

    running = Decimal("0")
    summable = total is not None
    for idx, line in enumerate(breakup):
        path = f"quote.breakup[{idx}]"
        if not isinstance(line, dict):
            report.add(path, "breakup line must be an object")
            summable = False
            continue
        title = line.get("title")
        if not title:
            report.add(f"{path}.title", "title is missing")
        elif not isinstance(title, str):
            report.add(f"{path}.title", "title must be a string")
        elif title not in BREAKUP_TITLES:
            report.add(
                f"{path}.title",
                f"title {title} is not one of {', '.join(sorted(BREAKUP_TITLES))}",
            )

        value, line_currency = _check_price(report, line.get("price"), f"{path}.price")
        if line_currency and currency and line_currency != currency:
            report.add(
                f"{path}.price.currency",
                f"currency {line_currency} differs from quote currency {currency}",
            )
        if value is None:
            summable = False
            continue
        running += -abs(value) if isinstance(title, str) and title in _NEGATIVE_TITLES else value

    if summable and total is not None and abs(running - total) > _TOLERANCE:
        report.add(
            "quote.price.value",
            f"quote.price.value {total} does not match the breakup total {running}",
        )
    return report
