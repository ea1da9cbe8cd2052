"""Stored-record shape for calculations: serialize, classify, rebuild, enrich."""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable

from estatecalc.exceptions import EnrichmentFailure
from estatecalc.models.calculation import (
    Calculation,
    CalculationType,
    InstallmentCalculation,
    MortgageCalculation,
)
from estatecalc.models.property import PropertySummary

logger = logging.getLogger(__name__)

PropertyGetter = Callable[[str], Awaitable[PropertySummary | None]]

MORTGAGE_FIELDS = (
    "propertyPrice", "loanAmount", "downPayment", "downPaymentPercent", "interestRate",
    "loanTerm", "monthlyPayment", "totalPayment", "totalInterest",
)
INSTALLMENT_FIELDS = (
    "propertyPrice", "depositPercent", "depositAmount", "months", "interestRate",
    "monthlyPayment", "totalPayment",
)


def _number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _decimal(value: int | float) -> Decimal:
    return Decimal(str(value))


def _parse_date(record: dict[str, Any]) -> datetime | None:
    raw = record.get("calculationDate") or record.get("createdAt")
    if not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def to_record(calc: Calculation) -> dict[str, Any]:
    """Document body for the store (camelCase, JSON-safe)."""
    record: dict[str, Any] = {}
    if calc.id:
        record["id"] = calc.id
    if calc.user_id:
        record["userId"] = calc.user_id
    if calc.property_id:
        record["propertyId"] = calc.property_id

    record["propertyPrice"] = _number(calc.property_price)
    record["calculationType"] = calc.calculation_type.value

    if isinstance(calc, MortgageCalculation):
        record.update({
            "loanAmount": _number(calc.loan_amount),
            "downPayment": _number(calc.down_payment),
            "downPaymentPercent": float(calc.down_payment_percent),
            "interestRate": _number(calc.interest_rate),
            "loanTerm": calc.loan_term,
            "monthlyPayment": int(calc.monthly_payment),
            "totalPayment": int(calc.total_payment),
            "totalInterest": int(calc.total_interest),
        })
    else:
        record.update({
            "depositPercent": _number(calc.deposit_percent),
            "depositAmount": int(calc.deposit_amount),
            "months": calc.months,
            "interestRate": _number(calc.interest_rate),
            "monthlyPayment": int(calc.monthly_payment),
            "totalPayment": int(calc.total_payment),
        })

    record["calculationDate"] = calc.calculation_date.isoformat()
    record["currency"] = calc.currency
    record["isSaved"] = bool(calc.is_saved)

    if calc.property_title is not None:
        record["propertyTitle"] = calc.property_title
    if calc.property_slug is not None:
        record["propertySlug"] = calc.property_slug
    return record


def classify(record: Any) -> CalculationType | None:
    """Which calculation variant a stored record is, or None if it is neither.

    Shapes must match exactly: a mortgage record carrying installment fields
    (or the reverse) is treated as corrupt rather than guessed at. The record
    also needs a parseable calculationDate (or createdAt).
    """
    if not isinstance(record, dict):
        return None
    if "isSaved" in record and not isinstance(record["isSaved"], bool):
        return None

    kind = record.get("calculationType")
    if kind == CalculationType.MORTGAGE.value:
        required, foreign = MORTGAGE_FIELDS, ("depositPercent", "depositAmount", "months")
    elif kind == CalculationType.INSTALLMENT.value:
        required, foreign = INSTALLMENT_FIELDS, ("loanAmount", "downPayment", "loanTerm")
    else:
        return None

    if not all(_is_number(record.get(f)) for f in required):
        return None
    if any(f in record for f in foreign):
        return None
    if _parse_date(record) is None:
        return None
    return CalculationType(kind)


def from_record(record: dict[str, Any]) -> Calculation:
    """Rebuild a typed calculation from a stored record.

    Raises ValueError if the record does not classify.
    """
    kind = classify(record)
    if kind is None:
        raise ValueError("Record is not a calculation")

    common = dict(
        property_price=_decimal(record["propertyPrice"]),
        interest_rate=_decimal(record["interestRate"]),
        monthly_payment=_decimal(record["monthlyPayment"]),
        total_payment=_decimal(record["totalPayment"]),
        calculation_date=_parse_date(record),
        currency=record.get("currency", "NGN"),
        is_saved=record.get("isSaved", False),
        property_id=record.get("propertyId"),
        user_id=record.get("userId"),
        id=record.get("id"),
        property_title=record.get("propertyTitle"),
        property_slug=record.get("propertySlug"),
    )

    if kind is CalculationType.MORTGAGE:
        return MortgageCalculation(
            loan_amount=_decimal(record["loanAmount"]),
            down_payment=_decimal(record["downPayment"]),
            down_payment_percent=_decimal(record["downPaymentPercent"]),
            loan_term=int(record["loanTerm"]),
            total_interest=_decimal(record["totalInterest"]),
            **common,
        )
    return InstallmentCalculation(
        deposit_percent=_decimal(record["depositPercent"]),
        deposit_amount=_decimal(record["depositAmount"]),
        months=int(record["months"]),
        **common,
    )


def to_calculations(documents: list[dict[str, Any]]) -> list[Calculation]:
    """Typed calculations for every document that classifies; the rest are dropped."""
    calculations = []
    for doc in documents:
        if classify(doc) is None:
            logger.warning("Skipping malformed calculation document %s", doc.get("id"))
            continue
        calculations.append(from_record(doc))
    return calculations


async def _lookup(get_property: PropertyGetter, property_id: str, timeout: float | None) -> PropertySummary:
    try:
        summary = await asyncio.wait_for(get_property(property_id), timeout)
    except Exception as e:
        raise EnrichmentFailure(f"Property lookup failed for {property_id}: {e!r}") from e
    if summary is None:
        raise EnrichmentFailure(f"Property {property_id} not found")
    return summary


async def to_display_record(
    calc: Calculation,
    get_property: PropertyGetter | None = None,
    timeout: float | None = None,
) -> Calculation:
    """Attach the listing title/slug for history display.

    Best-effort: any lookup failure or timeout returns `calc` unchanged.
    """
    if not calc.property_id or get_property is None:
        return calc
    try:
        summary = await _lookup(get_property, calc.property_id, timeout)
    except EnrichmentFailure as e:
        logger.warning("%s", e)
        return calc
    return replace(calc, property_title=summary.title, property_slug=summary.slug or summary.id)
