"""Mortgage and installment-plan calculators.

Pure functions: raw inputs in, frozen calculation out. Validation happens
before any arithmetic; nothing is logged or persisted here.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Context, Decimal, localcontext

from estatecalc.config import settings
from estatecalc.engine.amortization import monthly_payment, monthly_rate, to_whole_units
from estatecalc.engine.validation import validate_installment_inputs, validate_mortgage_inputs
from estatecalc.exceptions import ComputationError
from estatecalc.models.calculation import Calculation, InstallmentCalculation, MortgageCalculation

FALSE_STRINGS = {"", "0", "false", "no", "off"}

# No traps: overflow and invalid results come out as Infinity/NaN and are
# reported as ComputationError by _finite.
ARITHMETIC = Context(traps=[])


def _finite(field: str, value: Decimal) -> Decimal:
    if not value.is_finite():
        raise ComputationError(field, value)
    return value


def _whole(field: str, value: Decimal) -> Decimal:
    # Quantize gives NaN when the value has more digits than the context allows
    return _finite(field, to_whole_units(value))


def compute_mortgage(
    property_price: object,
    loan_amount: object,
    down_payment: object,
    interest_rate: object,
    loan_term: object,
    *,
    property_id: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> MortgageCalculation:
    """Fixed-rate mortgage: monthly payment, total paid and total interest.

    Args:
        property_price: Listing price
        loan_amount: Principal borrowed
        down_payment: Cash paid upfront, must be below the price
        interest_rate: Annual rate in percent (e.g. 25 for 25%)
        loan_term: Term in whole years
    """
    price, loan, down, rate, term = validate_mortgage_inputs(
        property_price, loan_amount, down_payment, interest_rate, loan_term
    )

    n = term * 12
    with localcontext(ARITHMETIC):
        payment = monthly_payment(loan, monthly_rate(rate), n)
        total_payment = payment * n
        total_interest = total_payment - loan

        down_payment_percent = _finite("downPaymentPercent", down / price * 100)
        monthly = _whole("monthlyPayment", payment)
        total = _whole("totalPayment", total_payment)
        interest = _whole("totalInterest", total_interest)

    return MortgageCalculation(
        property_price=price,
        loan_amount=loan,
        down_payment=down,
        down_payment_percent=down_payment_percent,
        interest_rate=rate,
        loan_term=term,
        monthly_payment=monthly,
        total_payment=total,
        total_interest=interest,
        calculation_date=now or datetime.now(timezone.utc),
        currency=settings.currency,
        property_id=property_id or None,
        user_id=user_id or None,
    )


def compute_installment(
    property_price: object,
    deposit_percent: object,
    months: object,
    interest_rate: object = 0,
    *,
    property_id: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> InstallmentCalculation:
    """Deposit upfront, remainder spread over a short monthly plan.

    Interest-free plans split the remainder evenly; a positive rate amortizes
    it like a mortgage over `months` periods.
    """
    price, deposit_pct, term, rate = validate_installment_inputs(
        property_price, deposit_percent, months, interest_rate
    )

    with localcontext(ARITHMETIC):
        deposit_amount = price * deposit_pct / 100
        remaining = price - deposit_amount

        if rate > 0:
            payment = monthly_payment(remaining, monthly_rate(rate), term)
        else:
            payment = remaining / term

        total_payment = deposit_amount + payment * term

        deposit = _whole("depositAmount", deposit_amount)
        monthly = _whole("monthlyPayment", payment)
        total = _whole("totalPayment", total_payment)

    return InstallmentCalculation(
        property_price=price,
        deposit_percent=deposit_pct,
        deposit_amount=deposit,
        months=term,
        interest_rate=rate,
        monthly_payment=monthly,
        total_payment=total,
        calculation_date=now or datetime.now(timezone.utc),
        currency=settings.currency,
        property_id=property_id or None,
        user_id=user_id or None,
    )


def _is_requested(save_requested: object) -> bool:
    if isinstance(save_requested, str):
        return save_requested.strip().lower() not in FALSE_STRINGS
    return bool(save_requested)


def mark_saved_if_requested(
    calculation: Calculation,
    save_requested: object,
    user_id: str | None,
) -> Calculation:
    """Flag a calculation for history only when asked to AND a user owns it.

    Only `is_saved` changes, and it is always a real bool; history queries
    filter on it strictly.
    """
    has_user = isinstance(user_id, str) and bool(user_id.strip())
    return replace(calculation, is_saved=_is_requested(save_requested) and has_user)
