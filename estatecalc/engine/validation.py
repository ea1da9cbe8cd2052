"""Input validation for the calculators.

Every check raises ValidationError carrying the wire field name, so the
caller can attach the message to the right form input.
"""

from decimal import Decimal, InvalidOperation

from estatecalc.config import settings
from estatecalc.exceptions import ValidationError

LABELS = {
    "propertyPrice": "Property price",
    "loanAmount": "Loan amount",
    "downPayment": "Down payment",
    "interestRate": "Interest rate",
    "loanTerm": "Loan term",
    "depositPercent": "Deposit percent",
    "months": "Payment plan months",
}


def _fmt(value: Decimal | int) -> str:
    return f"{Decimal(value).normalize():f}"


def to_decimal(field: str, value: object) -> Decimal:
    """Coerce a numeric input to Decimal, rejecting missing and non-numeric values."""
    label = LABELS.get(field, field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, f"{label} is required")
    # bool is an int subclass; a checkbox value is never an amount
    if isinstance(value, bool):
        raise ValidationError(field, f"{label} must be a number")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(field, f"{label} must be a number") from None
    else:
        raise ValidationError(field, f"{label} must be a number")

    if not result.is_finite():
        raise ValidationError(field, f"{label} must be a finite number")
    return result


def to_whole_number(field: str, value: object) -> int:
    number = to_decimal(field, value)
    if number != number.to_integral_value():
        raise ValidationError(field, f"{LABELS.get(field, field)} must be a whole number")
    return int(number)


def validate_mortgage_inputs(
    property_price: object,
    loan_amount: object,
    down_payment: object,
    interest_rate: object,
    loan_term: object,
) -> tuple[Decimal, Decimal, Decimal, Decimal, int]:
    """Check mortgage preconditions in the order the form reports them.

    Returns the coerced (property_price, loan_amount, down_payment,
    interest_rate, loan_term).
    """
    price = to_decimal("propertyPrice", property_price)
    loan = to_decimal("loanAmount", loan_amount)
    down = to_decimal("downPayment", down_payment)
    rate = to_decimal("interestRate", interest_rate)
    term = to_whole_number("loanTerm", loan_term)

    if price <= 0:
        raise ValidationError("propertyPrice", "Property price must be greater than 0")

    low, high = settings.mortgage_min_rate, settings.mortgage_max_rate
    if rate < low or rate > high:
        raise ValidationError(
            "interestRate", f"Interest rate must be between {_fmt(low)}% and {_fmt(high)}%"
        )

    min_term, max_term = settings.mortgage_min_term_years, settings.mortgage_max_term_years
    if term < min_term or term > max_term:
        raise ValidationError(
            "loanTerm", f"Loan term must be between {min_term} and {max_term} years"
        )

    if down < 0:
        raise ValidationError("downPayment", "Down payment cannot be negative")
    if down >= price:
        raise ValidationError("downPayment", "Down payment must be less than property price")

    if loan <= 0:
        raise ValidationError("loanAmount", "Loan amount must be greater than 0")

    return price, loan, down, rate, term


def validate_installment_inputs(
    property_price: object,
    deposit_percent: object,
    months: object,
    interest_rate: object = 0,
) -> tuple[Decimal, Decimal, int, Decimal]:
    """Check installment-plan preconditions.

    The mortgage rate band does not apply here: developer plans are usually
    interest-free, so the rate only has to be non-negative.
    """
    price = to_decimal("propertyPrice", property_price)
    deposit = to_decimal("depositPercent", deposit_percent)
    term = to_whole_number("months", months)
    rate = Decimal("0") if interest_rate is None else to_decimal("interestRate", interest_rate)

    if price <= 0:
        raise ValidationError("propertyPrice", "Property price must be greater than 0")

    min_months, max_months = settings.installment_min_months, settings.installment_max_months
    if term < min_months or term > max_months:
        raise ValidationError(
            "months", f"Payment plan must be between {min_months} and {max_months} months"
        )

    low, high = settings.installment_min_deposit_pct, settings.installment_max_deposit_pct
    if deposit < low or deposit > high:
        raise ValidationError(
            "depositPercent", f"Deposit must be between {_fmt(low)}% and {_fmt(high)}%"
        )

    if rate < 0:
        raise ValidationError("interestRate", "Interest rate cannot be negative")

    return price, deposit, term, rate
