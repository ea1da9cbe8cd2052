"""Amortization math.

Pure functions: Decimal in, Decimal/dataclass out. No I/O, no rounding of
intermediate values; callers round what they persist.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from itertools import groupby

WHOLE_UNIT = Decimal("1")  # NGN has no sub-unit in listings


@dataclass(frozen=True)
class AmortizationPayment:
    period: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    payments: list[AmortizationPayment]
    monthly_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal

    @property
    def total_paid(self) -> Decimal:
        return self.total_interest + self.total_principal


@dataclass(frozen=True)
class YearSummary:
    year: int
    principal: Decimal
    interest: Decimal
    payments: Decimal
    ending_balance: Decimal


def to_whole_units(value: Decimal) -> Decimal:
    """Round half-up to the nearest whole currency unit."""
    return value.quantize(WHOLE_UNIT, ROUND_HALF_UP)


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Annual percentage rate (e.g. 25 for 25%) as a monthly fraction."""
    return annual_rate_percent / 100 / 12


def monthly_payment(principal: Decimal, rate: Decimal, number_of_payments: int) -> Decimal:
    """Fixed payment that amortizes `principal` over `number_of_payments` periods.

    `rate` is the periodic (monthly) rate as a fraction. Unrounded.
    """
    if rate == 0:
        return principal / number_of_payments

    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + rate) ** number_of_payments
    return principal * rate * factor / (factor - 1)


def amortization_schedule(
    principal: Decimal,
    annual_rate_percent: Decimal,
    number_of_payments: int,
) -> AmortizationSchedule:
    """Period-by-period breakdown in whole currency units.

    Interest is rounded each period; the last payment absorbs the rounding
    drift so the closing balance is exactly zero.
    """
    r = monthly_rate(annual_rate_percent)
    pmt = to_whole_units(monthly_payment(principal, r, number_of_payments))

    payments: list[AmortizationPayment] = []
    balance = principal
    total_interest = Decimal("0")
    total_principal = Decimal("0")

    for period in range(1, number_of_payments + 1):
        interest = to_whole_units(balance * r)
        principal_paid = pmt - interest

        if period == number_of_payments or principal_paid > balance:
            principal_paid = balance
            actual_payment = interest + principal_paid
        else:
            actual_payment = pmt

        balance -= principal_paid
        total_interest += interest
        total_principal += principal_paid

        payments.append(AmortizationPayment(
            period=period,
            payment=actual_payment,
            principal=principal_paid,
            interest=interest,
            balance=balance,
        ))

        if balance <= 0:
            break

    return AmortizationSchedule(
        payments=payments,
        monthly_payment=pmt,
        total_interest=total_interest,
        total_principal=total_principal,
    )


def yearly_summary(schedule: AmortizationSchedule) -> list[YearSummary]:
    """Per-year totals of a schedule, in whole units.

    Principal is the drop in the rounded balance, so the years sum to the
    loan amount exactly.
    """
    years = []
    opening = to_whole_units(schedule.total_principal)
    for year, payments in groupby(schedule.payments, key=lambda p: (p.period - 1) // 12 + 1):
        payments = list(payments)
        closing = to_whole_units(payments[-1].balance)
        interest = to_whole_units(sum((p.interest for p in payments), Decimal("0")))
        years.append(YearSummary(
            year=year,
            principal=opening - closing,
            interest=interest,
            payments=opening - closing + interest,
            ending_balance=closing,
        ))
        opening = closing
    return years
