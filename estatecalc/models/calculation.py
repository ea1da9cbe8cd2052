from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class CalculationType(Enum):
    MORTGAGE = "mortgage"
    INSTALLMENT = "installment"


@dataclass(frozen=True)
class MortgageCalculation:
    property_price: Decimal
    loan_amount: Decimal
    down_payment: Decimal
    down_payment_percent: Decimal  # Not rounded
    interest_rate: Decimal  # Annual, percent (e.g. Decimal("25"))
    loan_term: int  # Years
    monthly_payment: Decimal  # Whole currency units
    total_payment: Decimal
    total_interest: Decimal
    calculation_date: datetime
    currency: str = "NGN"
    is_saved: bool = False
    property_id: str | None = None  # Weak reference
    user_id: str | None = None  # Weak reference

    # Set by the store / history enrichment
    id: str | None = None
    property_title: str | None = None
    property_slug: str | None = None

    calculation_type: CalculationType = field(default=CalculationType.MORTGAGE, init=False)


@dataclass(frozen=True)
class InstallmentCalculation:
    property_price: Decimal
    deposit_percent: Decimal
    deposit_amount: Decimal  # Whole currency units
    months: int
    interest_rate: Decimal  # Annual, percent; 0 for interest-free plans
    monthly_payment: Decimal
    total_payment: Decimal
    calculation_date: datetime
    currency: str = "NGN"
    is_saved: bool = False
    property_id: str | None = None
    user_id: str | None = None

    id: str | None = None
    property_title: str | None = None
    property_slug: str | None = None

    calculation_type: CalculationType = field(default=CalculationType.INSTALLMENT, init=False)

    @property
    def remaining_amount(self) -> Decimal:
        return self.property_price - self.deposit_amount


Calculation = MortgageCalculation | InstallmentCalculation
