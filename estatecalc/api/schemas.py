"""Pydantic schemas for API request/response models.

Wire format is camelCase; Python attributes stay snake_case.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Request schemas ----

# Amounts are optional here so a missing field reaches the calculator and
# gets its field-specific message instead of a generic schema error.

class MortgageRequest(CamelModel):
    property_id: str | None = None
    property_price: Decimal | None = None
    loan_amount: Decimal | None = None
    down_payment: Decimal | None = None
    interest_rate: Decimal | None = Field(None, description="Annual rate in percent")
    loan_term: Decimal | None = Field(None, description="Years")
    user_id: str | None = None
    save_calculation: bool = False


class InstallmentRequest(CamelModel):
    property_id: str | None = None
    property_price: Decimal | None = None
    deposit_percent: Decimal | None = None
    months: Decimal | None = None
    interest_rate: Decimal | None = Field(None, description="Annual rate in percent, default 0")
    user_id: str | None = None
    save_calculation: bool = False


# ---- Response schemas ----

class CalculationResponse(CamelModel):
    success: bool = True
    calculation: dict[str, Any]
    saved: bool
    save_error: str | None = None


class HistoryResponse(CamelModel):
    success: bool = True
    calculations: list[dict[str, Any]] = []


class DeleteResponse(CamelModel):
    success: bool = True


class AmortizationPaymentResponse(CamelModel):
    period: int
    payment: int
    principal: int
    interest: int
    balance: int


class YearlySummaryResponse(CamelModel):
    year: int
    principal: int
    interest: int
    payments: int
    ending_balance: int


class ScheduleResponse(CamelModel):
    success: bool = True
    monthly_payment: int
    total_interest: int
    total_principal: int
    total_payment: int
    payments: list[AmortizationPaymentResponse]
    yearly: list[YearlySummaryResponse]


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    field: str | None = None
