"""Calculator routes: mortgage, installment, schedule and saved history."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from estatecalc.api.deps import get_calculation_service
from estatecalc.api.schemas import (
    AmortizationPaymentResponse,
    CalculationResponse,
    DeleteResponse,
    HistoryResponse,
    InstallmentRequest,
    MortgageRequest,
    ScheduleResponse,
    YearlySummaryResponse,
)
from estatecalc.engine.amortization import amortization_schedule, to_whole_units, yearly_summary
from estatecalc.engine.calculator import compute_mortgage
from estatecalc.engine.records import to_record
from estatecalc.services.calculations import CalculationOutcome, CalculationService

router = APIRouter(prefix="/api/calculator", tags=["calculator"])


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": message})


def _outcome_response(outcome: CalculationOutcome) -> CalculationResponse:
    return CalculationResponse(
        calculation=outcome.calculation,
        saved=outcome.saved,
        save_error=outcome.save_error,
    )


def _whole(value) -> int:
    return int(to_whole_units(value))


@router.post(
    "/mortgage",
    response_model=CalculationResponse,
    response_model_exclude_none=True,
)
async def calculate_mortgage(
    req: MortgageRequest,
    service: CalculationService = Depends(get_calculation_service),
):
    """Fixed-rate mortgage, saved to history when requested by a signed-in user."""
    outcome = await service.calculate_mortgage(
        property_price=req.property_price,
        loan_amount=req.loan_amount,
        down_payment=req.down_payment,
        interest_rate=req.interest_rate,
        loan_term=req.loan_term,
        property_id=req.property_id,
        user_id=req.user_id,
        save_calculation=req.save_calculation,
    )
    return _outcome_response(outcome)


@router.post(
    "/installment",
    response_model=CalculationResponse,
    response_model_exclude_none=True,
)
async def calculate_installment(
    req: InstallmentRequest,
    service: CalculationService = Depends(get_calculation_service),
):
    """Deposit + monthly installment plan."""
    outcome = await service.calculate_installment(
        property_price=req.property_price,
        deposit_percent=req.deposit_percent,
        months=req.months,
        interest_rate=req.interest_rate,
        property_id=req.property_id,
        user_id=req.user_id,
        save_calculation=req.save_calculation,
    )
    return _outcome_response(outcome)


@router.post("/mortgage/schedule", response_model=ScheduleResponse)
async def mortgage_schedule(req: MortgageRequest):
    """Month-by-month amortization for a mortgage. Never persisted."""
    calc = compute_mortgage(
        req.property_price,
        req.loan_amount,
        req.down_payment,
        req.interest_rate,
        req.loan_term,
    )
    schedule = amortization_schedule(calc.loan_amount, calc.interest_rate, calc.loan_term * 12)

    return ScheduleResponse(
        monthly_payment=_whole(schedule.monthly_payment),
        total_interest=_whole(schedule.total_interest),
        total_principal=_whole(schedule.total_principal),
        total_payment=_whole(schedule.total_paid),
        payments=[
            AmortizationPaymentResponse(
                period=p.period,
                payment=_whole(p.payment),
                principal=_whole(p.principal),
                interest=_whole(p.interest),
                balance=_whole(p.balance),
            )
            for p in schedule.payments
        ],
        yearly=[
            YearlySummaryResponse(
                year=y.year,
                principal=int(y.principal),
                interest=int(y.interest),
                payments=int(y.payments),
                ending_balance=int(y.ending_balance),
            )
            for y in yearly_summary(schedule)
        ],
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    user_id: str | None = Query(None, alias="userId"),
    service: CalculationService = Depends(get_calculation_service),
):
    """Saved calculations for a user, newest first."""
    if not user_id:
        return _bad_request("User ID is required")
    calculations = await service.history(user_id)
    return HistoryResponse(calculations=[to_record(c) for c in calculations])


@router.delete("/history", response_model=DeleteResponse)
async def delete_calculation(
    calculation_id: str | None = Query(None, alias="id"),
    service: CalculationService = Depends(get_calculation_service),
):
    if not calculation_id:
        return _bad_request("Calculation ID is required")
    await service.delete(calculation_id)
    return DeleteResponse()
