"""Calculation service: compute, optionally persist, and read back history.

Flow: validate + compute (engine) → flag for saving → store → response.
Validation and computation errors propagate; persistence and enrichment
failures degrade to an unsaved / unenriched result.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable
from uuid import uuid4

from estatecalc.config import settings
from estatecalc.engine.calculator import compute_installment, compute_mortgage, mark_saved_if_requested
from estatecalc.engine.records import to_calculations, to_display_record, to_record
from estatecalc.exceptions import PersistenceFailure
from estatecalc.models.calculation import Calculation
from estatecalc.store.base import DocumentStore, PropertyLookup, Query

logger = logging.getLogger(__name__)

SAVE_ERROR = "Failed to save calculation to history"


@dataclass(frozen=True)
class CalculationOutcome:
    calculation: dict[str, Any]
    saved: bool  # Whether the store accepted it on this call
    save_error: str | None = None


def _new_id() -> str:
    return uuid4().hex


class CalculationService:
    def __init__(
        self,
        store: DocumentStore,
        property_lookup: PropertyLookup | None = None,
        collection: str | None = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.store = store
        self.property_lookup = property_lookup
        self.collection = collection or settings.calculations_collection
        self.id_factory = id_factory

    async def calculate_mortgage(
        self,
        *,
        property_price: object,
        loan_amount: object,
        down_payment: object,
        interest_rate: object,
        loan_term: object,
        property_id: str | None = None,
        user_id: str | None = None,
        save_calculation: object = False,
    ) -> CalculationOutcome:
        calc = compute_mortgage(
            property_price,
            loan_amount,
            down_payment,
            interest_rate,
            loan_term,
            property_id=property_id,
            user_id=user_id,
        )
        return await self._finish(calc, save_calculation, user_id)

    async def calculate_installment(
        self,
        *,
        property_price: object,
        deposit_percent: object,
        months: object,
        interest_rate: object = 0,
        property_id: str | None = None,
        user_id: str | None = None,
        save_calculation: object = False,
    ) -> CalculationOutcome:
        calc = compute_installment(
            property_price,
            deposit_percent,
            months,
            interest_rate,
            property_id=property_id,
            user_id=user_id,
        )
        return await self._finish(calc, save_calculation, user_id)

    async def _finish(self, calc: Calculation, save_calculation: object, user_id: str | None) -> CalculationOutcome:
        calc = mark_saved_if_requested(calc, save_calculation, user_id)
        record = to_record(calc)
        if not calc.is_saved:
            return CalculationOutcome(calculation=record, saved=False)

        document_id = self.id_factory()
        try:
            stored = await self.store.create(self.collection, document_id, record)
        except PersistenceFailure as e:
            logger.warning(
                "Could not save %s calculation for user %s: %s",
                calc.calculation_type.value, calc.user_id, e,
            )
            return CalculationOutcome(calculation=record, saved=False, save_error=SAVE_ERROR)

        logger.info(
            "Saved %s calculation %s for user %s",
            calc.calculation_type.value, document_id, calc.user_id,
        )
        return CalculationOutcome(calculation=stored, saved=True)

    async def history(self, user_id: str, limit: int | None = None) -> list[Calculation]:
        """Saved calculations for a user, newest first, with listing titles attached."""
        query = Query(
            filters={"userId": user_id, "isSaved": True},
            limit=limit or settings.history_limit,
        )
        documents = await self.store.list(self.collection, query)
        calculations = to_calculations(documents)

        if self.property_lookup is None:
            return calculations
        return list(await asyncio.gather(*(
            to_display_record(
                calc, self.property_lookup.get, timeout=settings.enrichment_timeout_seconds
            )
            for calc in calculations
        )))

    async def delete(self, calculation_id: str) -> None:
        await self.store.delete(self.collection, calculation_id)
        logger.info("Deleted calculation %s", calculation_id)
