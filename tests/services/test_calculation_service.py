import asyncio
import itertools
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from estatecalc.exceptions import DocumentNotFound, PersistenceFailure, ValidationError
from estatecalc.models.property import PropertySummary
from estatecalc.services.calculations import SAVE_ERROR, CalculationService
from estatecalc.store.base import Query
from estatecalc.store.properties import DocumentPropertyLookup

CALCS = "mortgage_calculations"

MORTGAGE = dict(
    property_price=Decimal("10000000"),
    loan_amount=Decimal("8000000"),
    down_payment=Decimal("2000000"),
    interest_rate=Decimal("25"),
    loan_term=15,
)
INSTALLMENT = dict(
    property_price=Decimal("1000000"),
    deposit_percent=Decimal("20"),
    months=12,
)


def _ids():
    counter = itertools.count(1)
    return lambda: f"calc-{next(counter)}"


@pytest.fixture
def service(sql_store):
    return CalculationService(sql_store, DocumentPropertyLookup(sql_store), collection=CALCS, id_factory=_ids())


class FailingStore:
    async def create(self, collection, document_id, data):
        raise PersistenceFailure("store rejected write")


class TestCalculate:
    async def test_unsaved_by_default(self, service, sql_store):
        outcome = await service.calculate_mortgage(**MORTGAGE, user_id="user-1")
        assert outcome.saved is False
        assert outcome.save_error is None
        assert outcome.calculation["isSaved"] is False
        assert outcome.calculation["monthlyPayment"] == 170842
        assert await sql_store.list(CALCS, Query()) == []

    async def test_saved_when_requested_with_user(self, service, sql_store):
        outcome = await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        assert outcome.saved is True
        assert outcome.calculation["id"] == "calc-1"
        assert outcome.calculation["isSaved"] is True
        stored = await sql_store.get(CALCS, "calc-1")
        assert stored["totalInterest"] == 22751616
        assert stored["userId"] == "user-1"

    async def test_save_requested_without_user(self, service, sql_store):
        outcome = await service.calculate_installment(**INSTALLMENT, save_calculation=True)
        assert outcome.saved is False
        assert outcome.calculation["isSaved"] is False
        assert "userId" not in outcome.calculation

    async def test_installment_saved(self, service):
        outcome = await service.calculate_installment(
            **INSTALLMENT, property_id="prop-1", user_id="user-1", save_calculation="true"
        )
        assert outcome.saved is True
        assert outcome.calculation["calculationType"] == "installment"
        assert outcome.calculation["propertyId"] == "prop-1"
        assert outcome.calculation["monthlyPayment"] == 66667

    async def test_persistence_failure_keeps_result(self):
        service = CalculationService(FailingStore(), collection=CALCS)
        outcome = await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        assert outcome.saved is False
        assert outcome.save_error == SAVE_ERROR
        # Intent is still recorded on the record itself
        assert outcome.calculation["isSaved"] is True
        assert outcome.calculation["monthlyPayment"] == 170842

    async def test_validation_error_propagates_without_store_call(self):
        store = AsyncMock()
        service = CalculationService(store, collection=CALCS)
        with pytest.raises(ValidationError, match="Loan term"):
            await service.calculate_mortgage(
                **{**MORTGAGE, "loan_term": 30}, user_id="user-1", save_calculation=True
            )
        store.create.assert_not_awaited()


class TestHistory:
    async def test_newest_first_saved_only(self, service):
        await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        await service.calculate_mortgage(**MORTGAGE, user_id="user-1")  # not saved
        await service.calculate_installment(**INSTALLMENT, user_id="user-2", save_calculation=True)
        await service.calculate_installment(**INSTALLMENT, user_id="user-1", save_calculation=True)

        history = await service.history("user-1")
        assert [c.id for c in history] == ["calc-3", "calc-1"]
        assert [c.calculation_type.value for c in history] == ["installment", "mortgage"]

    async def test_limit(self, service):
        for _ in range(3):
            await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        assert len(await service.history("user-1", limit=2)) == 2

    async def test_enriches_with_property(self, service, sql_store):
        await sql_store.create("properties", "prop-1", {"title": "3 Bed Flat, Yaba", "slug": "3-bed-flat-yaba"})
        await service.calculate_mortgage(
            **MORTGAGE, property_id="prop-1", user_id="user-1", save_calculation=True
        )
        await service.calculate_mortgage(
            **MORTGAGE, property_id="prop-deleted", user_id="user-1", save_calculation=True
        )

        history = await service.history("user-1")
        by_property = {c.property_id: c for c in history}
        assert by_property["prop-1"].property_title == "3 Bed Flat, Yaba"
        assert by_property["prop-1"].property_slug == "3-bed-flat-yaba"
        assert by_property["prop-deleted"].property_title is None

    async def test_slow_lookup_does_not_block_history(self, sql_store, monkeypatch):
        from estatecalc.config import settings

        class SlowLookup:
            async def get(self, property_id):
                await asyncio.sleep(1)
                return PropertySummary(id=property_id, title="late", slug="late")

        monkeypatch.setattr(settings, "enrichment_timeout_seconds", 0.01)
        service = CalculationService(sql_store, SlowLookup(), collection=CALCS, id_factory=_ids())
        await service.calculate_mortgage(**MORTGAGE, property_id="p", user_id="u", save_calculation=True)

        history = await service.history("u")
        assert len(history) == 1
        assert history[0].property_title is None

    async def test_skips_corrupt_documents(self, service, sql_store):
        await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        await sql_store.create(CALCS, "broken", {
            "userId": "user-1", "isSaved": True, "calculationType": "mortgage",
        })
        history = await service.history("user-1")
        assert [c.id for c in history] == ["calc-1"]

    async def test_skips_document_with_bad_date(self, service, sql_store):
        await service.calculate_installment(**INSTALLMENT, user_id="user-1", save_calculation=True)
        good = await sql_store.get(CALCS, "calc-1")
        bad = {k: v for k, v in good.items() if k not in ("id", "createdAt", "updatedAt")}
        bad.update(calculationDate="not-a-date")
        await sql_store.create(CALCS, "bad-date", bad)

        history = await service.history("user-1")
        assert [c.id for c in history] == ["calc-1"]

    async def test_list_failure_propagates(self):
        store = AsyncMock()
        store.list.side_effect = PersistenceFailure("down")
        with pytest.raises(PersistenceFailure):
            await CalculationService(store, collection=CALCS).history("user-1")


class TestDelete:
    async def test_delete(self, service):
        await service.calculate_mortgage(**MORTGAGE, user_id="user-1", save_calculation=True)
        await service.delete("calc-1")
        assert await service.history("user-1") == []

    async def test_delete_missing(self, service):
        with pytest.raises(DocumentNotFound):
            await service.delete("nope")
