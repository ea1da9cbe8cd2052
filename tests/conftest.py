"""Shared fixtures.

Canonical deal: NGN 10M listing, 2M down, 8M loan at 25% over 15 years.
Canonical plan: NGN 1M listing, 20% deposit over 12 months, interest-free.
"""

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from estatecalc.engine.calculator import compute_installment, compute_mortgage
from estatecalc.models.db import Base
from estatecalc.store.properties import DocumentPropertyLookup
from estatecalc.store.sql import SqlDocumentStore

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_property_cache():
    DocumentPropertyLookup._fetch.cache.clear()
    yield
    DocumentPropertyLookup._fetch.cache.clear()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def canonical_mortgage(now):
    return compute_mortgage(
        Decimal("10000000"),
        Decimal("8000000"),
        Decimal("2000000"),
        Decimal("25"),
        15,
        property_id="prop-lekki-01",
        user_id="user-1",
        now=now,
    )


@pytest.fixture
def canonical_installment(now):
    return compute_installment(
        Decimal("1000000"),
        Decimal("20"),
        12,
        property_id="prop-ikeja-07",
        user_id="user-1",
        now=now,
    )


@pytest.fixture
def clock():
    """Strictly increasing timestamps so newest-first ordering is deterministic."""
    ticks = itertools.count()
    return lambda: FIXED_NOW + timedelta(seconds=next(ticks))


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(session_factory, clock) -> SqlDocumentStore:
    return SqlDocumentStore(session_factory, clock=clock)
