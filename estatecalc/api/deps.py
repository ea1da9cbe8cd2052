"""FastAPI dependency injection."""

import functools

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from estatecalc.config import settings
from estatecalc.models.db import Base
from estatecalc.services.calculations import CalculationService
from estatecalc.store.appwrite import AppwriteDocumentStore
from estatecalc.store.base import DocumentStore
from estatecalc.store.properties import DocumentPropertyLookup
from estatecalc.store.sql import SqlDocumentStore


@functools.lru_cache
def _sql_engine():
    return create_async_engine(settings.database_url, echo=settings.debug)


@functools.lru_cache
def get_store() -> DocumentStore:
    if settings.store_backend == "appwrite":
        return AppwriteDocumentStore()
    if settings.store_backend != "sql":
        raise ValueError(f"Unknown store backend: {settings.store_backend}")
    return SqlDocumentStore(async_sessionmaker(_sql_engine(), expire_on_commit=False))


async def init_db() -> None:
    """Create the documents table if it does not exist (SQL backend only)."""
    if settings.store_backend != "sql":
        return
    async with _sql_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_calculation_service(store: DocumentStore = Depends(get_store)) -> CalculationService:
    return CalculationService(store, DocumentPropertyLookup(store))
