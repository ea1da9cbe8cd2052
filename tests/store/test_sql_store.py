"""SQL document store on SQLite (aiosqlite)."""

import pytest
from sqlalchemy.exc import OperationalError

from estatecalc.exceptions import DocumentNotFound, PersistenceFailure
from estatecalc.store.base import DocumentStore, Query
from estatecalc.store.sql import SqlDocumentStore

CALCS = "mortgage_calculations"


class TestSqlDocumentStore:
    def test_satisfies_protocol(self, sql_store):
        assert isinstance(sql_store, DocumentStore)

    async def test_create_returns_metadata(self, sql_store):
        doc = await sql_store.create(CALCS, "doc-1", {"userId": "u1", "isSaved": True})
        assert doc["id"] == "doc-1"
        assert doc["userId"] == "u1"
        assert doc["createdAt"].startswith("2026-03-14T09:30:00")
        assert doc["createdAt"] == doc["updatedAt"]

    async def test_create_ignores_caller_metadata(self, sql_store):
        doc = await sql_store.create(CALCS, "doc-1", {"id": "spoofed", "createdAt": "1999", "v": 1})
        assert doc["id"] == "doc-1"
        assert doc["createdAt"] != "1999"

    async def test_get(self, sql_store):
        await sql_store.create(CALCS, "doc-1", {"monthlyPayment": 170842})
        doc = await sql_store.get(CALCS, "doc-1")
        assert doc["monthlyPayment"] == 170842

    async def test_get_missing(self, sql_store):
        with pytest.raises(DocumentNotFound):
            await sql_store.get(CALCS, "nope")

    async def test_collections_are_separate(self, sql_store):
        await sql_store.create("properties", "doc-1", {"title": "Duplex"})
        with pytest.raises(DocumentNotFound):
            await sql_store.get(CALCS, "doc-1")

    async def test_duplicate_id_is_persistence_failure(self, sql_store):
        await sql_store.create(CALCS, "doc-1", {})
        with pytest.raises(PersistenceFailure):
            await sql_store.create(CALCS, "doc-1", {})

    async def test_list_filters_on_string_and_bool(self, sql_store):
        await sql_store.create(CALCS, "a", {"userId": "u1", "isSaved": True})
        await sql_store.create(CALCS, "b", {"userId": "u1", "isSaved": False})
        await sql_store.create(CALCS, "c", {"userId": "u2", "isSaved": True})
        await sql_store.create(CALCS, "d", {"userId": "u1", "isSaved": True})

        docs = await sql_store.list(CALCS, Query(filters={"userId": "u1", "isSaved": True}))
        assert [d["id"] for d in docs] == ["d", "a"]

    async def test_list_filters_on_numbers(self, sql_store):
        await sql_store.create(CALCS, "a", {"months": 12})
        await sql_store.create(CALCS, "b", {"months": 24})
        docs = await sql_store.list(CALCS, Query(filters={"months": 24}))
        assert [d["id"] for d in docs] == ["b"]

    async def test_list_order_and_limit(self, sql_store):
        for i in range(5):
            await sql_store.create(CALCS, f"doc-{i}", {"n": i})

        newest = await sql_store.list(CALCS, Query(limit=2))
        assert [d["id"] for d in newest] == ["doc-4", "doc-3"]

        oldest = await sql_store.list(CALCS, Query(descending=False, limit=2))
        assert [d["id"] for d in oldest] == ["doc-0", "doc-1"]

    async def test_list_sorts_by_data_field(self, sql_store):
        await sql_store.create(CALCS, "a", {"monthlyPayment": 300})
        await sql_store.create(CALCS, "b", {"monthlyPayment": 100})
        await sql_store.create(CALCS, "c", {"monthlyPayment": 200})
        docs = await sql_store.list(CALCS, Query(order_by="monthlyPayment", descending=False))
        assert [d["id"] for d in docs] == ["b", "c", "a"]

    async def test_delete(self, sql_store):
        await sql_store.create(CALCS, "doc-1", {})
        await sql_store.delete(CALCS, "doc-1")
        with pytest.raises(DocumentNotFound):
            await sql_store.get(CALCS, "doc-1")

    async def test_delete_missing(self, sql_store):
        with pytest.raises(DocumentNotFound):
            await sql_store.delete(CALCS, "nope")

    async def test_database_error_wrapped(self, tmp_path):
        from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

        # No tables created
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        store = SqlDocumentStore(async_sessionmaker(engine, expire_on_commit=False))
        try:
            with pytest.raises(PersistenceFailure) as exc:
                await store.list(CALCS, Query())
            assert isinstance(exc.value.cause, OperationalError)
        finally:
            await engine.dispose()
