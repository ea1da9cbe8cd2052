"""SQLAlchemy-backed document store.

Documents are JSON bodies keyed by (collection, id). Equality filters are
pushed down as JSON path comparisons, which SQLAlchemy renders for
PostgreSQL, MySQL and SQLite alike.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from estatecalc.exceptions import DocumentNotFound, PersistenceFailure
from estatecalc.models.db import DocumentRecord
from estatecalc.store.base import Query

logger = logging.getLogger(__name__)

META_COLUMNS = {
    "createdAt": DocumentRecord.created_at,
    "updatedAt": DocumentRecord.updated_at,
    "id": DocumentRecord.id,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _bind_name(session_factory: async_sessionmaker) -> str:
    bind = session_factory.kw.get("bind")
    if bind is None:
        return "sql"
    return bind.url.render_as_string(hide_password=True)


def _filter_clause(key: str, value: Any):
    if key in META_COLUMNS:
        return META_COLUMNS[key] == value
    element = DocumentRecord.data[key]
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


class SqlDocumentStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.name = _bind_name(session_factory)

    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        now = self.clock()
        body = {k: v for k, v in data.items() if k not in META_COLUMNS}
        record = DocumentRecord(
            collection=collection, id=document_id, created_at=now, updated_at=now, data=body
        )
        document = record.to_document()
        try:
            async with self.session_factory() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to create document in {collection}", e) from e
        logger.debug("Created %s/%s", collection, document_id)
        return document

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        try:
            async with self.session_factory() as session:
                record = await session.get(DocumentRecord, (collection, document_id))
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to read {collection}/{document_id}", e) from e
        if record is None:
            raise DocumentNotFound(collection, document_id)
        return record.to_document()

    async def list(self, collection: str, query: Query) -> list[dict[str, Any]]:
        stmt = select(DocumentRecord).where(DocumentRecord.collection == collection)
        for key, value in query.filters.items():
            stmt = stmt.where(_filter_clause(key, value))

        if query.order_by in META_COLUMNS:
            order_col = META_COLUMNS[query.order_by]
        else:
            order_col = DocumentRecord.data[query.order_by].as_float()
        stmt = stmt.order_by(
            order_col.desc() if query.descending else order_col.asc(),
            DocumentRecord.id.desc() if query.descending else DocumentRecord.id.asc(),
        ).limit(query.limit)

        try:
            async with self.session_factory() as session:
                records = (await session.scalars(stmt)).all()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to list {collection}", e) from e
        return [r.to_document() for r in records]

    async def delete(self, collection: str, document_id: str) -> None:
        try:
            async with self.session_factory() as session:
                record = await session.get(DocumentRecord, (collection, document_id))
                if record is None:
                    raise DocumentNotFound(collection, document_id)
                await session.delete(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to delete {collection}/{document_id}", e) from e
        logger.debug("Deleted %s/%s", collection, document_id)
