"""Listing lookups for calculation history, backed by the document store."""

import logging
from decimal import Decimal
from typing import Any

from estatecalc.config import settings
from estatecalc.exceptions import DocumentNotFound
from estatecalc.models.property import PropertySummary
from estatecalc.store.base import DocumentStore
from estatecalc.store.cache import cached

logger = logging.getLogger(__name__)


class DocumentPropertyLookup:
    def __init__(self, store: DocumentStore, collection: str | None = None):
        self.store = store
        self.collection = collection or settings.properties_collection
        self.cache_scope = f"{getattr(store, 'name', type(store).__name__)}:{self.collection}"

    @cached("property:summary")
    async def _fetch(self, property_id: str) -> dict[str, Any] | None:
        try:
            doc = await self.store.get(self.collection, property_id)
        except DocumentNotFound:
            logger.info("Property %s no longer exists", property_id)
            return None
        return {
            "id": doc.get("id", property_id),
            "title": doc.get("title", ""),
            "slug": doc.get("slug") or doc.get("id", property_id),
            "price": str(doc.get("price", 0)),
        }

    async def get(self, property_id: str) -> PropertySummary | None:
        data = await self._fetch(property_id)
        if data is None:
            return None
        return PropertySummary(
            id=data["id"],
            title=data["title"],
            slug=data["slug"],
            price=Decimal(data["price"]),
        )
