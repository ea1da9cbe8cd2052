"""Protocol definitions for the document store and property lookups.

Each protocol defines the interface that concrete backends must satisfy.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from estatecalc.models.property import PropertySummary

# Sort key for the store-assigned creation timestamp
CREATED_AT = "createdAt"


@dataclass(frozen=True)
class Query:
    """Equality filters, one sort key and a limit."""
    filters: dict[str, Any] = field(default_factory=dict)
    order_by: str = CREATED_AT
    descending: bool = True
    limit: int = 25


@runtime_checkable
class DocumentStore(Protocol):
    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Store a new document. Returns it with id, createdAt and updatedAt."""
        ...

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        """Fetch one document. Raises DocumentNotFound."""
        ...

    async def list(self, collection: str, query: Query) -> list[dict[str, Any]]:
        """Documents matching every filter, sorted and limited."""
        ...

    async def delete(self, collection: str, document_id: str) -> None:
        """Remove a document. Raises DocumentNotFound."""
        ...


@runtime_checkable
class PropertyLookup(Protocol):
    async def get(self, property_id: str) -> PropertySummary | None:
        """Title and slug of a listing, or None if it no longer exists."""
        ...
