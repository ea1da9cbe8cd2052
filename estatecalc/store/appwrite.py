"""Document store client for the hosted Appwrite backend."""

import json
import logging
from typing import Any

import httpx

from estatecalc.config import settings
from estatecalc.exceptions import DocumentNotFound, PersistenceFailure
from estatecalc.store.base import Query

logger = logging.getLogger(__name__)

# Our metadata keys -> Appwrite system attributes
SYSTEM_ATTRIBUTES = {
    "id": "$id",
    "createdAt": "$createdAt",
    "updatedAt": "$updatedAt",
}


def _query_params(query: Query) -> list[tuple[str, str]]:
    """Serialize a Query the way the REST API expects: one JSON object per queries[]."""
    queries = [
        {"method": "equal", "attribute": SYSTEM_ATTRIBUTES.get(k, k), "values": [v]}
        for k, v in query.filters.items()
    ]
    queries.append({
        "method": "orderDesc" if query.descending else "orderAsc",
        "attribute": SYSTEM_ATTRIBUTES.get(query.order_by, query.order_by),
    })
    queries.append({"method": "limit", "values": [query.limit]})
    return [("queries[]", json.dumps(q, separators=(",", ":"))) for q in queries]


def _normalize(doc: dict[str, Any]) -> dict[str, Any]:
    """Drop Appwrite system attributes, keeping id and timestamps under our names."""
    out = {k: v for k, v in doc.items() if not k.startswith("$")}
    for ours, theirs in SYSTEM_ATTRIBUTES.items():
        if theirs in doc:
            out[ours] = doc[theirs]
    return out


class AppwriteDocumentStore:
    def __init__(
        self,
        endpoint: str | None = None,
        project_id: str | None = None,
        api_key: str | None = None,
        database_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = (endpoint or settings.appwrite_endpoint).rstrip("/")
        self.project_id = project_id or settings.appwrite_project_id
        self.api_key = api_key or settings.appwrite_api_key
        self.database_id = database_id or settings.appwrite_database_id
        self.transport = transport
        self.name = f"{self.endpoint}/{self.project_id}/{self.database_id}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.endpoint,
            headers={
                "X-Appwrite-Project": self.project_id,
                "X-Appwrite-Key": self.api_key,
                "Content-Type": "application/json",
            },
            timeout=15.0,
            transport=self.transport,
        )

    def _path(self, collection: str, document_id: str | None = None) -> str:
        path = f"/databases/{self.database_id}/collections/{collection}/documents"
        return f"{path}/{document_id}" if document_id else path

    async def _request(
        self,
        method: str,
        collection: str,
        document_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                resp = await client.request(method, self._path(collection, document_id), **kwargs)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404 and document_id is not None:
                raise DocumentNotFound(collection, document_id) from e
            logger.warning("Appwrite %s %s failed: %s", method, collection, e)
            raise PersistenceFailure(f"Document store rejected {method} on {collection}", e) from e
        except httpx.HTTPError as e:
            logger.warning("Appwrite %s %s unreachable: %s", method, collection, e)
            raise PersistenceFailure(f"Document store unreachable for {collection}", e) from e
        return resp

    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        body = {k: v for k, v in data.items() if k not in SYSTEM_ATTRIBUTES}
        resp = await self._request(
            "POST", collection, json={"documentId": document_id, "data": body}
        )
        return _normalize(resp.json())

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        resp = await self._request("GET", collection, document_id)
        return _normalize(resp.json())

    async def list(self, collection: str, query: Query) -> list[dict[str, Any]]:
        resp = await self._request("GET", collection, params=_query_params(query))
        return [_normalize(doc) for doc in resp.json().get("documents", [])]

    async def delete(self, collection: str, document_id: str) -> None:
        await self._request("DELETE", collection, document_id)
