"""Base storage class and helpers.

Contains client lifecycle, collection management, and shared utilities.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from qdrant_client import AsyncQdrantClient, models

from fairlx.config import settings
from fairlx.exceptions import StorageError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Collection suffix -> indexed payload fields and their schema.
# order_by scrolls need a range index on the ordering field.
COLLECTION_INDEXES: dict[str, dict[str, models.PayloadSchemaType]] = {
    "webhooks": {"project_id": models.PayloadSchemaType.KEYWORD},
    "webhook_deliveries": {
        "webhook_id": models.PayloadSchemaType.KEYWORD,
        "created_at": models.PayloadSchemaType.DATETIME,
    },
    "projects": {"workspace_id": models.PayloadSchemaType.KEYWORD},
}

# Documents are payload-only; every point carries the same placeholder vector.
PLACEHOLDER_VECTOR: list[float] = [1.0]


class StorageBase:
    """Base class for Fairlx document storage.

    Provides:
    - Client initialization and lifecycle management
    - Collection creation and indexing
    - Point ID conversion
    - Payload serialization/deserialization
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        prefix: str | None = None,
        location: str | None = None,
        max_scroll_limit: int | None = None,
    ) -> None:
        """Initialize storage client.

        Args:
            url: Qdrant server URL. Defaults to settings.qdrant_url.
            api_key: Qdrant API key. Defaults to settings.qdrant_api_key.
            prefix: Collection name prefix. Defaults to settings.collection_prefix.
            location: Local qdrant location (e.g. ":memory:"); overrides url.
            max_scroll_limit: Cap for list operations.
        """
        self._url = url or settings.qdrant_url
        self._api_key = api_key or settings.qdrant_api_key
        self._prefix = prefix or settings.collection_prefix
        self._location = location
        self._max_scroll_limit = max_scroll_limit or settings.storage_max_scroll_limit
        self._client: AsyncQdrantClient | None = None
        self._collections_initialized = False

    @property
    def client(self) -> AsyncQdrantClient:
        """Get the Qdrant client, raising if not initialized."""
        if self._client is None:
            raise StorageError("Storage not initialized. Call initialize() first.")
        return self._client

    async def initialize(self) -> None:
        """Initialize the storage client and ensure collections exist."""
        if self._location is not None:
            self._client = AsyncQdrantClient(location=self._location)
        else:
            self._client = AsyncQdrantClient(url=self._url, api_key=self._api_key)
        await self._ensure_collections()
        self._collections_initialized = True

    async def close(self) -> None:
        """Close the storage client connection."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._collections_initialized = False

    def _collection_name(self, suffix: str) -> str:
        """Get full collection name with prefix."""
        return f"{self._prefix}_{suffix}"

    @staticmethod
    def _key_to_point_id(key: str) -> str:
        """Convert a document ID to a valid Qdrant point ID.

        Qdrant requires point IDs to be UUIDs or unsigned integers.
        We hash the key to create a deterministic UUID-format string.
        """
        h = hashlib.sha256(key.encode()).hexdigest()[:32]
        return f"{h[:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"

    async def _ensure_collections(self) -> None:
        """Ensure all required collections exist."""
        collections = await self.client.get_collections()
        existing = {c.name for c in collections.collections}

        for suffix, indexed_fields in COLLECTION_INDEXES.items():
            collection_name = self._collection_name(suffix)
            if collection_name not in existing:
                await self.client.create_collection(
                    collection_name=collection_name,
                    vectors_config=models.VectorParams(
                        size=len(PLACEHOLDER_VECTOR),
                        distance=models.Distance.DOT,
                    ),
                )
                logger.info("Created collection %s", collection_name)

            # Idempotent; existing collections also get newly added indexes
            for field_name, schema in indexed_fields.items():
                await self.client.create_payload_index(
                    collection_name=collection_name,
                    field_name=field_name,
                    field_schema=schema,
                )

    async def _upsert_document(self, suffix: str, doc_id: str, document: BaseModel) -> None:
        """Write a model as a payload-only point."""
        await self.client.upsert(
            collection_name=self._collection_name(suffix),
            points=[
                models.PointStruct(
                    id=self._key_to_point_id(doc_id),
                    vector=PLACEHOLDER_VECTOR,
                    payload=self._document_to_payload(document),
                )
            ],
        )

    async def _retrieve_document(
        self, suffix: str, doc_id: str, model_class: type[ModelT]
    ) -> ModelT | None:
        results = await self.client.retrieve(
            collection_name=self._collection_name(suffix),
            ids=[self._key_to_point_id(doc_id)],
            with_payload=True,
        )
        if not results or results[0].payload is None:
            return None
        return self._payload_to_document(results[0].payload, model_class)

    async def _scroll_documents(
        self,
        suffix: str,
        conditions: list[models.Condition],
        model_class: type[ModelT],
        limit: int | None = None,
        order_by: models.OrderBy | None = None,
    ) -> list[ModelT]:
        """Fetch documents matching all conditions.

        Without ``order_by`` the store returns points in point-id order,
        which is unrelated to document age. Pass ``order_by`` (on a field
        with a range index) whenever only a page of the newest or oldest
        documents is wanted.
        """
        results, _ = await self.client.scroll(
            collection_name=self._collection_name(suffix),
            scroll_filter=models.Filter(must=conditions),
            limit=min(limit or self._max_scroll_limit, self._max_scroll_limit),
            order_by=order_by,
            with_payload=True,
        )
        return [
            self._payload_to_document(r.payload, model_class)
            for r in results
            if r.payload is not None
        ]

    @staticmethod
    def _match(key: str, value: Any) -> models.FieldCondition:
        return models.FieldCondition(key=key, match=models.MatchValue(value=value))

    def _document_to_payload(self, document: BaseModel) -> dict[str, Any]:
        """Convert a model to a Qdrant payload."""
        return document.model_dump(mode="json")

    def _payload_to_document(self, payload: dict[str, Any], model_class: type[ModelT]) -> ModelT:
        """Convert a Qdrant payload back to a model."""
        return model_class.model_validate(payload)
