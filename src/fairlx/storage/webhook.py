"""Webhook repository operations.

The only code that reads or writes webhook registrations and the
delivery log. No input validation happens here; store errors propagate
unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from fairlx.models import utc_now
from fairlx.storage.retry import qdrant_retry

if TYPE_CHECKING:
    from fairlx.models import Webhook, WebhookCreate, WebhookDelivery

WEBHOOKS = "webhooks"
DELIVERIES = "webhook_deliveries"


class WebhookMixin:
    """Mixin providing webhook operations for FairlxStorage.

    This mixin expects the following attributes/methods from the base class:
    - _collection_name(suffix) -> str
    - _key_to_point_id(key) -> str
    - _upsert_document(suffix, doc_id, document)
    - _retrieve_document(suffix, doc_id, model_class)
    - _scroll_documents(suffix, conditions, model_class)
    - _match(key, value)
    - client: AsyncQdrantClient
    """

    _collection_name: Any
    _key_to_point_id: Any
    _upsert_document: Any
    _retrieve_document: Any
    _scroll_documents: Any
    _match: Any
    client: Any

    @qdrant_retry
    async def store_webhook(self, webhook: Webhook) -> str:
        """Write a webhook document as-is.

        Returns:
            The webhook ID.
        """
        await self._upsert_document(WEBHOOKS, webhook.id, webhook)
        return webhook.id

    async def create_webhook(
        self,
        data: WebhookCreate,
        project_id: str,
        created_by_user_id: str,
    ) -> Webhook:
        """Register a new webhook.

        Args:
            data: Validated registration input.
            project_id: Owning project.
            created_by_user_id: User performing the registration.

        Returns:
            The stored Webhook (enabled unless the input said otherwise).
        """
        from fairlx.models import Webhook

        webhook = Webhook(
            project_id=project_id,
            created_by_user_id=created_by_user_id,
            **data.model_dump(),
        )
        await self.store_webhook(webhook)
        return webhook

    @qdrant_retry
    async def get_webhook(self, webhook_id: str) -> Webhook | None:
        """Get a webhook by ID, or None if it does not exist."""
        from fairlx.models import Webhook

        webhook: Webhook | None = await self._retrieve_document(WEBHOOKS, webhook_id, Webhook)
        return webhook

    @qdrant_retry
    async def get_webhooks_by_project(
        self,
        project_id: str,
        enabled_only: bool = False,
    ) -> list[Webhook]:
        """List a project's webhooks, newest first.

        Args:
            project_id: Project to list webhooks for.
            enabled_only: If True, only return enabled webhooks.

        Returns:
            Webhooks sorted by created_at descending.
        """
        from fairlx.models import Webhook

        conditions = [self._match("project_id", project_id)]
        if enabled_only:
            conditions.append(self._match("enabled", True))

        webhooks: list[Webhook] = await self._scroll_documents(WEBHOOKS, conditions, Webhook)
        webhooks.sort(key=lambda w: w.created_at, reverse=True)
        return webhooks

    async def get_enabled_webhooks_by_project(self, project_id: str) -> list[Webhook]:
        """List a project's enabled webhooks, newest first."""
        return await self.get_webhooks_by_project(project_id, enabled_only=True)

    async def update_webhook(self, webhook_id: str, **updates: Any) -> Webhook | None:
        """Apply a partial update.

        Args:
            webhook_id: ID of the webhook to update.
            **updates: Fields to overwrite.

        Returns:
            Updated Webhook, or None if not found.
        """
        from fairlx.models import Webhook

        webhook = await self.get_webhook(webhook_id)
        if webhook is None:
            return None

        data = webhook.model_dump()
        data.update(updates)
        data["updated_at"] = utc_now()
        updated = Webhook.model_validate(data)

        await self.store_webhook(updated)
        return updated

    @qdrant_retry
    async def delete_webhook(self, webhook_id: str) -> bool:
        """Remove a registration. Its delivery log is kept.

        Returns:
            True if deleted, False if not found.
        """
        from qdrant_client import models

        point_id = self._key_to_point_id(webhook_id)
        collection = self._collection_name(WEBHOOKS)

        existing = await self.client.retrieve(
            collection_name=collection,
            ids=[point_id],
            with_payload=False,
        )
        if not existing:
            return False

        await self.client.delete(
            collection_name=collection,
            points_selector=models.PointIdsList(points=[point_id]),
        )
        return True

    @qdrant_retry
    async def append_delivery(self, delivery: WebhookDelivery) -> str:
        """Append one row to the delivery log.

        Returns:
            The delivery ID.
        """
        await self._upsert_document(DELIVERIES, delivery.id, delivery)
        return delivery.id

    @qdrant_retry
    async def touch_last_triggered(
        self,
        webhook_id: str,
        at: datetime | None = None,
    ) -> bool:
        """Set a webhook's last_triggered_at without rewriting the document.

        Returns:
            True if the webhook exists and was updated.
        """
        point_id = self._key_to_point_id(webhook_id)
        collection = self._collection_name(WEBHOOKS)

        existing = await self.client.retrieve(
            collection_name=collection,
            ids=[point_id],
            with_payload=False,
        )
        if not existing:
            return False

        await self.client.set_payload(
            collection_name=collection,
            payload={"last_triggered_at": (at or utc_now()).isoformat()},
            points=[point_id],
        )
        return True

    async def log_delivery(self, delivery: WebhookDelivery) -> str:
        """Record a delivery attempt and bump the webhook's last_triggered_at.

        Args:
            delivery: Delivery record to append.

        Returns:
            The delivery ID.
        """
        delivery_id = await self.append_delivery(delivery)
        await self.touch_last_triggered(delivery.webhook_id, delivery.created_at)
        return delivery_id

    @qdrant_retry
    async def get_recent_deliveries(
        self,
        webhook_id: str,
        limit: int = 10,
    ) -> list[WebhookDelivery]:
        """Get delivery history for a webhook, newest first.

        Args:
            webhook_id: ID of the webhook.
            limit: Maximum rows to return.

        Returns:
            WebhookDelivery rows sorted by created_at descending.
        """
        from qdrant_client import models

        from fairlx.models import WebhookDelivery

        # The log is append-only and unbounded, so ordering happens in the store
        deliveries: list[WebhookDelivery] = await self._scroll_documents(
            DELIVERIES,
            [self._match("webhook_id", webhook_id)],
            WebhookDelivery,
            limit=limit,
            order_by=models.OrderBy(key="created_at", direction=models.Direction.DESC),
        )
        return deliveries
