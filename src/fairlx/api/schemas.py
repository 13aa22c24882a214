"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from fairlx.models import (
    Webhook,
    WebhookCreate,
    WebhookDelivery,
    WebhookDeliveryStatus,
    WebhookEventType,
    WebhookUpdate,
)


class CreateWebhookRequest(WebhookCreate):
    """Request body for registering a webhook.

    Attributes:
        project_id: Project whose events the webhook receives.
    """

    project_id: str = Field(min_length=1, description="Owning project")


class UpdateWebhookRequest(WebhookUpdate):
    """Request body for a partial webhook update.

    Only fields present in the body are changed. Send ``"secret": null``
    or ``""`` to remove signing.
    """

    project_id: str = Field(min_length=1, description="Project the webhook belongs to")

    def changes(self) -> dict[str, Any]:
        changes = super().changes()
        changes.pop("project_id", None)
        return changes


class ManualTestRequest(BaseModel):
    """Request body for a manual test delivery."""

    model_config = ConfigDict(extra="forbid")

    project_id: str = Field(min_length=1)


class WebhookResponse(BaseModel):
    """A webhook as returned by the API. The secret is never echoed.

    Attributes:
        has_secret: Whether deliveries are signed.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    project_id: str
    created_by_user_id: str
    name: str
    url: str
    has_secret: bool
    enabled: bool
    events: list[WebhookEventType]
    last_triggered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_webhook(cls, webhook: Webhook) -> WebhookResponse:
        return cls(
            id=webhook.id,
            project_id=webhook.project_id,
            created_by_user_id=webhook.created_by_user_id,
            name=webhook.name,
            url=webhook.url,
            has_secret=webhook.secret is not None,
            enabled=webhook.enabled,
            events=webhook.events,
            last_triggered_at=webhook.last_triggered_at,
            created_at=webhook.created_at,
            updated_at=webhook.updated_at,
        )


class WebhookListResponse(BaseModel):
    """Response for listing a project's webhooks (newest first)."""

    model_config = ConfigDict(extra="forbid")

    webhooks: list[WebhookResponse]
    count: int


class DeleteWebhookResponse(BaseModel):
    """Response for webhook deletion."""

    model_config = ConfigDict(extra="forbid")

    deleted: bool
    webhook_id: str


class DeliveryResponse(BaseModel):
    """One row of the delivery log.

    Attributes:
        attempts: Attempt number this row represents (1-indexed).
        payload: Exact JSON body that was sent.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    webhook_id: str
    event_type: WebhookEventType
    status: WebhookDeliveryStatus
    response_code: int | None = None
    response_body: str | None = None
    attempts: int
    payload: str
    created_at: datetime

    @classmethod
    def from_delivery(cls, delivery: WebhookDelivery) -> DeliveryResponse:
        return cls(
            id=delivery.id,
            webhook_id=delivery.webhook_id,
            event_type=delivery.event_type,
            status=delivery.status,
            response_code=delivery.response_code,
            response_body=delivery.response_body,
            attempts=delivery.attempts,
            payload=delivery.payload,
            created_at=delivery.created_at,
        )


class DeliveryListResponse(BaseModel):
    """Recent deliveries for a webhook, newest first."""

    model_config = ConfigDict(extra="forbid")

    webhook_id: str
    deliveries: list[DeliveryResponse]
    count: int


class ManualTestResponse(BaseModel):
    """Result of a manual test delivery."""

    model_config = ConfigDict(extra="forbid")

    success: bool


class HealthResponse(BaseModel):
    """Response for health check endpoint.

    Attributes:
        status: Service status (healthy, unhealthy).
        version: API version.
        storage_connected: Whether storage is connected.
        pending_retries: Deliveries waiting in the retry queue.
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    storage_connected: bool
    pending_retries: int = 0
