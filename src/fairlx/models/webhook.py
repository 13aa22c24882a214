"""Webhook models for project event notifications.

Provides webhook registration, input validation for create/update,
and the append-only delivery log record.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fairlx.validation import validate_webhook_url

from .base import generate_id, utc_now

# Cap on stored response bodies
RESPONSE_BODY_LIMIT = 1000


class WebhookEventType(str, Enum):
    """Domain events a webhook can subscribe to."""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_DELETED = "TASK_DELETED"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UNASSIGNED = "TASK_UNASSIGNED"
    STATUS_CHANGED = "STATUS_CHANGED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    DUE_DATE_CHANGED = "DUE_DATE_CHANGED"
    COMMENT_ADDED = "COMMENT_ADDED"
    REPLY_ADDED = "REPLY_ADDED"
    WORKITEM_MENTIONED = "WORKITEM_MENTIONED"
    ATTACHMENT_ADDED = "ATTACHMENT_ADDED"
    ATTACHMENT_DELETED = "ATTACHMENT_DELETED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    PROJECT_UPDATED = "PROJECT_UPDATED"


ALL_EVENT_TYPES: list[WebhookEventType] = list(WebhookEventType)


class WebhookDeliveryStatus(str, Enum):
    """Outcome of a single delivery attempt."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


def _check_events(events: list[WebhookEventType]) -> list[WebhookEventType]:
    if not events:
        raise ValueError("at least one event type is required")
    # Keep first-seen order, drop repeats
    return list(dict.fromkeys(events))


class WebhookCreate(BaseModel):
    """Validated input for registering a webhook.

    Attributes:
        name: Display name.
        url: Target endpoint; loopback and private hosts are rejected.
        secret: Optional shared secret for HMAC-SHA256 signatures.
        events: Event types to subscribe to (non-empty).
        enabled: Whether the webhook starts active.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Display name")
    url: str = Field(max_length=2048, description="Endpoint receiving POSTed events")
    secret: str | None = Field(default=None, max_length=256, description="HMAC signing secret")
    events: list[WebhookEventType] = Field(description="Subscribed event types")
    enabled: bool = Field(default=True, description="Whether webhook is active")

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return validate_webhook_url(value)

    @field_validator("secret")
    @classmethod
    def _blank_secret_is_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("events")
    @classmethod
    def _validate_events(cls, value: list[WebhookEventType]) -> list[WebhookEventType]:
        return _check_events(value)


class WebhookUpdate(BaseModel):
    """Validated partial update for a webhook.

    Only fields that were explicitly set are applied; see
    ``model_dump(exclude_unset=True)``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    url: str | None = Field(default=None, max_length=2048)
    secret: str | None = Field(default=None, max_length=256)
    events: list[WebhookEventType] | None = None
    enabled: bool | None = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_webhook_url(value)

    @field_validator("events")
    @classmethod
    def _validate_events(
        cls, value: list[WebhookEventType] | None
    ) -> list[WebhookEventType] | None:
        if value is None:
            return None
        return _check_events(value)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly provided by the caller.

        ``name``, ``url``, ``events`` and ``enabled`` cannot be cleared, so
        an explicit ``None`` for them is dropped. An explicit empty or
        ``None`` secret removes signing.
        """
        data = self.model_dump(exclude_unset=True)
        changes = {k: v for k, v in data.items() if v is not None or k == "secret"}
        if "secret" in changes and not changes["secret"]:
            changes["secret"] = None
        return changes


class Webhook(BaseModel):
    """A registered webhook.

    Attributes:
        id: Unique identifier for this webhook.
        project_id: Project whose events are delivered.
        created_by_user_id: User who registered the webhook.
        name: Display name.
        url: Endpoint receiving POSTed events.
        secret: Optional shared secret for HMAC-SHA256 signatures.
        enabled: Whether this webhook is active.
        events: Subscribed event types (non-empty).
        last_triggered_at: When a delivery was last attempted.
        created_at: When the webhook was registered.
        updated_at: When the webhook was last modified.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("whk"))
    project_id: str = Field(description="Owning project")
    created_by_user_id: str = Field(description="User who registered the webhook")
    name: str = Field(min_length=1, description="Display name")
    url: str = Field(description="Endpoint receiving POSTed events")
    secret: str | None = Field(default=None, description="HMAC signing secret")
    enabled: bool = Field(default=True, description="Whether webhook is active")
    events: list[WebhookEventType] = Field(min_length=1, description="Subscribed event types")
    last_triggered_at: datetime | None = Field(
        default=None, description="When a delivery was last attempted"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def subscribes_to(self, event_type: WebhookEventType) -> bool:
        """Check if this webhook is enabled and subscribed to the event type."""
        return self.enabled and event_type in self.events


class WebhookDelivery(BaseModel):
    """Append-only record of one delivery attempt.

    One record is written per attempt: the initial delivery and every
    retry each get their own row.

    Attributes:
        id: Unique identifier for this record.
        webhook_id: Webhook the attempt was made for (may be dangling).
        event_type: Event delivered.
        payload: Exact serialized JSON body that was sent.
        status: SUCCESS or FAILED.
        response_code: HTTP status, when a response was received.
        response_body: Response body or transport error text (capped).
        attempts: Attempt number this record represents (1-indexed).
        created_at: When the attempt completed.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("dlv"))
    webhook_id: str
    event_type: WebhookEventType
    payload: str
    status: WebhookDeliveryStatus
    response_code: int | None = None
    response_body: str | None = Field(default=None, max_length=RESPONSE_BODY_LIMIT)
    attempts: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("response_body", mode="before")
    @classmethod
    def _cap_response_body(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value[:RESPONSE_BODY_LIMIT]


__all__ = [
    "ALL_EVENT_TYPES",
    "RESPONSE_BODY_LIMIT",
    "Webhook",
    "WebhookCreate",
    "WebhookDelivery",
    "WebhookDeliveryStatus",
    "WebhookEventType",
    "WebhookUpdate",
]
