"""Models for Fairlx webhooks.

Registration and log:
    - Webhook, WebhookCreate, WebhookUpdate
    - WebhookDelivery, WebhookDeliveryStatus
    - WebhookEventType

Wire envelope:
    - WebhookPayload with Actor, ProjectInfo, EventData and Embed cards
    - WebhookEventFragment: producer input to the dispatcher

Collaborator data:
    - Project
"""

from .base import generate_id, utc_now
from .payload import (
    Actor,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedThumbnail,
    EventData,
    ProjectInfo,
    WebhookEventFragment,
    WebhookPayload,
)
from .project import Project
from .webhook import (
    ALL_EVENT_TYPES,
    RESPONSE_BODY_LIMIT,
    Webhook,
    WebhookCreate,
    WebhookDelivery,
    WebhookDeliveryStatus,
    WebhookEventType,
    WebhookUpdate,
)

__all__ = [
    "generate_id",
    "utc_now",
    # Registration and log
    "ALL_EVENT_TYPES",
    "RESPONSE_BODY_LIMIT",
    "Webhook",
    "WebhookCreate",
    "WebhookDelivery",
    "WebhookDeliveryStatus",
    "WebhookEventType",
    "WebhookUpdate",
    # Wire envelope
    "Actor",
    "Embed",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedThumbnail",
    "EventData",
    "ProjectInfo",
    "WebhookEventFragment",
    "WebhookPayload",
    # Collaborators
    "Project",
]
