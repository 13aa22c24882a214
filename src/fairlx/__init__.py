"""Fairlx webhooks: project event notifications over HTTP.

Delivers project events (task created, status changed, comment added, ...)
to user-registered HTTP endpoints, signed with HMAC-SHA256, logged per
attempt and retried with exponential backoff.

Quick Start:
    from fairlx.storage import FairlxStorage
    from fairlx.webhooks import WebhookDispatcher

    async with FairlxStorage() as storage:
        dispatcher = WebhookDispatcher(storage)
        dispatcher.start()

        await dispatcher.dispatch(
            "prj_123",
            WebhookEventType.STATUS_CHANGED,
            WebhookEventFragment(
                actor=Actor(user_id="usr_1", user_name="Ada"),
                data=EventData(workitem_key="FX-42", title="Fix login"),
            ),
        )

        await dispatcher.close()
"""

__version__ = "0.1.0"

# Configuration
from .config import Settings, settings

# Exceptions
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    FairlxError,
    NotFoundError,
    StorageError,
)

# Logging
from .logging import bind_context, clear_context, configure_logging, get_logger

# Models
from .models import (
    Actor,
    EventData,
    Project,
    Webhook,
    WebhookCreate,
    WebhookDelivery,
    WebhookDeliveryStatus,
    WebhookEventFragment,
    WebhookEventType,
    WebhookPayload,
    WebhookUpdate,
)

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "settings",
    # Exceptions
    "FairlxError",
    "NotFoundError",
    "StorageError",
    "ConfigurationError",
    "AuthenticationError",
    "AuthorizationError",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Models
    "Actor",
    "EventData",
    "Project",
    "Webhook",
    "WebhookCreate",
    "WebhookDelivery",
    "WebhookDeliveryStatus",
    "WebhookEventFragment",
    "WebhookEventType",
    "WebhookPayload",
    "WebhookUpdate",
]
