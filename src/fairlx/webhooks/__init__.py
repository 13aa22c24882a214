"""Webhook dispatch for Fairlx project events.

Provides HMAC-signed fan-out delivery, a per-attempt delivery log and
in-process exponential backoff retry.

Example:
    ```python
    from fairlx.webhooks import WebhookDispatcher

    dispatcher = WebhookDispatcher(storage)
    dispatcher.start()

    results = await dispatcher.dispatch(
        "prj_123",
        WebhookEventType.TASK_CREATED,
        WebhookEventFragment(actor=actor, data=EventData(title="New task")),
    )
    ```
"""

from .channel import NOTIFICATION_EVENT_MAP, Notification, WebhookChannel, map_notification_type
from .dispatcher import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    WebhookDispatcher,
    is_retryable_status,
)
from .retry_queue import RetryQueue, RetryTask
from .signing import compute_signature, verify_signature

__all__ = [
    "DELIVERY_HEADER",
    "EVENT_HEADER",
    "NOTIFICATION_EVENT_MAP",
    "Notification",
    "RetryQueue",
    "RetryTask",
    "SIGNATURE_HEADER",
    "WebhookChannel",
    "WebhookDispatcher",
    "compute_signature",
    "is_retryable_status",
    "map_notification_type",
    "verify_signature",
]
