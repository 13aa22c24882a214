"""Storage backend for Fairlx webhooks.

Persists webhook registrations, the delivery log and project metadata
as payload-only documents in Qdrant.

Example:
    ```python
    from fairlx.storage import FairlxStorage

    async with FairlxStorage() as storage:
        await storage.log_delivery(delivery)
        recent = await storage.get_recent_deliveries(delivery.webhook_id)
    ```
"""

from .base import COLLECTION_INDEXES
from .client import FairlxStorage

__all__ = [
    "COLLECTION_INDEXES",
    "FairlxStorage",
]
