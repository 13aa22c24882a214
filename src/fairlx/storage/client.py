"""Qdrant storage client for Fairlx.

This module provides the main FairlxStorage class that combines
all storage operations through mixins.

Example:
    ```python
    from fairlx.storage import FairlxStorage

    async with FairlxStorage() as storage:
        webhooks = await storage.get_enabled_webhooks_by_project("prj_123")
    ```
"""

from __future__ import annotations

from typing import Any

from .base import StorageBase
from .project import ProjectMixin
from .webhook import WebhookMixin


class FairlxStorage(WebhookMixin, ProjectMixin, StorageBase):
    """Async Qdrant storage client for webhook data.

    This class combines functionality from multiple mixins:
    - WebhookMixin: registrations and the append-only delivery log
    - ProjectMixin: project metadata lookups

    Example:
        ```python
        storage = FairlxStorage(location=":memory:")
        await storage.initialize()

        webhook = await storage.create_webhook(data, project_id="prj_1", created_by_user_id="u_1")
        recent = await storage.get_recent_deliveries(webhook.id)
        ```
    """

    async def __aenter__(self) -> FairlxStorage:
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
