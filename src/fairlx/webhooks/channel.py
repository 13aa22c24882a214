"""Notification channel that forwards domain notifications to webhooks.

The notification system emits workitem-centric event names; this channel
maps them onto webhook event types and hands them to the dispatcher.
Workspace-level notifications without a project are broadcast to every
project of the workspace.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from fairlx.models import Actor, EventData, WebhookEventFragment, WebhookEventType

if TYPE_CHECKING:
    from fairlx.storage import FairlxStorage

    from .dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_MAP: dict[str, WebhookEventType] = {
    "WORKITEM_CREATED": WebhookEventType.TASK_CREATED,
    "WORKITEM_UPDATED": WebhookEventType.TASK_UPDATED,
    "WORKITEM_COMPLETED": WebhookEventType.TASK_COMPLETED,
    "WORKITEM_COMMENT_ADDED": WebhookEventType.COMMENT_ADDED,
    "WORKITEM_MENTION": WebhookEventType.WORKITEM_MENTIONED,
    "WORKITEM_STATUS_CHANGED": WebhookEventType.STATUS_CHANGED,
    "WORKITEM_ASSIGNED": WebhookEventType.TASK_ASSIGNED,
    "WORKITEM_UNASSIGNED": WebhookEventType.TASK_UNASSIGNED,
    "WORKITEM_PRIORITY_CHANGED": WebhookEventType.PRIORITY_CHANGED,
    "WORKITEM_DUE_DATE_CHANGED": WebhookEventType.DUE_DATE_CHANGED,
    "WORKITEM_ATTACHMENT_ADDED": WebhookEventType.ATTACHMENT_ADDED,
    "WORKITEM_ATTACHMENT_DELETED": WebhookEventType.ATTACHMENT_DELETED,
    "WORKITEM_DELETED": WebhookEventType.TASK_DELETED,
    "WORKSPACE_MEMBER_ADDED": WebhookEventType.MEMBER_ADDED,
    "WORKSPACE_MEMBER_REMOVED": WebhookEventType.MEMBER_REMOVED,
    "PROJECT_MEMBER_ADDED": WebhookEventType.MEMBER_ADDED,
    "PROJECT_MEMBER_REMOVED": WebhookEventType.MEMBER_REMOVED,
    "WORKITEM_REPLY": WebhookEventType.REPLY_ADDED,
    "PROJECT_UPDATED": WebhookEventType.PROJECT_UPDATED,
}


class Notification(BaseModel):
    """A notification as emitted by the notification system.

    Attributes:
        type: Notification type, e.g. ``WORKITEM_STATUS_CHANGED``.
        project_id: Project scope, if any.
        workspace_id: Workspace scope, used when there is no project.
        triggered_by: User ID of the actor.
        triggered_by_name: Display name of the actor.
        workitem_id: Workitem the notification is about.
        workitem_key: Human-readable workitem key.
        title: Short title.
        summary: Longer summary.
        deep_link_url: Link back into the app.
        metadata: Extra event data merged into the payload ``data``.
    """

    type: str
    project_id: str | None = None
    workspace_id: str | None = None
    triggered_by: str
    triggered_by_name: str
    workitem_id: str | None = None
    workitem_key: str | None = None
    title: str | None = None
    summary: str | None = None
    deep_link_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_fragment(self) -> WebhookEventFragment:
        """Actor and data fragment handed to the dispatcher."""
        return WebhookEventFragment(
            actor=Actor(
                user_id=self.triggered_by,
                user_name=self.triggered_by_name,
                user_email="",
            ),
            data=EventData.model_validate(
                {
                    "workitem_id": self.workitem_id,
                    "workitem_key": self.workitem_key,
                    "title": self.title,
                    "summary": self.summary,
                    "deep_link_url": self.deep_link_url,
                    **self.metadata,
                }
            ),
        )


def map_notification_type(notification_type: str) -> WebhookEventType | None:
    """Webhook event type for a notification type, or None if not forwarded."""
    return NOTIFICATION_EVENT_MAP.get(notification_type)


class WebhookChannel:
    """Delivery channel that turns notifications into webhook dispatches.

    ``send`` never raises; failures are logged.
    """

    name = "webhook"
    is_project_level = True

    def __init__(self, dispatcher: WebhookDispatcher, storage: FairlxStorage) -> None:
        self._dispatcher = dispatcher
        self._storage = storage

    map_notification_type = staticmethod(map_notification_type)

    async def send(self, notification: Notification) -> None:
        """Forward a notification to the webhooks of its project(s)."""
        if notification.project_id:
            try:
                await self._dispatch_to_project(notification.project_id, notification)
            except Exception:
                logger.exception("Webhook channel failed for project %s", notification.project_id)
            return

        if notification.workspace_id:
            await self._broadcast_to_workspace(notification.workspace_id, notification)
            return

        logger.debug("Notification %s has no project or workspace, skipping", notification.type)

    async def _dispatch_to_project(self, project_id: str, notification: Notification) -> None:
        event_type = map_notification_type(notification.type)
        if event_type is None:
            logger.debug("Notification type %s is not forwarded to webhooks", notification.type)
            return

        logger.debug("Forwarding %s to webhooks of project %s", event_type.value, project_id)
        await self._dispatcher.dispatch(project_id, event_type, notification.to_fragment())

    async def _broadcast_to_workspace(self, workspace_id: str, notification: Notification) -> None:
        try:
            projects = await self._storage.list_projects_by_workspace(workspace_id)
        except Exception:
            logger.exception("Listing projects of workspace %s failed", workspace_id)
            return

        logger.info(
            "Broadcasting %s to %d projects in workspace %s",
            notification.type,
            len(projects),
            workspace_id,
        )

        results = await asyncio.gather(
            *(self._dispatch_to_project(p.id, notification) for p in projects),
            return_exceptions=True,
        )
        for project, result in zip(projects, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("Dispatch to project %s failed: %s", project.id, result)
