"""Webhook fan-out with HMAC signatures and exponential backoff retry.

One dispatch builds a single enriched payload and POSTs it to every
enabled webhook of the project subscribed to the event:
- HMAC-SHA256 signature over the exact body when a secret is set
- One delivery log row per attempt, success or not
- 5xx and transport failures go to the retry queue; 4xx does not
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING

import httpx

from fairlx.config import Settings
from fairlx.config import settings as default_settings
from fairlx.exceptions import NotFoundError
from fairlx.models import (
    Actor,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EventData,
    ProjectInfo,
    WebhookDelivery,
    WebhookDeliveryStatus,
    WebhookEventType,
    WebhookPayload,
)

from .embeds import (
    FOOTER_PREFIX,
    avatar_url,
    build_event_embed,
    event_color,
    event_content,
    event_label,
    project_thumbnail,
)
from .retry_queue import RetryQueue, RetryTask
from .signing import compute_signature

if TYPE_CHECKING:
    from fairlx.models import Project, Webhook, WebhookEventFragment
    from fairlx.storage import FairlxStorage

logger = logging.getLogger(__name__)

EVENT_HEADER = "X-Fairlx-Event"
DELIVERY_HEADER = "X-Fairlx-Delivery"
SIGNATURE_HEADER = "X-Fairlx-Signature"


def is_retryable_status(status_code: int) -> bool:
    """Server errors are transient; anything below 500 is the receiver's answer."""
    return status_code >= 500


class WebhookDispatcher:
    """Dispatches project events to registered webhooks.

    Handles:
    - Finding enabled webhooks subscribed to an event type
    - Enriching the payload with project, actor and embed data
    - Signing payloads with HMAC-SHA256
    - Concurrent, isolated delivery with retry of transient failures

    The dispatcher owns its retry queue. Call ``start()`` once the event
    loop is running and ``close()`` on shutdown.

    Example:
        ```python
        dispatcher = WebhookDispatcher(storage)
        dispatcher.start()

        await dispatcher.dispatch(
            "prj_123",
            WebhookEventType.STATUS_CHANGED,
            WebhookEventFragment(actor=actor, data=EventData(workitem_id="t_1", title="Fix")),
        )

        await dispatcher.close()
        ```
    """

    def __init__(
        self,
        storage: FairlxStorage,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_queue: RetryQueue | None = None,
    ) -> None:
        """Initialize the webhook dispatcher.

        Args:
            storage: Repository for webhooks, delivery logs and projects.
            settings: Delivery configuration. Defaults to global settings.
            client: HTTP client. One is created (and owned) if omitted.
            retry_queue: Retry queue. One wired to this dispatcher is
                created from settings if omitted.
        """
        self._storage = storage
        self._settings = settings or default_settings
        self._timeout = self._settings.webhook_timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": self._settings.webhook_user_agent},
        )
        self.retry_queue = retry_queue or RetryQueue(
            self.retry_delivery,
            self.mark_permanently_failed,
            max_retries=self._settings.webhook_max_retries,
            base_delay_seconds=self._settings.webhook_retry_base_delay_seconds,
            poll_interval_seconds=self._settings.webhook_retry_poll_interval_seconds,
        )

    def start(self) -> None:
        """Start the retry queue timer."""
        self.retry_queue.start()

    async def close(self) -> None:
        """Stop the retry queue and release the HTTP client if owned."""
        await self.retry_queue.stop()
        if self._owns_client:
            await self._client.aclose()

    async def dispatch(
        self,
        project_id: str,
        event_type: WebhookEventType,
        fragment: WebhookEventFragment,
    ) -> dict[str, bool]:
        """Fan an event out to every subscribed, enabled webhook.

        Never raises: a failure to fan out must not fail the business
        operation that produced the event.

        Args:
            project_id: Project the event happened in.
            event_type: Event type.
            fragment: Actor and event-specific data from the producer.

        Returns:
            Webhook ID -> whether its delivery succeeded. Empty when there
            was nothing to deliver or the dispatch itself failed.
        """
        try:
            webhooks = await self._storage.get_enabled_webhooks_by_project(project_id)
            if not webhooks:
                logger.debug("No enabled webhooks for project %s", project_id)
                return {}

            matching = [w for w in webhooks if w.subscribes_to(event_type)]
            if not matching:
                logger.debug("No webhooks subscribed to %s in project %s", event_type.value, project_id)
                return {}

            project = await self._storage.get_project(project_id)
            if project is None:
                raise NotFoundError("project", project_id)

            payload = self.build_payload(project, event_type, fragment)

            results = await asyncio.gather(
                *(self.deliver(webhook, payload) for webhook in matching),
                return_exceptions=True,
            )

            outcome: dict[str, bool] = {}
            for webhook, result in zip(matching, results, strict=True):
                if isinstance(result, BaseException):
                    logger.error("Webhook %s delivery raised: %s", webhook.id, result)
                    outcome[webhook.id] = False
                else:
                    outcome[webhook.id] = result
            return outcome

        except Exception:
            logger.exception(
                "Webhook dispatch failed for %s in project %s", event_type.value, project_id
            )
            return {}

    def build_payload(
        self,
        project: Project,
        event_type: WebhookEventType,
        fragment: WebhookEventFragment,
    ) -> WebhookPayload:
        """Build the enriched envelope shared by all recipients of a dispatch."""
        label = event_label(event_type)
        embed = build_event_embed(
            event_type,
            project,
            fragment.actor,
            fragment.data,
            footer_icon_url=self._settings.webhook_footer_icon_url,
            avatar_base_url=self._settings.webhook_avatar_base_url,
        )

        return WebhookPayload(
            event=event_type,
            project_id=project.id,
            content=event_content(project.name, label, fragment.data),
            description=fragment.data.summary or "",
            project=ProjectInfo(id=project.id, name=project.name, image_url=project.image_url),
            actor=fragment.actor,
            data=fragment.data,
            embeds=[embed],
        )

    async def test(self, webhook: Webhook) -> bool:
        """Send a synthetic event to one webhook.

        Raises:
            NotFoundError: If the webhook's project does not exist.

        Returns:
            True if the endpoint answered with a 2xx status.
        """
        project = await self._storage.get_project(webhook.project_id)
        if project is None:
            raise NotFoundError("project", webhook.project_id)

        system_name = self._settings.webhook_system_actor_name
        payload = WebhookPayload(
            event=WebhookEventType.TASK_CREATED,
            project_id=webhook.project_id,
            content=f"[{project.name}] TEST EVENT: Manual dispatch from settings.",
            description="If you received this, your webhook configuration is working correctly!",
            project=ProjectInfo(id=project.id, name=project.name, image_url=project.image_url),
            actor=Actor(
                user_id=webhook.created_by_user_id,
                user_name=system_name,
                user_email=self._settings.webhook_system_actor_email,
            ),
            data=EventData(
                workitem_id="TEST-123",
                title="Manual Test Task",
                summary=(
                    "This is a dummy event triggered manually to verify "
                    "connectivity and presentation."
                ),
                deep_link_url=self._settings.webhook_test_link_url,
            ),
            embeds=[
                Embed(
                    title="Webhook Test Success!",
                    description="Connectivity verified. Your project events will now appear here.",
                    color=event_color(WebhookEventType.TASK_CREATED),
                    author=EmbedAuthor(
                        name=system_name,
                        icon_url=avatar_url(system_name, self._settings.webhook_avatar_base_url),
                    ),
                    thumbnail=project_thumbnail(project),
                    fields=[
                        EmbedField(name="Project", value=project.name),
                        EmbedField(name="Status", value="Functional"),
                    ],
                    footer=EmbedFooter(text=f"{FOOTER_PREFIX}{project.name}"),
                )
            ],
        )

        logger.info("Manual test delivery for webhook %s", webhook.id)
        return await self.deliver(webhook, payload)

    async def deliver(self, webhook: Webhook, payload: WebhookPayload, attempt: int = 1) -> bool:
        """Deliver a payload to one webhook.

        Args:
            webhook: Target webhook.
            payload: Envelope to send.
            attempt: Attempt number (1 for the original delivery).

        Returns:
            True if the endpoint answered with a 2xx status.
        """
        return await self._deliver_body(webhook, payload.event, payload.to_json(), attempt)

    async def _deliver_body(
        self,
        webhook: Webhook,
        event_type: WebhookEventType,
        body: str,
        attempt: int,
    ) -> bool:
        """POST an already-serialized body, log the attempt, queue a retry if due."""
        headers = {
            "Content-Type": "application/json",
            EVENT_HEADER: event_type.value,
            DELIVERY_HEADER: str(uuid.uuid4()),
        }
        if webhook.secret:
            headers[SIGNATURE_HEADER] = compute_signature(body, webhook.secret)

        try:
            # Deadline covers the whole exchange, including a slowly streamed body
            async with asyncio.timeout(self._timeout):
                response = await self._client.post(
                    webhook.url,
                    content=body.encode("utf-8"),
                    headers=headers,
                    timeout=self._timeout,
                )
        except (httpx.HTTPError, TimeoutError) as e:
            error = str(e) or type(e).__name__
            if isinstance(e, (httpx.TimeoutException, TimeoutError)):
                error = f"Request timed out after {self._timeout:g}s: {error}"
            logger.warning(
                "Webhook %s delivery error (%s, attempt %d): %s",
                webhook.id,
                event_type.value,
                attempt,
                error,
            )
            await self._log_attempt(webhook, event_type, body, attempt, None, error)
            self._queue_retry(webhook, event_type, body, attempt)
            return False

        succeeded = response.is_success
        await self._log_attempt(
            webhook, event_type, body, attempt, response.status_code, response.text
        )

        if succeeded:
            logger.info(
                "Webhook delivered: %s to %s (status %d, attempt %d)",
                event_type.value,
                webhook.url,
                response.status_code,
                attempt,
            )
            return True

        if is_retryable_status(response.status_code):
            logger.warning(
                "Webhook %s got %d for %s (attempt %d)",
                webhook.id,
                response.status_code,
                event_type.value,
                attempt,
            )
            self._queue_retry(webhook, event_type, body, attempt)
        else:
            logger.warning(
                "Webhook rejected: %s to %s (status %d), not retrying",
                event_type.value,
                webhook.url,
                response.status_code,
            )
        return False

    async def _log_attempt(
        self,
        webhook: Webhook,
        event_type: WebhookEventType,
        body: str,
        attempt: int,
        response_code: int | None,
        response_body: str | None,
    ) -> None:
        """Append the attempt to the delivery log.

        A log write failure is reported but never changes the outcome of
        the attempt or its retry scheduling.
        """
        status = (
            WebhookDeliveryStatus.SUCCESS
            if response_code is not None and 200 <= response_code < 300
            else WebhookDeliveryStatus.FAILED
        )
        try:
            await self._storage.log_delivery(
                WebhookDelivery(
                    webhook_id=webhook.id,
                    event_type=event_type,
                    payload=body,
                    status=status,
                    response_code=response_code,
                    response_body=response_body,
                    attempts=attempt,
                )
            )
        except Exception:
            logger.exception(
                "Failed to log delivery for webhook %s (attempt %d)", webhook.id, attempt
            )

    def _queue_retry(
        self,
        webhook: Webhook,
        event_type: WebhookEventType,
        body: str,
        attempt: int,
    ) -> None:
        # Later attempts are driven by the queue itself
        if attempt == 1:
            self.retry_queue.add(webhook.id, event_type, body)

    async def retry_delivery(self, task: RetryTask) -> bool:
        """Retry queue callback: redeliver the stored body.

        Returns:
            True when the task is resolved: delivered, or the webhook was
            disabled in the meantime. False when the attempt failed or the
            webhook no longer exists.
        """
        try:
            webhook = await self._storage.get_webhook(task.webhook_id)
            if webhook is None:
                logger.warning("Webhook %s was deleted, retry counts as failed", task.webhook_id)
                return False

            if not webhook.enabled:
                logger.info("Webhook %s disabled, dropping pending retry", task.webhook_id)
                return True

            return await self._deliver_body(webhook, task.event_type, task.payload, task.attempts)
        except Exception:
            logger.exception("Webhook %s retry attempt %d failed", task.webhook_id, task.attempts)
            return False

    async def mark_permanently_failed(self, task: RetryTask) -> None:
        """Retry queue callback for exhausted tasks. Each attempt is already logged."""
        logger.warning(
            "Webhook %s permanently failed after %d attempts (%s)",
            task.webhook_id,
            task.attempts,
            task.event_type.value,
        )
