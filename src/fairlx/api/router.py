"""FastAPI router for webhook management endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials

from fairlx import __version__
from fairlx.config import Settings
from fairlx.config import settings as default_settings
from fairlx.exceptions import AuthorizationError, NotFoundError
from fairlx.models import Project, Webhook, WebhookCreate
from fairlx.storage import FairlxStorage
from fairlx.webhooks import WebhookDispatcher

from .auth import AuthDependency, AuthenticatedUser, security
from .schemas import (
    CreateWebhookRequest,
    DeleteWebhookResponse,
    DeliveryListResponse,
    DeliveryResponse,
    HealthResponse,
    ManualTestRequest,
    ManualTestResponse,
    UpdateWebhookRequest,
    WebhookListResponse,
    WebhookResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Set by app lifespan
_storage: FairlxStorage | None = None
_dispatcher: WebhookDispatcher | None = None
_settings: Settings = default_settings


def set_services(
    storage: FairlxStorage | None,
    dispatcher: WebhookDispatcher | None,
    settings: Settings | None = None,
) -> None:
    """Set the global storage and dispatcher instances."""
    global _storage, _dispatcher, _settings
    _storage = storage
    _dispatcher = dispatcher
    _settings = settings or default_settings


async def get_storage() -> FairlxStorage:
    """Dependency to get the storage instance."""
    if _storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage not initialized",
        )
    return _storage


async def get_dispatcher() -> WebhookDispatcher:
    """Dependency to get the dispatcher instance."""
    if _dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dispatcher not initialized",
        )
    return _dispatcher


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """Dependency resolving the acting user under the current settings."""
    return await AuthDependency(_settings)(credentials, x_user_id)


StorageDep = Annotated[FairlxStorage, Depends(get_storage)]
DispatcherDep = Annotated[WebhookDispatcher, Depends(get_dispatcher)]
UserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]


async def _authorize_project(
    storage: FairlxStorage,
    project_id: str,
    user: AuthenticatedUser,
) -> Project:
    """Load the project and check the user may manage its settings."""
    project = await storage.get_project(project_id)
    if project is None:
        raise NotFoundError("project", project_id)
    if user.verified and not project.can_manage_settings(user.user_id):
        logger.warning("User %s denied webhook access on project %s", user.user_id, project_id)
        raise AuthorizationError("Not allowed to manage webhooks for this project")
    return project


async def _get_project_webhook(
    storage: FairlxStorage,
    webhook_id: str,
    project_id: str,
) -> Webhook:
    """Load a webhook, treating one from another project as missing."""
    webhook = await storage.get_webhook(webhook_id)
    if webhook is None or webhook.project_id != project_id:
        raise NotFoundError("webhook", webhook_id)
    return webhook


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Check service health.

    Reports storage readiness and the number of deliveries waiting for
    a retry.
    """
    if _storage is None or _dispatcher is None:
        return HealthResponse(status="unhealthy", version=__version__, storage_connected=False)

    return HealthResponse(
        status="healthy",
        version=__version__,
        storage_connected=True,
        pending_retries=len(_dispatcher.retry_queue),
    )


@router.post(
    "/webhooks",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["webhooks"],
)
async def create_webhook(
    request: CreateWebhookRequest,
    storage: StorageDep,
    user: UserDep,
) -> WebhookResponse:
    """Register a webhook for a project.

    The URL must be an absolute http(s) URL outside loopback and private
    networks; at least one event type is required.
    """
    await _authorize_project(storage, request.project_id, user)

    data = WebhookCreate.model_validate(request.model_dump(exclude={"project_id"}))
    webhook = await storage.create_webhook(
        data,
        project_id=request.project_id,
        created_by_user_id=user.user_id,
    )

    logger.info("Webhook %s registered for project %s", webhook.id, webhook.project_id)
    return WebhookResponse.from_webhook(webhook)


@router.get("/webhooks", response_model=WebhookListResponse, tags=["webhooks"])
async def list_webhooks(
    storage: StorageDep,
    user: UserDep,
    project_id: Annotated[str, Query(min_length=1)],
) -> WebhookListResponse:
    """List a project's webhooks, newest first."""
    await _authorize_project(storage, project_id, user)

    webhooks = await storage.get_webhooks_by_project(project_id)
    return WebhookListResponse(
        webhooks=[WebhookResponse.from_webhook(w) for w in webhooks],
        count=len(webhooks),
    )


@router.patch("/webhooks/{webhook_id}", response_model=WebhookResponse, tags=["webhooks"])
async def update_webhook(
    webhook_id: str,
    request: UpdateWebhookRequest,
    storage: StorageDep,
    user: UserDep,
) -> WebhookResponse:
    """Partially update a webhook. Only fields present in the body change."""
    await _authorize_project(storage, request.project_id, user)
    webhook = await _get_project_webhook(storage, webhook_id, request.project_id)

    changes = request.changes()
    if not changes:
        return WebhookResponse.from_webhook(webhook)

    updated = await storage.update_webhook(webhook_id, **changes)
    if updated is None:
        raise NotFoundError("webhook", webhook_id)

    logger.info("Webhook %s updated: %s", webhook_id, sorted(changes))
    return WebhookResponse.from_webhook(updated)


@router.delete("/webhooks/{webhook_id}", response_model=DeleteWebhookResponse, tags=["webhooks"])
async def delete_webhook(
    webhook_id: str,
    storage: StorageDep,
    user: UserDep,
    project_id: Annotated[str, Query(min_length=1)],
) -> DeleteWebhookResponse:
    """Delete a webhook. Its delivery history is kept."""
    await _authorize_project(storage, project_id, user)
    await _get_project_webhook(storage, webhook_id, project_id)

    deleted = await storage.delete_webhook(webhook_id)
    if not deleted:
        raise NotFoundError("webhook", webhook_id)

    logger.info("Webhook %s deleted from project %s", webhook_id, project_id)
    return DeleteWebhookResponse(deleted=True, webhook_id=webhook_id)


@router.get(
    "/webhooks/{webhook_id}/deliveries",
    response_model=DeliveryListResponse,
    tags=["webhooks"],
)
async def list_deliveries(
    webhook_id: str,
    storage: StorageDep,
    user: UserDep,
    project_id: Annotated[str, Query(min_length=1)],
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> DeliveryListResponse:
    """Recent delivery attempts for a webhook, newest first."""
    await _authorize_project(storage, project_id, user)
    await _get_project_webhook(storage, webhook_id, project_id)

    deliveries = await storage.get_recent_deliveries(webhook_id, limit=limit)
    return DeliveryListResponse(
        webhook_id=webhook_id,
        deliveries=[DeliveryResponse.from_delivery(d) for d in deliveries],
        count=len(deliveries),
    )


@router.post(
    "/webhooks/{webhook_id}/test",
    response_model=ManualTestResponse,
    tags=["webhooks"],
)
async def test_webhook(
    webhook_id: str,
    request: ManualTestRequest,
    storage: StorageDep,
    dispatcher: DispatcherDep,
    user: UserDep,
) -> ManualTestResponse:
    """Send a synthetic event to a webhook and report whether it got a 2xx."""
    await _authorize_project(storage, request.project_id, user)
    webhook = await _get_project_webhook(storage, webhook_id, request.project_id)

    success = await dispatcher.test(webhook)
    return ManualTestResponse(success=success)
