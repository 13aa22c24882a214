"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import httpx
import pytest

from fairlx.config import Settings
from fairlx.models import Actor, EventData, Project, Webhook, WebhookEventFragment, WebhookEventType
from fairlx.storage import FairlxStorage


class RecordingTransport(httpx.MockTransport):
    """Mock transport that answers per URL and keeps every request.

    ``responses`` maps a URL to a status code or to an exception instance
    that is raised instead of answering.
    """

    def __init__(self, responses: dict[str, int | Exception] | None = None) -> None:
        self.responses: dict[str, int | Exception] = responses or {}
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.get(str(request.url), 200)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, text=f"status {outcome}")

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


@pytest.fixture
def settings() -> Settings:
    """Settings with test-friendly delivery parameters."""
    return Settings(_env_file=None, env="test", log_format="text")


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def http_client(transport: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=transport)


@pytest.fixture
async def storage() -> AsyncIterator[FairlxStorage]:
    """In-memory storage instance; no Qdrant server required."""
    store = FairlxStorage(prefix="test", location=":memory:")
    await store.initialize()

    yield store

    await store.close()


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Mock storage with no webhooks and no projects."""
    storage = AsyncMock()
    storage.get_enabled_webhooks_by_project = AsyncMock(return_value=[])
    storage.get_webhook = AsyncMock(return_value=None)
    storage.get_project = AsyncMock(return_value=None)
    storage.log_delivery = AsyncMock(return_value="dlv_mock")
    storage.list_projects_by_workspace = AsyncMock(return_value=[])
    return storage


@pytest.fixture
def project() -> Project:
    return Project(
        id="prj_alpha",
        name="Alpha",
        image_url="https://cdn.example.com/alpha.png",
        workspace_id="wks_1",
        admin_user_ids=["usr_admin"],
    )


def make_webhook(
    url: str = "https://hooks.example.com/a",
    *,
    project_id: str = "prj_alpha",
    events: list[WebhookEventType] | None = None,
    secret: str | None = None,
    enabled: bool = True,
    webhook_id: str | None = None,
) -> Webhook:
    data: dict = {
        "project_id": project_id,
        "created_by_user_id": "usr_admin",
        "name": "Test hook",
        "url": url,
        "secret": secret,
        "enabled": enabled,
        "events": events or [WebhookEventType.TASK_CREATED],
    }
    if webhook_id is not None:
        data["id"] = webhook_id
    return Webhook(**data)


@pytest.fixture
def fragment() -> WebhookEventFragment:
    return WebhookEventFragment(
        actor=Actor(user_id="usr_ada", user_name="Ada Lovelace", user_email="ada@example.com"),
        data=EventData(workitem_id="wi_1", workitem_key="ALP-7", title="Fix login"),
    )
