"""Wire envelope POSTed to webhook endpoints.

Envelope keys are camelCase (``projectId``, ``deepLinkUrl``); embed keys
follow the Discord/Slack embed format (``icon_url``) so chat webhooks can
render them directly.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import utc_now
from .webhook import WebhookEventType


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Actor(_WireModel):
    """User who caused the event."""

    user_id: str
    user_name: str
    user_email: str = ""


class ProjectInfo(_WireModel):
    """Project metadata attached to every payload."""

    id: str
    name: str
    image_url: str | None = None


class EventData(_WireModel):
    """Event-specific fragment.

    Known workitem fields are typed; anything else the producer passes
    (old/new status, assignee, ...) is carried through unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    workitem_id: str | None = None
    workitem_key: str | None = None
    title: str | None = None
    summary: str | None = None
    deep_link_url: str | None = None


class WebhookEventFragment(_WireModel):
    """What a domain-event producer hands to the dispatcher."""

    actor: Actor
    data: EventData = Field(default_factory=EventData)


class EmbedFooter(BaseModel):
    text: str
    icon_url: str | None = None


class EmbedAuthor(BaseModel):
    name: str
    icon_url: str | None = None


class EmbedThumbnail(BaseModel):
    url: str


class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = True


class Embed(BaseModel):
    """Rich card for chat-webhook consumers."""

    title: str
    description: str = ""
    url: str | None = None
    color: int
    timestamp: datetime | None = None
    footer: EmbedFooter | None = None
    author: EmbedAuthor | None = None
    thumbnail: EmbedThumbnail | None = None
    fields: list[EmbedField] = Field(default_factory=list)


class WebhookPayload(_WireModel):
    """Envelope delivered to every subscriber of one dispatch.

    Attributes:
        event: Event type.
        project_id: Project the event happened in.
        timestamp: When the payload was built.
        content: One-line human-readable summary.
        description: Longer summary (may be empty).
        project: Project metadata.
        actor: User who caused the event.
        data: Event-specific fragment.
        embeds: Optional rich cards.
    """

    event: WebhookEventType
    project_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    content: str
    description: str = ""
    project: ProjectInfo
    actor: Actor
    data: EventData = Field(default_factory=EventData)
    embeds: list[Embed] | None = None

    def to_json(self) -> str:
        """Serialize exactly as sent on the wire (camelCase, no nulls)."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


__all__ = [
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
]
