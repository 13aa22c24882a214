"""Chat-friendly presentation of webhook events.

Builds the human-readable label, summary line and Discord/Slack style
embed card that accompany every payload.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode

from fairlx.models import (
    Actor,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedThumbnail,
    EventData,
    Project,
    WebhookEventType,
    utc_now,
)

DEFAULT_COLOR = 0x64748B  # slate

EVENT_COLORS: dict[WebhookEventType, int] = {
    WebhookEventType.TASK_CREATED: 0x22C55E,  # green
    WebhookEventType.TASK_COMPLETED: 0x10B981,  # emerald
    WebhookEventType.TASK_DELETED: 0xEF4444,  # red
    WebhookEventType.TASK_ASSIGNED: 0x0EA5E9,  # sky
    WebhookEventType.TASK_UNASSIGNED: 0x64748B,  # slate
    WebhookEventType.STATUS_CHANGED: 0xF59E0B,  # amber
    WebhookEventType.PRIORITY_CHANGED: 0xF97316,  # orange
    WebhookEventType.DUE_DATE_CHANGED: 0xA855F7,  # purple
    WebhookEventType.COMMENT_ADDED: 0x3B82F6,  # blue
    WebhookEventType.REPLY_ADDED: 0x6366F1,  # indigo
    WebhookEventType.WORKITEM_MENTIONED: 0x8B5CF6,  # violet
    WebhookEventType.ATTACHMENT_ADDED: 0x14B8A6,  # teal
    WebhookEventType.ATTACHMENT_DELETED: 0xF43F5E,  # rose
    WebhookEventType.MEMBER_ADDED: 0xEC4899,  # pink
    WebhookEventType.MEMBER_REMOVED: 0x9F1239,  # dark rose
    WebhookEventType.PROJECT_UPDATED: 0x06B6D4,  # cyan
}

FALLBACK_TITLE = "Project Event"
FOOTER_PREFIX = "Fairlx Webhooks • "


def event_color(event_type: WebhookEventType | str) -> int:
    """Embed color for an event type; unmapped types are slate."""
    try:
        return EVENT_COLORS.get(WebhookEventType(event_type), DEFAULT_COLOR)
    except ValueError:
        return DEFAULT_COLOR


def event_label(event_type: WebhookEventType | str) -> str:
    """Title-case an event type: ``STATUS_CHANGED`` -> ``Status Changed``."""
    value = event_type.value if isinstance(event_type, WebhookEventType) else event_type
    return " ".join(word.capitalize() for word in value.split("_") if word)


def event_content(project_name: str, label: str, data: EventData) -> str:
    """One-line summary: ``[Project] Label: title``."""
    headline = data.title or data.summary or FALLBACK_TITLE
    return f"[{project_name}] {label}: {headline}"


def avatar_url(name: str, base_url: str) -> str:
    """Generated avatar for a display name."""
    query = urlencode({"name": name, "background": "random"}, quote_via=quote)
    return f"{base_url}?{query}"


def project_thumbnail(project: Project) -> EmbedThumbnail | None:
    """Project image as a thumbnail, only when it is an absolute URL."""
    if project.image_url and project.image_url.startswith("http"):
        return EmbedThumbnail(url=project.image_url)
    return None


def build_event_embed(
    event_type: WebhookEventType,
    project: Project,
    actor: Actor,
    data: EventData,
    *,
    footer_icon_url: str,
    avatar_base_url: str,
) -> Embed:
    """Build the single embed card attached to a dispatched event.

    Args:
        event_type: Event being delivered.
        project: Project the event happened in.
        actor: User who caused the event.
        data: Event-specific fragment.
        footer_icon_url: Icon shown next to the footer text.
        avatar_base_url: Avatar generator for the author icon.

    Returns:
        Embed with Project / ID / Event inline fields.
    """
    label = event_label(event_type)
    item_ref = data.workitem_key or data.workitem_id or "N/A"

    return Embed(
        title=f"{label}: {data.title or FALLBACK_TITLE}",
        description=data.summary or "",
        url=data.deep_link_url,
        color=event_color(event_type),
        timestamp=utc_now(),
        footer=EmbedFooter(text=f"{FOOTER_PREFIX}{project.name}", icon_url=footer_icon_url),
        author=EmbedAuthor(
            name=actor.user_name,
            icon_url=avatar_url(actor.user_name, avatar_base_url),
        ),
        thumbnail=project_thumbnail(project),
        fields=[
            EmbedField(name="Project", value=project.name),
            EmbedField(name="ID", value=f"`{item_ref}`"),
            EmbedField(name="Event", value=label),
        ],
    )
