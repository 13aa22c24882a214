"""Tests for chat embed presentation of webhook events."""

import pytest

from fairlx.models import Actor, EventData, Project, WebhookEventType
from fairlx.webhooks.embeds import (
    DEFAULT_COLOR,
    avatar_url,
    build_event_embed,
    event_color,
    event_content,
    event_label,
    project_thumbnail,
)


@pytest.fixture
def alpha() -> Project:
    return Project(
        id="prj_alpha",
        name="Alpha",
        image_url="https://cdn.example.com/alpha.png",
        workspace_id="wks_1",
    )


class TestLabelsAndColors:
    @pytest.mark.parametrize(
        ("event_type", "label"),
        [
            (WebhookEventType.STATUS_CHANGED, "Status Changed"),
            (WebhookEventType.TASK_CREATED, "Task Created"),
            (WebhookEventType.DUE_DATE_CHANGED, "Due Date Changed"),
            ("CUSTOM_THING", "Custom Thing"),
        ],
    )
    def test_label(self, event_type, label):
        assert event_label(event_type) == label

    def test_known_colors(self):
        assert event_color(WebhookEventType.TASK_CREATED) == 0x22C55E
        assert event_color(WebhookEventType.TASK_DELETED) == 0xEF4444

    def test_unmapped_falls_back_to_slate(self):
        assert event_color(WebhookEventType.TASK_UPDATED) == DEFAULT_COLOR
        assert event_color("NOT_AN_EVENT") == DEFAULT_COLOR


class TestContent:
    def test_prefers_title(self):
        data = EventData(title="Fix login", summary="Long text")
        assert event_content("Alpha", "Task Created", data) == "[Alpha] Task Created: Fix login"

    def test_falls_back_to_summary_then_generic(self):
        assert event_content("Alpha", "X", EventData(summary="Sum")) == "[Alpha] X: Sum"
        assert event_content("Alpha", "X", EventData()) == "[Alpha] X: Project Event"


class TestHelpers:
    def test_avatar_url_encodes_name(self):
        url = avatar_url("Ada Lovelace", "https://ui-avatars.com/api/")
        assert url == "https://ui-avatars.com/api/?name=Ada%20Lovelace&background=random"

    def test_thumbnail_only_for_absolute_urls(self, alpha):
        assert project_thumbnail(alpha).url == "https://cdn.example.com/alpha.png"

        alpha.image_url = "data:image/png;base64,AAAA"
        assert project_thumbnail(alpha) is None

        alpha.image_url = None
        assert project_thumbnail(alpha) is None


class TestBuildEventEmbed:
    def test_fields_and_footer(self, alpha):
        embed = build_event_embed(
            WebhookEventType.STATUS_CHANGED,
            alpha,
            Actor(user_id="usr_1", user_name="Ada"),
            EventData(
                workitem_id="wi_1",
                workitem_key="ALP-7",
                title="Fix login",
                summary="Moved to Done",
                deep_link_url="https://app.fairlx.com/t/wi_1",
            ),
            footer_icon_url="https://fairlx.com/logo.png",
            avatar_base_url="https://ui-avatars.com/api/",
        )

        assert embed.title == "Status Changed: Fix login"
        assert embed.description == "Moved to Done"
        assert embed.url == "https://app.fairlx.com/t/wi_1"
        assert embed.color == 0xF59E0B
        assert embed.footer.text == "Fairlx Webhooks • Alpha"
        assert embed.author.name == "Ada"
        assert embed.thumbnail.url == alpha.image_url
        assert [(f.name, f.value) for f in embed.fields] == [
            ("Project", "Alpha"),
            ("ID", "`ALP-7`"),
            ("Event", "Status Changed"),
        ]
        assert all(f.inline for f in embed.fields)

    def test_id_field_falls_back(self, alpha):
        actor = Actor(user_id="usr_1", user_name="Ada")
        kwargs = {"footer_icon_url": "i", "avatar_base_url": "a"}

        by_id = build_event_embed(
            WebhookEventType.TASK_CREATED, alpha, actor, EventData(workitem_id="wi_9"), **kwargs
        )
        missing = build_event_embed(WebhookEventType.TASK_CREATED, alpha, actor, EventData(), **kwargs)

        assert by_id.fields[1].value == "`wi_9`"
        assert missing.fields[1].value == "`N/A`"
        assert missing.title == "Task Created: Project Event"
