"""Project metadata read by the webhook subsystem."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, utc_now


class Project(BaseModel):
    """A project as seen by webhooks.

    Only the fields used for payload enrichment, workspace broadcast
    and the settings permission check are modelled here.

    Attributes:
        id: Project identifier.
        name: Display name.
        image_url: Optional project image (used as embed thumbnail).
        workspace_id: Workspace the project belongs to.
        admin_user_ids: Users allowed to manage project settings.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("prj"))
    name: str = Field(min_length=1)
    image_url: str | None = None
    workspace_id: str
    admin_user_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def can_manage_settings(self, user_id: str) -> bool:
        return user_id in self.admin_user_ids
