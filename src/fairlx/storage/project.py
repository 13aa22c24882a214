"""Project lookups used for payload enrichment and broadcasts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fairlx.storage.retry import qdrant_retry

if TYPE_CHECKING:
    from fairlx.models import Project

PROJECTS = "projects"


class ProjectMixin:
    """Mixin providing project reads (and seed writes) for FairlxStorage."""

    _upsert_document: Any
    _retrieve_document: Any
    _scroll_documents: Any
    _match: Any

    @qdrant_retry
    async def store_project(self, project: Project) -> str:
        """Store a project document.

        Returns:
            The project ID.
        """
        await self._upsert_document(PROJECTS, project.id, project)
        return project.id

    @qdrant_retry
    async def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID, or None if it does not exist."""
        from fairlx.models import Project

        project: Project | None = await self._retrieve_document(PROJECTS, project_id, Project)
        return project

    @qdrant_retry
    async def list_projects_by_workspace(self, workspace_id: str) -> list[Project]:
        """List every project in a workspace, oldest first."""
        from fairlx.models import Project

        projects: list[Project] = await self._scroll_documents(
            PROJECTS,
            [self._match("workspace_id", workspace_id)],
            Project,
        )
        projects.sort(key=lambda p: p.created_at)
        return projects
