"""
Project Store - Owner-scoped writing projects with write verification.

NO DICTIONARIES - All operations use strongly typed domain models.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import WritingProject
from app.exceptions import ProjectNotFoundError, WriteVerificationError
from app.models.api import ActionType, ProjectSort, ProjectStatus, ProjectStatusFilter, ToolType
from app.models.domain import ProjectData, ProjectUpdate
from app.observability.logging import get_logger
from app.observability.metrics import metrics
from app.services.usage_ledger import UsageLedger

logger = get_logger(__name__)


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def count_text(content: str) -> tuple[int, int]:
    """Return (words, characters); words are whitespace-separated non-empty tokens."""
    return len(content.split()), len(content)


def filter_and_sort_projects(
    projects: list[ProjectData],
    sort: ProjectSort = ProjectSort.DATE,
    status_filter: ProjectStatusFilter = ProjectStatusFilter.ALL,
    search: str | None = None,
) -> list[ProjectData]:
    """
    Apply the project listing filters.

    Search is a case-insensitive substring match on title or content.
    Sorts are stable: date and words descending, title ascending case-folded.
    """
    selected = projects
    if search:
        needle = search.lower()
        selected = [
            p for p in selected if needle in p.title.lower() or needle in p.content.lower()
        ]
    if status_filter != ProjectStatusFilter.ALL:
        selected = [p for p in selected if p.status.value == status_filter.value]

    if sort == ProjectSort.TITLE:
        return sorted(selected, key=lambda p: p.title.casefold())
    if sort == ProjectSort.WORDS:
        return sorted(selected, key=lambda p: p.word_count, reverse=True)
    return sorted(selected, key=lambda p: p.updated_at, reverse=True)


class ProjectService:
    """
    Writing project store.

    Every query is scoped to the owning user; another user's project
    is indistinguishable from a missing one.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize project service with database session."""
        self.session = session
        self.ledger = UsageLedger(session)

    async def create(
        self, owner: str, title: str, tool_type: ToolType, language: str | None = None
    ) -> ProjectData:
        """Create an empty draft project and record a project_created event."""
        project = WritingProject(
            user_id=owner,
            title=title,
            content="",
            tool_type=tool_type.value,
            language=language or settings.default_language,
            status=ProjectStatus.DRAFT.value,
            word_count=0,
            character_count=0,
        )
        self.session.add(project)
        await self.session.flush()

        verified = await self.session.get(WritingProject, project.id)
        if verified is None:
            raise WriteVerificationError(f"Project {project.id} not found after insert")

        await self.session.commit()

        metrics.projects_created_total.labels(tool_type=tool_type.value).inc()
        logger.info(
            "project_created",
            user_id=owner,
            project_id=str(verified.id),
            tool_type=tool_type.value,
        )

        await self.ledger.append(owner, ActionType.PROJECT_CREATED, tool_used=tool_type.value)

        return _project_to_domain(verified)

    async def get(self, owner: str, project_id: UUID) -> ProjectData:
        """
        Get a project.

        Raises:
            ProjectNotFoundError: Missing or owned by someone else
        """
        project = await self._find_owned(owner, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return _project_to_domain(project)

    async def update(self, owner: str, project_id: UUID, changes: ProjectUpdate) -> ProjectData:
        """
        Apply a partial update.

        Word and character counts are recomputed whenever content is written.

        Raises:
            ProjectNotFoundError: Missing or owned by someone else
        """
        project = await self._find_owned(owner, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        if changes.title is not None:
            project.title = changes.title
        if changes.content is not None:
            project.content = changes.content
            project.word_count, project.character_count = count_text(changes.content)
        if changes.tool_type is not None:
            project.tool_type = changes.tool_type
        if changes.prompt is not None:
            project.prompt = changes.prompt
        if changes.status is not None:
            project.status = changes.status.value
        if changes.language is not None:
            project.language = changes.language
        project.updated_at = _utc_now()

        await self.session.flush()

        verified = await self.session.get(WritingProject, project.id)
        if verified is None:
            raise WriteVerificationError(f"Project {project.id} disappeared after update")

        await self.session.commit()

        logger.info(
            "project_updated",
            user_id=owner,
            project_id=str(project_id),
            content_changed=changes.content is not None,
            word_count=verified.word_count,
        )
        return _project_to_domain(verified)

    async def delete(self, owner: str, project_id: UUID) -> None:
        """
        Delete a project.

        Raises:
            ProjectNotFoundError: Missing or owned by someone else
        """
        project = await self._find_owned(owner, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        await self.session.delete(project)
        await self.session.commit()

        logger.info("project_deleted", user_id=owner, project_id=str(project_id))

    async def list_by_owner(
        self,
        owner: str,
        sort: ProjectSort = ProjectSort.DATE,
        status_filter: ProjectStatusFilter = ProjectStatusFilter.ALL,
        search: str | None = None,
    ) -> list[ProjectData]:
        """All of the owner's projects, filtered and sorted."""
        stmt = (
            select(WritingProject)
            .where(WritingProject.user_id == owner)
            .order_by(WritingProject.updated_at.desc())
        )
        result = await self.session.execute(stmt)
        projects = [_project_to_domain(p) for p in result.scalars().all()]
        return filter_and_sort_projects(projects, sort, status_filter, search)

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _find_owned(self, owner: str, project_id: UUID) -> WritingProject | None:
        stmt = select(WritingProject).where(
            WritingProject.id == project_id,
            WritingProject.user_id == owner,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


def _project_to_domain(project: WritingProject) -> ProjectData:
    """Convert ORM project to domain model."""
    return ProjectData(
        project_id=project.id,
        user_id=project.user_id,
        title=project.title,
        content=project.content,
        tool_type=project.tool_type,
        prompt=project.prompt,
        status=ProjectStatus(project.status),
        language=project.language,
        word_count=project.word_count,
        character_count=project.character_count,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )
