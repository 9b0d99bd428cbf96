"""
Project persistence.

Every status change is a conditional UPDATE guarded by the status the caller
observed. If another writer moved the project in between, the UPDATE matches
no row and StaleStateError is raised instead of overwriting the newer state.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.errors import ProjectNotFoundError, StaleStateError
from src.kernel.models.project import Project, ProjectStatus


def _enum_val(e):
    """Safely get enum value (String columns return plain str)."""
    return e.value if hasattr(e, "value") else e


class ProjectRepository:
    """Create, read and conditionally update Project rows within one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **fields: Any) -> Project:
        project = Project(**fields)
        self.session.add(project)
        await self.session.flush()
        return project

    async def get_optional(self, project_id: uuid.UUID) -> Optional[Project]:
        # populate_existing: never answer from a stale identity-map copy
        query = (
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get(self, project_id: uuid.UUID) -> Project:
        project = await self.get_optional(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list(self) -> List[Project]:
        query = select(Project).order_by(Project.created_at.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_by_status(self, statuses: List[ProjectStatus]) -> List[Project]:
        query = (
            select(Project)
            .where(Project.status.in_([_enum_val(s) for s in statuses]))
            .order_by(Project.created_at)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(
        self,
        project_id: uuid.UUID,
        values: Dict[str, Any],
        expected_status: Optional[ProjectStatus] = None,
    ) -> Project:
        """
        Write ``values`` to the project and return the re-read row.

        Args:
            project_id: Project to update
            values: Column name -> new value
            expected_status: If given, the write only applies while the stored
                status still equals it

        Raises:
            ProjectNotFoundError: No such project
            StaleStateError: The stored status no longer equals expected_status
        """
        values = {key: _enum_val(value) if key == "status" else value for key, value in values.items()}
        stmt = update(Project).where(Project.id == project_id)
        if expected_status is not None:
            stmt = stmt.where(Project.status == _enum_val(expected_status))
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            current = await self.get_optional(project_id)
            if current is None:
                raise ProjectNotFoundError(project_id)
            raise StaleStateError(
                project_id,
                event="update",
                current_status=_enum_val(current.status),
                expected=[_enum_val(expected_status)],
            )

        return await self.get(project_id)
