"""
Event Store service for the append-only transition log.

Transitions are logged in the same transaction as the status write,
so a committed status change always has its event row.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.models.event_log import ProjectEvent
from src.logging_config import get_request_id


class EventStore:
    """
    Service for managing the transition log.

    Usage:
        event_store = EventStore(session)
        await event_store.log(
            project_id=project.id,
            event_type="requirements_approved",
            from_status="AWAITING_REQUIREMENTS_APPROVAL",
            to_status="GENERATING_CODE",
            payload={"requirement_count": 4},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        project_id: uuid.UUID,
        event_type: str,
        to_status: str,
        from_status: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ProjectEvent:
        """
        Append a transition to the log.

        Args:
            project_id: The project that moved
            event_type: Name of the triggering event
            to_status: Status after the transition
            from_status: Status before the transition (None on creation)
            payload: Additional event data, must be JSON-serializable

        Returns:
            The created ProjectEvent record
        """
        event = ProjectEvent(
            project_id=project_id,
            event_type=event_type,
            from_status=from_status,
            to_status=to_status,
            payload=self._serialize_payload(payload or {}),
            request_id=get_request_id(),
        )

        self.session.add(event)
        # Caller commits together with the status write
        return event

    async def get_project_history(
        self,
        project_id: uuid.UUID,
        limit: int = 200,
    ) -> List[ProjectEvent]:
        """Events for a project, oldest first."""
        query = (
            select(ProjectEvent)
            .where(ProjectEvent.project_id == project_id)
            .order_by(ProjectEvent.created_at, ProjectEvent.id)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def _serialize_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in payload.items():
            if isinstance(value, BaseModel):
                result[key] = value.model_dump(mode="json")
            elif isinstance(value, uuid.UUID):
                result[key] = str(value)
            elif hasattr(value, "value"):
                result[key] = value.value
            else:
                result[key] = value
        return result
