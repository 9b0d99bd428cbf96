"""
State machine for the project lifecycle.

The transition table is authoritative: an event is accepted only from the
statuses listed for it, and every accepted event moves the project to exactly
one next status. StateMachine applies a transition as one read-modify-write
against the current row, conditioned on the status it read, and records the
transition in the event log in the same transaction.
"""

import uuid
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from src.ai.types import WorkflowStep
from src.kernel.errors import InvalidTransitionError, StaleStateError
from src.kernel.events.event_store import EventStore
from src.kernel.models.project import Project, ProjectStatus
from src.kernel.repository import ProjectRepository
from src.logging_config import get_logger

logger = get_logger(__name__)


class TransitionEvent(str, Enum):
    """Everything that can move a project: user actions and step outcomes."""
    PROJECT_CREATED = "project_created"
    # Interview
    INTERVIEW_NEEDS_INFO = "interview_needs_info"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_FAILED = "interview_failed"
    ANSWER_SUBMITTED = "answer_submitted"
    INTERVIEW_SKIPPED = "interview_skipped"
    # Analysis
    ANALYSIS_SUCCEEDED = "analysis_succeeded"
    ANALYSIS_FAILED = "analysis_failed"
    REQUIREMENTS_APPROVED = "requirements_approved"
    REQUIREMENTS_REJECTED = "requirements_rejected"
    # Generation
    CODE_GENERATED = "code_generated"
    CODE_GENERATION_FAILED = "code_generation_failed"
    CODE_APPROVED = "code_approved"
    CODE_REJECTED = "code_rejected"


S = ProjectStatus
E = TransitionEvent

# (from_status, event) -> to_status
_TRANSITIONS: Dict[Tuple[ProjectStatus, TransitionEvent], ProjectStatus] = {
    (S.INTERVIEWING, E.INTERVIEW_NEEDS_INFO): S.AWAITING_ANSWER,
    (S.INTERVIEWING, E.INTERVIEW_COMPLETED): S.ANALYZING,
    # Interview failure is absorbed: fall through to analysis
    (S.INTERVIEWING, E.INTERVIEW_FAILED): S.ANALYZING,
    (S.AWAITING_ANSWER, E.ANSWER_SUBMITTED): S.INTERVIEWING,
    (S.AWAITING_ANSWER, E.INTERVIEW_SKIPPED): S.ANALYZING,
    (S.INTERVIEWING, E.INTERVIEW_SKIPPED): S.ANALYZING,
    (S.ANALYZING, E.ANALYSIS_SUCCEEDED): S.AWAITING_REQUIREMENTS_APPROVAL,
    (S.ANALYZING, E.ANALYSIS_FAILED): S.FAILED,
    (S.AWAITING_REQUIREMENTS_APPROVAL, E.REQUIREMENTS_APPROVED): S.GENERATING_CODE,
    (S.AWAITING_REQUIREMENTS_APPROVAL, E.REQUIREMENTS_REJECTED): S.REJECTED,
    (S.GENERATING_CODE, E.CODE_GENERATED): S.AWAITING_CODE_APPROVAL,
    (S.GENERATING_CODE, E.CODE_GENERATION_FAILED): S.FAILED,
    (S.AWAITING_CODE_APPROVAL, E.CODE_APPROVED): S.COMPLETED,
    (S.AWAITING_CODE_APPROVAL, E.CODE_REJECTED): S.REJECTED,
}

INITIAL_STATUS = S.INTERVIEWING

TERMINAL_STATES: FrozenSet[ProjectStatus] = frozenset({S.COMPLETED, S.REJECTED, S.FAILED})

# Statuses during which a workflow step is outstanding, and which step
STEP_FOR_STATUS: Dict[ProjectStatus, WorkflowStep] = {
    S.INTERVIEWING: WorkflowStep.INTERVIEW,
    S.ANALYZING: WorkflowStep.ANALYZE,
    S.GENERATING_CODE: WorkflowStep.GENERATE,
}

del S, E


def _status(value: Union[ProjectStatus, str]) -> ProjectStatus:
    """Coerce a stored status (String columns return plain str) to the enum."""
    return value if isinstance(value, ProjectStatus) else ProjectStatus(value)


def next_status(
    from_status: Union[ProjectStatus, str],
    event: TransitionEvent,
) -> Optional[ProjectStatus]:
    """Target status of ``event`` from ``from_status``, or None if not allowed."""
    return _TRANSITIONS.get((_status(from_status), event))


def can_transition(from_status: Union[ProjectStatus, str], event: TransitionEvent) -> bool:
    return next_status(from_status, event) is not None


def allowed_sources(event: TransitionEvent) -> Set[ProjectStatus]:
    """Statuses from which ``event`` is accepted (its guard)."""
    return {source for (source, e) in _TRANSITIONS if e == event}


def valid_events(from_status: Union[ProjectStatus, str]) -> List[TransitionEvent]:
    """Events accepted while a project is in ``from_status``."""
    status = _status(from_status)
    return [event for (source, event) in _TRANSITIONS if source == status]


def is_terminal(status: Union[ProjectStatus, str]) -> bool:
    return _status(status) in TERMINAL_STATES


Changes = Union[Dict[str, Any], Callable[[Project], Dict[str, Any]]]


class StateMachine:
    """Service for performing project transitions with audit logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.projects = ProjectRepository(session)
        self.event_store = EventStore(session)

    async def create(
        self,
        initial_status: ProjectStatus = INITIAL_STATUS,
        **fields: Any,
    ) -> Project:
        """Create a project in its initial status and log the creation."""
        if initial_status not in (ProjectStatus.INTERVIEWING, ProjectStatus.ANALYZING):
            raise ValueError(f"Projects cannot start in {initial_status.value}")

        project = await self.projects.create(status=initial_status.value, **fields)
        await self.event_store.log(
            project_id=project.id,
            event_type=TransitionEvent.PROJECT_CREATED.value,
            to_status=initial_status.value,
            payload={"name": project.name, "provider": project.provider, "model": project.model},
        )
        logger.info(
            "Project %s created in %s",
            project.id,
            initial_status.value,
        )
        return project

    async def transition(
        self,
        project_id: uuid.UUID,
        event: TransitionEvent,
        changes: Optional[Changes] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Project:
        """
        Apply ``event`` to the project's current row.

        Args:
            project_id: Project to move
            event: Triggering event
            changes: Extra column values, or a function computing them from
                the freshly read project (for appends and slot copies)
            payload: Extra data for the event log

        Returns:
            The project as stored after the transition

        Raises:
            ProjectNotFoundError: No such project
            InvalidTransitionError: The event's guard is not met; nothing written
            StaleStateError: The status changed between read and write; nothing written
        """
        project = await self.projects.get(project_id)
        from_status = _status(project.status)
        to_status = next_status(from_status, event)
        if to_status is None:
            raise InvalidTransitionError(
                project_id,
                event=event.value,
                current_status=from_status.value,
                expected=[s.value for s in allowed_sources(event)],
            )

        values = changes(project) if callable(changes) else dict(changes or {})
        values["status"] = to_status.value

        try:
            updated = await self.projects.update(project_id, values, expected_status=from_status)
        except StaleStateError as exc:
            raise StaleStateError(
                project_id,
                event=event.value,
                current_status=exc.current_status,
                expected=[from_status.value],
            ) from exc

        await self.event_store.log(
            project_id=project_id,
            event_type=event.value,
            from_status=from_status.value,
            to_status=to_status.value,
            payload=payload,
        )
        logger.info(
            "Project %s: %s -> %s (%s)",
            project_id,
            from_status.value,
            to_status.value,
            event.value,
        )
        return updated
