"""
Orchestrator - sequences the interview, analysis and generation steps.

Each public operation commits its synchronous transition first and only then
launches the background step, so the new status is always visible before the
step starts. Background steps never raise to a caller: their outcome is always
applied as a second transition, and an outcome that no longer fits the
project's current status is discarded.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ai.model_client import ModelClient, build_model_client, resolve_provider_settings
from src.ai.types import GeneratedFile, InterviewResult, WorkflowStep
from src.ai.workflows import run_analysis, run_generation, run_interview
from src.config import Settings, get_settings
from src.kernel.errors import InvalidTransitionError, ProjectNotFoundError
from src.kernel.events.event_store import EventStore
from src.kernel.models.event_log import ProjectEvent
from src.kernel.models.project import ConversationRole, Project, ProjectStatus
from src.kernel.repository import ProjectRepository
from src.logging_config import get_logger
from src.orchestration.state_machine import (
    STEP_FOR_STATUS,
    Changes,
    StateMachine,
    TransitionEvent,
)
from src.orchestration.task_runner import StepSucceeded, WorkflowRunner, run_step

logger = get_logger(__name__)

ClientFactory = Callable[[str, Optional[str]], ModelClient]


class Orchestrator:
    """Entry point for every project read and write."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        client_factory: Optional[ClientFactory] = None,
        runner: Optional[WorkflowRunner] = None,
        settings: Optional[Settings] = None,
    ):
        self._session_maker = session_maker
        self._settings = settings or get_settings()
        self._client_factory = client_factory or (
            lambda provider, model: build_model_client(provider, model, self._settings)
        )
        self.runner = runner or WorkflowRunner()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[StateMachine]:
        async with self._session_maker() as session:
            async with session.begin():
                yield StateMachine(session)

    # ── User-facing operations ───────────────────────────────────────

    async def start(
        self,
        name: str,
        description: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        skip_interview: bool = False,
    ) -> Project:
        """Create a project and launch its first step (interview, or analysis when skipped)."""
        selection = resolve_provider_settings(provider, model, self._settings)
        initial = ProjectStatus.ANALYZING if skip_interview else ProjectStatus.INTERVIEWING

        async with self._transaction() as machine:
            project = await machine.create(
                initial_status=initial,
                name=name,
                description=description,
                provider=selection.provider.value,
                model=selection.model,
                conversation_history=[],
                interview_complete=skip_interview,
            )

        if skip_interview:
            self._launch_analysis(project)
        else:
            self._launch_interview(project)
        return project

    async def submit_answer(self, project_id: uuid.UUID, answer: str) -> Project:
        """Append the user's answer and re-run the interview with the full history."""
        def append_answer(project: Project) -> Dict[str, object]:
            entry = {"role": ConversationRole.USER.value, "message": answer}
            return {"conversation_history": [*project.conversation_history, entry]}

        async with self._transaction() as machine:
            project = await machine.transition(
                project_id,
                TransitionEvent.ANSWER_SUBMITTED,
                changes=append_answer,
                payload={"answer_length": len(answer)},
            )

        self._launch_interview(project)
        return project

    async def skip_interview(self, project_id: uuid.UUID) -> Project:
        """Stop interviewing and analyze the description as it stands."""
        async with self._transaction() as machine:
            project = await machine.transition(
                project_id,
                TransitionEvent.INTERVIEW_SKIPPED,
                changes={"interview_complete": True},
            )

        # Supersedes an interview still in flight
        self._launch_analysis(project)
        return project

    async def approve_requirements(self, project_id: uuid.UUID, approved: bool) -> Project:
        """Promote the staged requirements and generate code, or reject the project."""
        if not approved:
            async with self._transaction() as machine:
                return await machine.transition(
                    project_id,
                    TransitionEvent.REQUIREMENTS_REJECTED,
                    changes={"pending_requirements": None},
                )

        def promote(project: Project) -> Dict[str, object]:
            return {"requirements": project.pending_requirements, "pending_requirements": None}

        async with self._transaction() as machine:
            project = await machine.transition(
                project_id,
                TransitionEvent.REQUIREMENTS_APPROVED,
                changes=promote,
            )

        self._launch_generation(project)
        return project

    async def approve_code(self, project_id: uuid.UUID, approved: bool) -> Project:
        """Promote the staged code and complete the project, or reject it."""
        def promote(project: Project) -> Dict[str, object]:
            return {"generated_code": project.pending_code, "pending_code": None}

        if approved:
            event, changes = TransitionEvent.CODE_APPROVED, promote
        else:
            event, changes = TransitionEvent.CODE_REJECTED, {"pending_code": None}

        async with self._transaction() as machine:
            return await machine.transition(project_id, event, changes=changes)

    # ── Reads ────────────────────────────────────────────────────────

    async def get(self, project_id: uuid.UUID) -> Project:
        async with self._session_maker() as session:
            return await ProjectRepository(session).get(project_id)

    async def list(self) -> List[Project]:
        async with self._session_maker() as session:
            return await ProjectRepository(session).list()

    async def history(self, project_id: uuid.UUID) -> List[ProjectEvent]:
        async with self._session_maker() as session:
            await ProjectRepository(session).get(project_id)
            return await EventStore(session).get_project_history(project_id)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def resume_interrupted(self) -> int:
        """Relaunch the step of every project left mid-step by a previous process."""
        async with self._session_maker() as session:
            stuck = await ProjectRepository(session).list_by_status(list(STEP_FOR_STATUS))

        resumed = 0
        for project in stuck:
            if self.runner.is_running(project.id):
                continue
            step = STEP_FOR_STATUS[ProjectStatus(project.status)]
            logger.info("Resuming %s step for project %s", step.value, project.id)
            if step == WorkflowStep.INTERVIEW:
                self._launch_interview(project)
            elif step == WorkflowStep.ANALYZE:
                self._launch_analysis(project)
            else:
                self._launch_generation(project)
            resumed += 1
        return resumed

    async def wait_idle(self, project_id: Optional[uuid.UUID] = None) -> None:
        """Wait for outstanding background steps (of one project, or all)."""
        await self.runner.wait(project_id)

    async def shutdown(self) -> None:
        await self.runner.shutdown(self._settings.shutdown_grace_seconds)

    # ── Background steps ─────────────────────────────────────────────

    def _client(self, project: Project) -> ModelClient:
        return self._client_factory(project.provider, project.model)

    async def _apply(
        self,
        project_id: uuid.UUID,
        event: TransitionEvent,
        changes: Optional[Changes] = None,
        payload: Optional[Dict[str, object]] = None,
    ) -> Optional[Project]:
        """Apply a step outcome; None if the project has moved on and the outcome is discarded."""
        try:
            async with self._transaction() as machine:
                return await machine.transition(project_id, event, changes=changes, payload=payload)
        except InvalidTransitionError as exc:
            logger.info("Discarding %s for project %s: %s", event.value, project_id, exc)
        except ProjectNotFoundError:
            logger.warning("Discarding %s: project %s no longer exists", event.value, project_id)
        return None

    def _launch_interview(self, project: Project) -> None:
        description = project.working_description
        history = list(project.conversation_history or [])
        self.runner.launch(
            project.id,
            WorkflowStep.INTERVIEW,
            lambda: self._interview_job(project, description, history),
        )

    def _launch_analysis(self, project: Project) -> None:
        self.runner.launch(
            project.id,
            WorkflowStep.ANALYZE,
            lambda: self._analysis_job(project, project.working_description),
        )

    def _launch_generation(self, project: Project) -> None:
        requirements = list(project.requirements or [])
        self.runner.launch(
            project.id,
            WorkflowStep.GENERATE,
            lambda: self._generation_job(project, requirements),
        )

    async def _interview_job(
        self,
        project: Project,
        description: str,
        history: Sequence[Dict[str, str]],
    ) -> None:
        outcome = await run_step(
            WorkflowStep.INTERVIEW,
            lambda: run_interview(self._client(project), description, history),
        )

        if isinstance(outcome, StepSucceeded) and outcome.value.needs_more_info:
            result: InterviewResult = outcome.value
            questions = [q.strip() for q in result.questions if q.strip()]

            def append_questions(current: Project) -> Dict[str, object]:
                entry = {"role": ConversationRole.AGENT.value, "message": "\n\n".join(questions)}
                return {"conversation_history": [*current.conversation_history, entry]}

            await self._apply(
                project.id,
                TransitionEvent.INTERVIEW_NEEDS_INFO,
                changes=append_questions,
                payload={"question_count": len(questions)},
            )
            return

        if isinstance(outcome, StepSucceeded):
            updated = await self._apply(
                project.id,
                TransitionEvent.INTERVIEW_COMPLETED,
                changes={
                    "refined_description": outcome.value.refined_description,
                    "interview_complete": True,
                },
            )
        else:
            updated = await self._apply(
                project.id,
                TransitionEvent.INTERVIEW_FAILED,
                changes={
                    "interview_complete": True,
                    "failure_reason": f"Interview skipped: {outcome.reason}",
                },
                payload={"reason": outcome.reason},
            )

        if updated is not None:
            self._launch_analysis(updated)

    async def _analysis_job(self, project: Project, description: str) -> None:
        outcome = await run_step(
            WorkflowStep.ANALYZE,
            lambda: run_analysis(self._client(project), project.name, description),
        )
        if isinstance(outcome, StepSucceeded):
            requirements: List[str] = outcome.value
            await self._apply(
                project.id,
                TransitionEvent.ANALYSIS_SUCCEEDED,
                changes={"pending_requirements": requirements, "failure_reason": None},
                payload={"requirement_count": len(requirements)},
            )
        else:
            await self._apply(
                project.id,
                TransitionEvent.ANALYSIS_FAILED,
                changes={"failure_reason": outcome.reason},
                payload={"reason": outcome.reason},
            )

    async def _generation_job(self, project: Project, requirements: Sequence[str]) -> None:
        outcome = await run_step(
            WorkflowStep.GENERATE,
            lambda: run_generation(self._client(project), requirements),
        )
        if isinstance(outcome, StepSucceeded):
            files: List[GeneratedFile] = outcome.value
            await self._apply(
                project.id,
                TransitionEvent.CODE_GENERATED,
                changes={"pending_code": [f.model_dump() for f in files], "failure_reason": None},
                payload={"file_count": len(files)},
            )
        else:
            await self._apply(
                project.id,
                TransitionEvent.CODE_GENERATION_FAILED,
                changes={"failure_reason": outcome.reason},
                payload={"reason": outcome.reason},
            )
