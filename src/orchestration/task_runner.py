"""
Background execution of workflow steps.

WorkflowRunner keeps one task handle per project. run_step turns whatever a
step does (parse, malformed reply, provider error, unexpected exception) into a
StepOutcome so the caller always has something to apply as a transition.
"""

import asyncio
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from src.ai.model_client import ModelInvocationError
from src.ai.types import Malformed, ParseResult, WorkflowStep
from src.logging_config import get_logger, project_id_var

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepSucceeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class StepFailed:
    reason: str


StepOutcome = Union[StepSucceeded[T], StepFailed]


async def run_step(
    step: WorkflowStep,
    call: Callable[[], Awaitable[ParseResult[T]]],
) -> StepOutcome[T]:
    """Run one workflow step and fold every failure mode into StepFailed."""
    try:
        result = await call()
    except ModelInvocationError as exc:
        logger.warning("%s step: model invocation failed: %s", step.value, exc)
        return StepFailed(f"Model invocation failed: {exc}")
    except Exception as exc:
        logger.exception("%s step raised unexpectedly", step.value)
        return StepFailed(f"Unexpected error: {exc}")

    if isinstance(result, Malformed):
        logger.warning(
            "%s step: malformed reply: %s",
            step.value,
            result.reason,
            extra={"reply_preview": result.raw_text[:200]},
        )
        return StepFailed(f"Malformed model reply: {result.reason}")
    return StepSucceeded(result.value)


class WorkflowRunner:
    """
    Runs workflow jobs as asyncio tasks keyed by project id.

    Launching a job for a project whose previous job is still running cancels
    the previous one, unless the new job is launched from inside it (a step
    handing over to the next one).
    """

    def __init__(self):
        self._tasks: Dict[uuid.UUID, asyncio.Task] = {}

    def launch(
        self,
        project_id: uuid.UUID,
        step: WorkflowStep,
        job: Callable[[], Awaitable[None]],
    ) -> asyncio.Task:
        previous = self._tasks.get(project_id)
        if previous is not None and not previous.done() and previous is not asyncio.current_task():
            logger.info("Cancelling superseded %s for project %s", previous.get_name(), project_id)
            previous.cancel()

        task = asyncio.create_task(
            self._run(project_id, step, job),
            name=f"{step.value}:{project_id}",
        )
        self._tasks[project_id] = task
        task.add_done_callback(partial(self._forget, project_id))
        return task

    async def _run(
        self,
        project_id: uuid.UUID,
        step: WorkflowStep,
        job: Callable[[], Awaitable[None]],
    ) -> None:
        token = project_id_var.set(str(project_id))
        try:
            logger.debug("Starting %s step", step.value)
            await job()
        except asyncio.CancelledError:
            logger.info("%s step cancelled", step.value)
            raise
        except Exception:
            # The outcome could not be written (database down, ...). The project
            # stays in its *ING status and is picked up by resume on restart.
            logger.exception("%s step could not record its outcome", step.value)
        finally:
            project_id_var.reset(token)

    def _forget(self, project_id: uuid.UUID, task: asyncio.Task) -> None:
        if self._tasks.get(project_id) is task:
            del self._tasks[project_id]

    def is_running(self, project_id: uuid.UUID) -> bool:
        task = self._tasks.get(project_id)
        return task is not None and not task.done()

    def outstanding(self) -> List[uuid.UUID]:
        return [pid for pid, task in self._tasks.items() if not task.done()]

    async def wait(self, project_id: Optional[uuid.UUID] = None) -> None:
        """Wait until no job is running (for one project, or at all), including hand-overs."""
        while True:
            if project_id is not None:
                pending = [t for pid, t in self._tasks.items() if pid == project_id and not t.done()]
            else:
                pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self, grace_seconds: float = 5.0) -> None:
        """Give running jobs ``grace_seconds`` to finish, then cancel the rest."""
        pending = [t for t in self._tasks.values() if not t.done()]
        if not pending:
            return
        logger.info("Waiting for %d workflow step(s) to finish", len(pending))
        _, still_running = await asyncio.wait(pending, timeout=grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("Cancelled %d workflow step(s) at shutdown", len(still_running))
            await asyncio.gather(*still_running, return_exceptions=True)
