"""
Project endpoints.

Routes stay thin: every state change goes through the orchestrator, and
domain errors propagate to the exception handlers in ``src.main``.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from src.api.deps import OrchestratorDep
from src.schemas.common import ErrorResponse
from src.schemas.project import (
    AnswerRequest,
    ApprovalRequest,
    ProjectCreate,
    ProjectEventResponse,
    ProjectListResponse,
    ProjectResponse,
)

router = APIRouter(
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, orchestrator: OrchestratorDep):
    """Create a project and start interviewing (or analyzing, if the interview is skipped)."""
    return await orchestrator.start(
        name=data.name,
        description=data.description,
        provider=data.provider.value if data.provider else None,
        model=data.model,
        skip_interview=data.skip_interview,
    )


@router.get("", response_model=List[ProjectListResponse])
async def list_projects(orchestrator: OrchestratorDep):
    """List projects, newest first."""
    return await orchestrator.list()


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: uuid.UUID, orchestrator: OrchestratorDep):
    return await orchestrator.get(project_id)


@router.get("/{project_id}/events", response_model=List[ProjectEventResponse])
async def get_project_events(project_id: uuid.UUID, orchestrator: OrchestratorDep):
    """Transition history of a project, oldest first."""
    return await orchestrator.history(project_id)


@router.post("/{project_id}/answer", response_model=ProjectResponse)
async def submit_answer(project_id: uuid.UUID, data: AnswerRequest, orchestrator: OrchestratorDep):
    """Answer the interviewer's outstanding questions."""
    return await orchestrator.submit_answer(project_id, data.answer)


@router.post("/{project_id}/skip-interview", response_model=ProjectResponse)
async def skip_interview(project_id: uuid.UUID, orchestrator: OrchestratorDep):
    return await orchestrator.skip_interview(project_id)


@router.post("/{project_id}/requirements/approval", response_model=ProjectResponse)
async def approve_requirements(
    project_id: uuid.UUID,
    data: ApprovalRequest,
    orchestrator: OrchestratorDep,
):
    """Approve the staged requirements (starts code generation) or reject them."""
    return await orchestrator.approve_requirements(project_id, data.approved)


@router.post("/{project_id}/code/approval", response_model=ProjectResponse)
async def approve_code(
    project_id: uuid.UUID,
    data: ApprovalRequest,
    orchestrator: OrchestratorDep,
):
    """Approve the staged code (completes the project) or reject it."""
    return await orchestrator.approve_code(project_id, data.approved)
