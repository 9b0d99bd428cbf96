"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from src.orchestration.orchestrator import Orchestrator


def get_orchestrator(request: Request) -> Orchestrator:
    """The orchestrator created by the application lifespan."""
    return request.app.state.orchestrator


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]
