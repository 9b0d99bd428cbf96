"""
Workflow steps. Each is one request/response exchange with a model client;
none of them touches persisted state.
"""

from src.ai.workflows.analyst import run_analysis
from src.ai.workflows.backend_generator import run_generation
from src.ai.workflows.interviewer import run_interview

__all__ = [
    "run_interview",
    "run_analysis",
    "run_generation",
]
