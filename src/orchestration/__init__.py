"""Orchestration layer - state machine, background runner, project orchestrator."""

from src.orchestration.orchestrator import Orchestrator
from src.orchestration.state_machine import StateMachine, TransitionEvent
from src.orchestration.task_runner import WorkflowRunner

__all__ = [
    "Orchestrator",
    "StateMachine",
    "TransitionEvent",
    "WorkflowRunner",
]
