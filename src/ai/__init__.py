"""
AI zone - model clients, reply parsing and the three workflow steps.

Nothing in this package reads or writes persisted state; the orchestrator
decides what a step's outcome means for a project.
"""

from src.ai.model_client import (
    ModelClient,
    ModelInvocationError,
    OpenAICompatibleClient,
    ProviderNotConfiguredError,
    build_model_client,
)
from src.ai.types import GeneratedFile, InterviewResult, Malformed, ModelProvider, Parsed

__all__ = [
    "ModelClient",
    "ModelInvocationError",
    "OpenAICompatibleClient",
    "ProviderNotConfiguredError",
    "build_model_client",
    "GeneratedFile",
    "InterviewResult",
    "Malformed",
    "ModelProvider",
    "Parsed",
]
