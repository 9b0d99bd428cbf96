"""
Shared AI types - conversation messages, providers and tagged parse results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class ModelProvider(str, Enum):
    """Model backends reachable through an OpenAI-compatible endpoint."""
    OPENAI = "openai"
    XAI = "xai"
    GEMINI = "gemini"
    HUGGINGFACE = "huggingface"


class ChatMessage(BaseModel):
    """One entry of a conversation sent to a model client."""

    role: Literal["system", "user", "assistant"]
    content: str


class WorkflowStep(str, Enum):
    """The three model-backed steps of the pipeline."""
    INTERVIEW = "interview"
    ANALYZE = "analyze"
    GENERATE = "generate"


# ── Step outputs ─────────────────────────────────────────────────────

class InterviewResult(BaseModel):
    """Structured reply of the interview step."""

    model_config = ConfigDict(populate_by_name=True)

    needs_more_info: bool = Field(..., alias="needsMoreInfo")
    refined_description: str = Field("", alias="refinedDescription")
    questions: List[str] = Field(default_factory=list)


class GeneratedFile(BaseModel):
    """One generated source file."""

    path: str = Field(..., min_length=1)
    content: str

    @field_validator("path")
    @classmethod
    def _relative_inside_project(cls, value: str) -> str:
        normalized = value.replace("\\", "/").strip()
        if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
            raise ValueError("path must be relative")
        if ".." in normalized.split("/"):
            raise ValueError("path must stay inside the project")
        return normalized


# ── Tagged parse results ─────────────────────────────────────────────

@dataclass(frozen=True)
class Parsed(Generic[T]):
    """The model reply decoded into the expected shape."""

    value: T


@dataclass(frozen=True)
class Malformed:
    """The model reply could not be decoded into the expected shape."""

    raw_text: str
    reason: str


ParseResult = Union[Parsed[T], Malformed]
