"""
Project schemas.

Responses are serialized with camelCase keys (``interviewComplete``,
``pendingRequirements``...), which is what the web client reads.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.ai.types import GeneratedFile, ModelProvider


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProjectCreate(CamelModel):
    """Project creation request."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    provider: Optional[ModelProvider] = None
    model: Optional[str] = Field(None, max_length=255)
    skip_interview: bool = False


class AnswerRequest(CamelModel):
    answer: str = Field(..., min_length=1)


class ApprovalRequest(CamelModel):
    approved: bool


class ConversationEntry(CamelModel):
    role: str
    message: str


class ProjectResponse(CamelModel):
    """Full project state, as polled by clients."""

    id: uuid.UUID
    name: str
    description: str
    refined_description: Optional[str] = None
    status: str
    provider: Optional[str] = None
    model: Optional[str] = None
    conversation_history: List[ConversationEntry] = []
    interview_complete: bool
    pending_requirements: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    pending_code: Optional[List[GeneratedFile]] = None
    generated_code: Optional[List[GeneratedFile]] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(CamelModel):
    """Project list item response."""

    id: uuid.UUID
    name: str
    status: str
    provider: Optional[str] = None
    model: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProjectEventResponse(CamelModel):
    """One audit log entry."""

    id: uuid.UUID
    event_type: str
    from_status: Optional[str] = None
    to_status: str
    payload: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None
    created_at: datetime
