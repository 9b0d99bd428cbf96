"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import (
    ErrorResponse,
    HealthResponse,
    ServiceInfo,
)
from src.schemas.project import (
    AnswerRequest,
    ApprovalRequest,
    ConversationEntry,
    ProjectCreate,
    ProjectEventResponse,
    ProjectListResponse,
    ProjectResponse,
)

__all__ = [
    # Project
    "ProjectCreate",
    "AnswerRequest",
    "ApprovalRequest",
    "ConversationEntry",
    "ProjectResponse",
    "ProjectListResponse",
    "ProjectEventResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "ServiceInfo",
]
