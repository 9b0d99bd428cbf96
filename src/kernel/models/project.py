"""
Codegen project model.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class ProjectStatus(str, Enum):
    """Project lifecycle status. Only the state machine moves a project between these."""
    INTERVIEWING = "INTERVIEWING"
    AWAITING_ANSWER = "AWAITING_ANSWER"
    ANALYZING = "ANALYZING"
    AWAITING_REQUIREMENTS_APPROVAL = "AWAITING_REQUIREMENTS_APPROVAL"
    GENERATING_CODE = "GENERATING_CODE"
    AWAITING_CODE_APPROVAL = "AWAITING_CODE_APPROVAL"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


class ConversationRole(str, Enum):
    """Speaker of a conversation history entry."""
    AGENT = "agent"
    USER = "user"


class Project(Base, TimestampMixin):
    """A project description on its way to generated backend code."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    refined_description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[ProjectStatus] = mapped_column(
        String(50),
        default=ProjectStatus.INTERVIEWING,
        nullable=False,
        index=True,
    )

    # Model selection, fixed at creation
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    model: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Interview
    conversation_history: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    interview_complete: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )

    # Staging and approved slots; SQL NULL when empty
    pending_requirements: Mapped[Optional[List[str]]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )
    requirements: Mapped[Optional[List[str]]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )
    pending_code: Mapped[Optional[List[Dict[str, str]]]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )
    generated_code: Mapped[Optional[List[Dict[str, str]]]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )

    failure_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    @property
    def working_description(self) -> str:
        """Description the next workflow step should use."""
        return self.refined_description or self.description

    def __repr__(self) -> str:
        return f"<Project {self.name[:50]} {self.status}>"
