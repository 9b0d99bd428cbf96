"""
Kernel Data Models

SQLAlchemy models for projects and their transition log.
"""

from src.kernel.models.base import Base, TimestampMixin, generate_uuid
from src.kernel.models.project import ConversationRole, Project, ProjectStatus
from src.kernel.models.event_log import ProjectEvent

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Project
    "Project",
    "ProjectStatus",
    "ConversationRole",
    # Event Log
    "ProjectEvent",
]
