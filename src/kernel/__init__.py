"""
Kernel Layer

Persistence for projects:
- Project rows, read and written only through ProjectRepository
- Append-only transition log (EventStore)
- Domain errors shared by the orchestration and API layers
"""

from src.kernel.errors import (
    InvalidTransitionError,
    ProjectNotFoundError,
    StaleStateError,
)
from src.kernel.models import (
    ConversationRole,
    Project,
    ProjectEvent,
    ProjectStatus,
)

__all__ = [
    # Errors
    "ProjectNotFoundError",
    "InvalidTransitionError",
    "StaleStateError",
    # Models
    "Project",
    "ProjectStatus",
    "ConversationRole",
    "ProjectEvent",
]
