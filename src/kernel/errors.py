"""
Domain errors raised by the persistence and orchestration layers.

Synchronous operations let these propagate to the caller; the API layer
maps them to HTTP responses in ``src.main``.
"""

import uuid
from typing import Iterable, Optional


class ProjectNotFoundError(LookupError):
    """No project exists with the given id."""

    def __init__(self, project_id: uuid.UUID):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class InvalidTransitionError(ValueError):
    """The event's guard is not satisfied by the project's current status."""

    def __init__(
        self,
        project_id: uuid.UUID,
        event: str,
        current_status: str,
        expected: Optional[Iterable[str]] = None,
    ):
        self.project_id = project_id
        self.event = event
        self.current_status = current_status
        self.expected = sorted(expected or ())
        message = f"Invalid transition: {event} not allowed while project is {current_status}"
        if self.expected:
            message += f" (requires one of: {', '.join(self.expected)})"
        super().__init__(message)


class StaleStateError(InvalidTransitionError):
    """A conditional write lost a race: the status changed after it was read."""
