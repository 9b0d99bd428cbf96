"""
Common schema types used across the API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: Any
    code: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    environment: str
    database: str = "connected"
    default_provider: str
    ai_configured: bool
    running_steps: int = 0


class ServiceInfo(BaseModel):
    name: str
    version: str
    docs: str
    endpoints: List[str]
