"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import projects

router = APIRouter()

router.include_router(projects.router, prefix="/projects", tags=["Projects"])
