"""
API Routes
"""

from fastapi import APIRouter

from .projects import router as projects_router
from .agents import router as agents_router

api_router = APIRouter()

api_router.include_router(projects_router, prefix="/projects", tags=["Projects"])
api_router.include_router(agents_router, prefix="/agents", tags=["Agents"])
