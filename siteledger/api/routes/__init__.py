"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .dashboard import router as dashboard_router
from .projects import router as projects_router

api_router = APIRouter()
api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])

__all__ = ["api_router"]
