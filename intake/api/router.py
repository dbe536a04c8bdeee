"""
Top-level API router.
Combines all sub-routers into a single router.
"""

from fastapi import APIRouter

from intake.api.health import router as health_router
from intake.api.submissions import router as submissions_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(submissions_router)
