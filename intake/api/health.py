"""
Health check endpoints.
/health always returns 200; DB connectivity is reported, not enforced.
"""

from typing import Optional

from fastapi import APIRouter
from sqlalchemy import text

from intake.config import settings
from intake.models.database import async_session_factory

router = APIRouter(tags=["health"])


async def _database_ok() -> tuple[bool, Optional[str]]:
    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1, None
    except Exception as e:
        return False, str(e)[:200]


@router.get("/health")
async def health_check():
    """Liveness: API is up. Database state is included for diagnostics."""
    db_ok, db_error = await _database_ok()

    response = {
        "status": "healthy" if db_ok else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "connected" if db_ok else "unreachable",
    }
    if db_error:
        response["database_error"] = db_error

    return response


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: ready only when the database answers."""
    db_ok, _ = await _database_ok()
    return {"ready": db_ok}
