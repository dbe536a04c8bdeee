"""
FastAPI dependency injection.
Provides the submission store and API key validation.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from intake.config import settings
from intake.models.database import async_session_factory
from intake.storage.submission_store import SubmissionStore


# ── Singleton instances ──────────────────────────────────────
_submission_store: Optional[SubmissionStore] = None


def get_submission_store() -> SubmissionStore:
    """Get or create the submission store bound to the application database."""
    global _submission_store
    if _submission_store is None:
        _submission_store = SubmissionStore(async_session_factory)
    return _submission_store


async def verify_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[str]:
    """
    Verify API key if configured.
    If API_KEY is not set, all requests are allowed (dev mode).
    """
    if settings.API_KEY is None:
        return None

    if x_api_key is None or x_api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return x_api_key
