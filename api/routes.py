"""
REST API routes for authenticated users.
"""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends

from auth.dependencies import require_user
from auth.models import UserRecord
from auth.routes import UserProfile

router = APIRouter()


@router.get("/users/me", response_model=UserProfile)
async def get_current_user(user: UserRecord = Depends(require_user)) -> UserProfile:
    """Profile of the caller identified by the Bearer token."""
    return UserProfile.from_record(user)


@router.get("/health", include_in_schema=False)
async def health() -> Dict[str, str]:
    return {"status": "ok"}
