"""
Auth API routes — register, login.

Route prefix: /api/auth
"""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from auth.dependencies import get_auth_service
from auth.errors import AuthError
from auth.models import UserRecord
from auth.service import AuthService

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserProfile(BaseModel):
    id: str
    name: str
    email: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserProfile":
        return cls(id=record.id, name=record.name, email=record.email)


class TokenResponse(BaseModel):
    token: str


_STATUS_FOR_ERROR: Dict[AuthError, int] = {
    AuthError.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    AuthError.EMAIL_CONFLICT: status.HTTP_409_CONFLICT,
    AuthError.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthError.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
}

_DETAIL_FOR_ERROR: Dict[AuthError, str] = {
    AuthError.INVALID_INPUT: "Invalid request",
    AuthError.EMAIL_CONFLICT: "Email already registered",
    AuthError.INVALID_CREDENTIALS: "Invalid email or password",
    AuthError.UNAUTHENTICATED: "Not authenticated",
}


def raise_for_error(error: AuthError, message: str = "") -> None:
    """Translate an ``AuthError`` into the matching ``HTTPException``."""
    raise HTTPException(
        status_code=_STATUS_FOR_ERROR[error],
        detail=message or _DETAIL_FOR_ERROR[error],
    )


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", response_model=UserProfile)
async def register(
    req: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Register a new user."""
    result = await service.register(req.name, req.email, req.password)
    if not result.ok:
        raise_for_error(result.error, result.message)
    return UserProfile.from_record(result.value)


@router.post("/login", response_model=TokenResponse)
async def login(
    req: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Login with email + password."""
    result = await service.login(req.email, req.password)
    if not result.ok:
        raise_for_error(result.error)
    return TokenResponse(token=result.value)
