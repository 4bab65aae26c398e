"""
FastAPI dependencies for authentication.

Provides ``get_auth_service`` and ``require_user`` dependencies that
are used across all protected routes.  Both read the objects wired onto
``app.state`` by ``main.create_app``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.middleware import AuthenticatedIdentity, AuthMiddleware
from auth.models import UserRecord
from auth.service import AuthService

# auto_error=False: a missing or non-Bearer header reaches require_user as None.
_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> UserRecord:
    """
    Authenticate the Bearer token and attach ``request.state.identity``.

    Raises ``HTTPException(401)`` whatever the reason; the reason itself
    is only logged.
    """
    middleware: AuthMiddleware = request.app.state.auth_middleware
    token = credentials.credentials if credentials is not None else None
    result = await middleware.authenticate(token)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.identity = AuthenticatedIdentity(user_id=result.value.id)
    request.state.user = result.value
    return result.value
