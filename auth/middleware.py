"""
Per-request authentication: identity resolution for a bearer token.

    no token      -> unauthenticated (the service is never called)
    token present -> validating -> authenticated(identity) | unauthenticated

The token itself is pulled off the ``Authorization`` header by
``fastapi.security.HTTPBearer`` in ``auth.dependencies``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from auth.errors import AuthError, AuthResult
from auth.models import UserRecord
from auth.service import AuthService


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: str


class AuthMiddleware:
    def __init__(self, service: AuthService):
        self._service = service

    async def authenticate(self, token: Optional[str]) -> AuthResult[UserRecord]:
        if not token:
            return AuthResult.failure(AuthError.UNAUTHENTICATED)
        return await self._service.get_current_user(token)
