"""
AuthService — registration, login and current-user resolution.

Every public coroutine returns an ``AuthResult``.  bcrypt work runs on an
executor so the event loop keeps accepting requests while a hash is in
flight.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from concurrent.futures import Executor
from typing import Any, Callable, Optional

from auth.directory import InsertResult, UserDirectory
from auth.errors import AuthError, AuthResult
from auth.jwt import TokenError, TokenIssuer
from auth.models import UserRecord, is_utf8_encodable, normalize_email
from auth.password import MAX_PASSWORD_BYTES, PasswordHasher
from config.settings import AuthConfig

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 128
MAX_EMAIL_LENGTH = 255


class AuthService:
    def __init__(
        self,
        config: AuthConfig,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        directory: UserDirectory,
        executor: Optional[Executor] = None,
    ):
        self._config = config
        self._hasher = hasher
        self._issuer = issuer
        self._directory = directory
        self._executor = executor

    async def _offload(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    def _validate_registration(self, name: str, email: str, password: str) -> Optional[str]:
        """Return a caller-facing reason if the registration input is rejected."""
        if not all(is_utf8_encodable(value) for value in (name, email, password)):
            return "Input must be valid UTF-8 text"
        if not name:
            return "Name is required"
        if len(name) > MAX_NAME_LENGTH:
            return f"Name must be at most {MAX_NAME_LENGTH} characters"
        if not email:
            return "Email is required"
        local, sep, domain = email.partition("@")
        if (
            not sep
            or not local
            or not domain
            or "@" in domain
            or any(ch.isspace() for ch in email)
            or len(email) > MAX_EMAIL_LENGTH
        ):
            return "Email is not valid"
        if len(password) < self._config.min_password_length:
            return f"Password must be at least {self._config.min_password_length} characters"
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            return f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        return None

    async def register(self, name: str, email: str, password: str) -> AuthResult[UserRecord]:
        """Create a user; a second registration of the same email reports a conflict."""
        name = (name or "").strip()
        email = normalize_email(email)
        password = password or ""

        problem = self._validate_registration(name, email, password)
        if problem:
            return AuthResult.failure(AuthError.INVALID_INPUT, problem)

        digest = await self._offload(self._hasher.hash, password)
        record = UserRecord(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_digest=digest,
        )
        if await self._directory.insert(record) is InsertResult.CONFLICT:
            logger.info("Registration rejected: email already registered")
            return AuthResult.failure(AuthError.EMAIL_CONFLICT)

        logger.info("Registered user %s", record.id)
        return AuthResult.success(record)

    async def login(self, email: str, password: str) -> AuthResult[str]:
        """Verify credentials and issue a bearer token."""
        email = normalize_email(email)
        password = password or ""
        record = None
        if is_utf8_encodable(email) and is_utf8_encodable(password):
            record = await self._directory.find_by_email(email)
        else:
            # Lone surrogates cannot match any stored digest; bcrypt still runs below.
            password = ""

        if record is None:
            # Keep unknown-email logins as slow as wrong-password logins.
            await self._offload(self._hasher.verify, password, self._hasher.dummy_digest)
            logger.info("Login rejected: invalid credentials")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS)

        if not await self._offload(self._hasher.verify, password, record.password_digest):
            logger.info("Login rejected: invalid credentials")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS)

        token = self._issuer.issue(record.id)
        logger.info("Login: %s", record.id)
        return AuthResult.success(token)

    async def get_current_user(self, token: str) -> AuthResult[UserRecord]:
        """Resolve the user bound to ``token``; removed users count as revoked."""
        try:
            claims = self._issuer.validate(token)
        except TokenError as exc:
            logger.debug("Token rejected (%s): %s", type(exc).__name__, exc.reason)
            return AuthResult.failure(AuthError.UNAUTHENTICATED)

        record = await self._directory.find_by_id(claims.user_id)
        if record is None:
            logger.debug("Token rejected: user %s no longer exists", claims.user_id)
            return AuthResult.failure(AuthError.UNAUTHENTICATED)
        return AuthResult.success(record)
