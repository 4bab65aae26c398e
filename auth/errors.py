"""
Outcome types for the auth core.

Expected failures (bad input, duplicate email, wrong credentials, bad token)
are returned as ``AuthResult`` values.  Only an unreachable user store is
raised, as ``DirectoryUnavailable``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class AuthError(str, Enum):
    INVALID_INPUT = "invalid_input"
    EMAIL_CONFLICT = "email_conflict"
    # Unknown email and wrong password are deliberately the same outcome.
    INVALID_CREDENTIALS = "invalid_credentials"
    # Missing, malformed, expired and revoked tokens are deliberately the same outcome.
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[AuthError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AuthResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError, message: str = "") -> "AuthResult[T]":
        return cls(error=error, message=message)


class DirectoryUnavailable(RuntimeError):
    """The user store could not be reached; surfaced as 503."""
