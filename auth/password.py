"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.
"""

from __future__ import annotations

import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt hasher bound to a fixed work factor."""

    def __init__(self, work_factor: int = 12):
        self.work_factor = work_factor
        self.dummy_digest = self.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt (two calls never return the same digest)."""
        if not password:
            raise ValueError("password must not be empty")
        salt = bcrypt.gensalt(rounds=self.work_factor)
        return bcrypt.hashpw(password.encode(), salt).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash."""
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except (ValueError, TypeError, AttributeError):
            return False
