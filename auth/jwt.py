"""
JWT-style token creation and verification.

Tokens are an unpadded URL-safe base64 JSON payload followed by a hex
HMAC-SHA256 signature of that payload segment::

    <b64url({"sub": ..., "iat": ..., "exp": ...})>.<hmac-sha256 hex>

The signature is checked on the raw segment before anything is decoded.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from dataclasses import dataclass
from typing import Callable


class TokenError(Exception):
    """Base class for rejected tokens.  ``reason`` is for logs only."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class MalformedTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: int
    expires_at: int


def _b64encode(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64decode(segment: str) -> bytes:
    return urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


class TokenIssuer:
    """Issues and validates signed, time-bounded bearer tokens."""

    def __init__(
        self,
        secret: str,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret.encode()
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def _sign(self, segment: str) -> str:
        return hmac.new(self._secret, segment.encode(), hashlib.sha256).hexdigest()

    def issue(self, user_id: str) -> str:
        """Create a signed token containing ``user_id``, issue time and expiry."""
        issued_at = int(self._clock())
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        segment = _b64encode(json.dumps(payload, separators=(",", ":")).encode())
        return segment + "." + self._sign(segment)

    def validate(self, token: str) -> TokenClaims:
        """
        Verify token and return its claims.

        Raises ``MalformedTokenError`` when the token cannot be parsed or the
        signature does not match, ``ExpiredTokenError`` once ``exp`` has passed.
        """
        if not isinstance(token, str) or token.count(".") != 1:
            raise MalformedTokenError("bad format")
        segment, signature = token.split(".")
        try:
            signature_ok = hmac.compare_digest(
                signature.encode(), self._sign(segment).encode()
            )
        except ValueError:
            raise MalformedTokenError("bad encoding")
        if not signature_ok:
            raise MalformedTokenError("bad signature")

        try:
            payload = json.loads(_b64decode(segment))
        except ValueError:
            raise MalformedTokenError("bad payload")
        if not isinstance(payload, dict):
            raise MalformedTokenError("bad payload")

        user_id = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(user_id, str) or not user_id:
            raise MalformedTokenError("missing subject")
        for claim in (issued_at, expires_at):
            if not isinstance(claim, int) or isinstance(claim, bool):
                raise MalformedTokenError("bad timestamps")

        if self._clock() > expires_at:
            raise ExpiredTokenError("token expired")
        return TokenClaims(user_id=user_id, issued_at=issued_at, expires_at=expires_at)
