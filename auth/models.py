"""Domain records shared by the auth core and the user directories."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def normalize_email(email: str) -> str:
    """Uniqueness key for an email: whitespace-trimmed and case-folded."""
    return (email or "").strip().casefold()


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_digest: str = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def is_utf8_encodable(value: str) -> bool:
    """False for strings carrying lone surrogates (legal in JSON, not in UTF-8)."""
    try:
        value.encode()
    except UnicodeEncodeError:
        return False
    return True
