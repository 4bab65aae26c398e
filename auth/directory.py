"""
User directory contract and an in-process implementation.

``insert`` is the only write and must be atomic with respect to email
uniqueness: implementations enforce it inside the store (a lock, a unique
index) and never by reading first.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, Optional, Protocol

from auth.models import UserRecord, normalize_email


class InsertResult(str, Enum):
    OK = "ok"
    CONFLICT = "conflict"


class UserDirectory(Protocol):
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    async def insert(self, record: UserRecord) -> InsertResult:
        ...


class InMemoryUserDirectory:
    """Dict-backed directory; check-and-set happens under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: Dict[str, UserRecord] = {}
        self._by_email: Dict[str, UserRecord] = {}

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            return self._by_email.get(normalize_email(email))

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            return self._by_id.get(user_id)

    async def insert(self, record: UserRecord) -> InsertResult:
        key = normalize_email(record.email)
        with self._lock:
            if key in self._by_email or record.id in self._by_id:
                return InsertResult.CONFLICT
            self._by_email[key] = record
            self._by_id[record.id] = record
        return InsertResult.OK

    async def remove(self, user_id: str) -> bool:
        """Administrative removal; tokens for the user stop resolving."""
        with self._lock:
            record = self._by_id.pop(user_id, None)
            if record is None:
                return False
            self._by_email.pop(normalize_email(record.email), None)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
