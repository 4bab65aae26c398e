"""
SQLAlchemy-backed ``UserDirectory``.

Uniqueness is enforced by the ``users.email`` unique index: ``insert``
writes unconditionally and turns the resulting ``IntegrityError`` into a
conflict, so concurrent registrations can never both succeed.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from auth.directory import InsertResult
from auth.errors import DirectoryUnavailable
from auth.models import UserRecord, normalize_email
from database.models import Base, User
from database.session import build_session_factory

logger = logging.getLogger(__name__)


def _to_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.user_id,
        name=row.display_name,
        email=row.email,
        password_digest=row.password_hash,
        created_at=row.created_at,
    )


class SqlUserDirectory:
    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self._engine = engine
        self._session_factory = session_factory or build_session_factory(engine)

    async def create_schema(self) -> None:
        """Create the ``users`` table if it does not exist yet."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (DBAPIError, OSError) as exc:
            raise DirectoryUnavailable(f"schema setup failed: {exc}") from exc

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def _fetch_one(self, stmt) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except (DBAPIError, OSError) as exc:
            raise DirectoryUnavailable(f"lookup failed: {exc}") from exc
        return _to_record(row) if row is not None else None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._fetch_one(
            select(User).where(User.email == normalize_email(email))
        )

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        return await self._fetch_one(select(User).where(User.user_id == user_id))

    async def insert(self, record: UserRecord) -> InsertResult:
        row = User(
            user_id=record.id,
            email=normalize_email(record.email),
            display_name=record.name,
            password_hash=record.password_digest,
            created_at=record.created_at,
        )
        try:
            async with self._session_factory() as session:
                try:
                    session.add(row)
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    return InsertResult.CONFLICT
        except (DBAPIError, OSError) as exc:
            raise DirectoryUnavailable(f"insert failed: {exc}") from exc
        return InsertResult.OK
