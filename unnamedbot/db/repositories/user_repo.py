"""User repository – get-or-create and timezone updates for the users table."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.models.user import User
from unnamedbot.utils.errors import PersistenceError


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def get(self, user_id: int) -> User | None:
        result = await self._s.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> User:
        """Return the user row for *user_id*, inserting a bare one if missing.

        Insert-or-ignore then select, so concurrent first calls for the same
        id never race into a duplicate-key error.
        """
        stmt = (
            pg_insert(User)
            .values(user_id=user_id, timezone=None)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        try:
            await self._s.execute(stmt)
            await self._s.commit()
            result = await self._s.execute(select(User).where(User.user_id == user_id))
            return result.scalar_one()
        except SQLAlchemyError as e:
            await self._s.rollback()
            raise PersistenceError("Failed to load your user record") from e

    async def set_timezone(self, user_id: int, timezone: str | None) -> None:
        """Upsert the user's timezone (None clears it)."""
        stmt = (
            pg_insert(User)
            .values(user_id=user_id, timezone=timezone)
            .on_conflict_do_update(
                index_elements=["user_id"],
                set_={"timezone": timezone},
            )
        )
        try:
            await self._s.execute(stmt)
            await self._s.commit()
        except SQLAlchemyError as e:
            await self._s.rollback()
            raise PersistenceError("Failed to update your timezone") from e
