"""Alias repository – create, scoped lookup and delete for the aliases table."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.models.alias import Alias
from unnamedbot.utils.errors import (
    AliasNotFoundError,
    DuplicateAliasError,
    InvalidStateError,
    PersistenceError,
)
from unnamedbot.utils.text import compatibility_case_fold

_UNIQUE_NAME_CONSTRAINT = "uq_aliases_guild_key"


class AliasRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def create(self, alias: Alias) -> Alias:
        """Persist a new alias and return it with ``alias_id`` assigned.

        Raises DuplicateAliasError if the group already has an alias whose
        name folds to the same key.
        """
        alias.command_key = compatibility_case_fold(alias.command_name)
        self._s.add(alias)
        try:
            await self._s.commit()
        except IntegrityError as e:
            await self._s.rollback()
            if _UNIQUE_NAME_CONSTRAINT in str(e.orig):
                raise DuplicateAliasError(alias.command_name) from e
            raise PersistenceError("Failed to add alias") from e
        except SQLAlchemyError as e:
            await self._s.rollback()
            raise PersistenceError("Failed to add alias") from e
        return alias

    async def search(self, guild_id: int, raw_name: str) -> Alias | None:
        """Return the alias in *guild_id* whose name folds like *raw_name*."""
        key = compatibility_case_fold(raw_name)
        try:
            result = await self._s.execute(
                select(Alias)
                .where(Alias.guild_id == guild_id, Alias.command_key == key)
                .order_by(Alias.alias_id)
                .limit(1)
            )
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to look up alias") from e
        return result.scalars().first()

    async def delete(self, alias: Alias) -> None:
        """Delete *alias* by identity.

        Raises InvalidStateError for an alias that was never stored and
        AliasNotFoundError if the row is already gone.
        """
        if alias.alias_id is None:
            raise InvalidStateError(f"Cannot delete unsaved alias {alias.command_name!r}")
        try:
            result = await self._s.execute(
                delete(Alias).where(Alias.alias_id == alias.alias_id)
            )
            await self._s.commit()
        except SQLAlchemyError as e:
            await self._s.rollback()
            raise PersistenceError("Failed to delete alias") from e
        if (result.rowcount or 0) == 0:
            raise AliasNotFoundError()
