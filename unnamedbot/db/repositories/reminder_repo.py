"""Reminder repository – CRUD for the reminders table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.models.reminder import Reminder


class ReminderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def create(self, reminder: Reminder) -> Reminder:
        self._s.add(reminder)
        await self._s.commit()
        await self._s.refresh(reminder)
        return reminder

    async def due(self, now: datetime, limit: int = 100) -> list[Reminder]:
        """Untriggered reminders whose time has come, oldest first."""
        result = await self._s.execute(
            select(Reminder)
            .where(
                Reminder.triggered == False,  # noqa: E712
                Reminder.reminder_time <= now,
            )
            .order_by(Reminder.reminder_time.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def pending_for(self, user_id: int, guild_id: int) -> list[Reminder]:
        result = await self._s.execute(
            select(Reminder)
            .where(
                Reminder.user_id == user_id,
                Reminder.guild_id == guild_id,
                Reminder.triggered == False,  # noqa: E712
            )
            .order_by(Reminder.reminder_time.asc())
        )
        return list(result.scalars().all())

    async def mark_triggered(self, reminder_id: int) -> bool:
        """Flag a reminder as delivered. Returns True if a row was updated."""
        result = await self._s.execute(
            update(Reminder)
            .where(Reminder.reminder_id == reminder_id)
            .values(triggered=True)
        )
        await self._s.commit()
        return (result.rowcount or 0) > 0
