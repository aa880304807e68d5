"""Reminder model – a message to post back to a group at a given time."""

from __future__ import annotations

from datetime import datetime

from aiogram.types import Message
from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from unnamedbot.db.base import Base
from unnamedbot.utils.text import guild_id_of


class Reminder(Base):
    __tablename__ = "reminders"

    reminder_id: Mapped[int | None] = mapped_column(
        BigInteger, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.user_id"), nullable=False
    )
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    thread_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    reminder_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reminder_text: Mapped[str] = mapped_column(Text, nullable=False)
    triggered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_reminders_due", "triggered", "reminder_time"),
    )

    @classmethod
    def from_message(
        cls, message: Message, reminder_time: datetime, reminder_text: str
    ) -> Reminder | None:
        """Build an unsaved reminder for the message's author, or None outside a group."""
        guild_id = guild_id_of(message)
        if guild_id is None or message.from_user is None:
            return None
        return cls(
            user_id=message.from_user.id,
            guild_id=guild_id,
            channel_id=message.chat.id,
            # forum topic the reminder was set in
            thread_id=message.message_thread_id,
            reminder_time=reminder_time,
            reminder_text=reminder_text,
            triggered=False,
        )

    def __repr__(self) -> str:
        return (
            f"<Reminder id={self.reminder_id} user={self.user_id} "
            f"guild={self.guild_id} at={self.reminder_time} triggered={self.triggered}>"
        )
