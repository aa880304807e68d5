"""Alias model – group-scoped text macros owned by a user."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from unnamedbot.db.base import Base
from unnamedbot.utils.text import compatibility_case_fold


class Alias(Base):
    __tablename__ = "aliases"

    alias_id: Mapped[int | None] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.user_id"), nullable=False
    )
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    command_name: Mapped[str] = mapped_column(Text, nullable=False)
    # compatibility_case_fold(command_name); lookups compare against this
    command_key: Mapped[str] = mapped_column(Text, nullable=False)
    command_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("guild_id", "command_key", name="uq_aliases_guild_key"),
        Index("idx_aliases_user", "user_id"),
    )

    @classmethod
    def new(cls, user_id: int, guild_id: int, command_name: str, command_text: str) -> Alias:
        """Build an unsaved alias; ``alias_id`` stays None until the store assigns it."""
        return cls(
            user_id=user_id,
            guild_id=guild_id,
            command_name=command_name,
            command_key=compatibility_case_fold(command_name),
            command_text=command_text,
        )

    @property
    def is_persisted(self) -> bool:
        return self.alias_id is not None

    def __repr__(self) -> str:
        return (
            f"<Alias id={self.alias_id} guild={self.guild_id} "
            f"user={self.user_id} name={self.command_name!r}>"
        )
