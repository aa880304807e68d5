"""User model – bot-known accounts and their optional timezone."""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from unnamedbot.db.base import Base


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    @property
    def tz(self) -> ZoneInfo | None:
        """Parsed timezone, or None when unset or no longer a known zone."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return None

    def __repr__(self) -> str:
        return f"<User {self.user_id} tz={self.timezone!r}>"
