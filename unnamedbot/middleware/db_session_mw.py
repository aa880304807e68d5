"""DB session middleware – injects async session into handler context."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from unnamedbot.db.engine import async_session


class DbSessionMiddleware(BaseMiddleware):
    """Inject a fresh DB session into ``data["session"]`` for each update.

    The session is closed, and its pooled connection returned, however the
    handler exits.
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        async with async_session() as session:
            data["session"] = session
            return await handler(event, data)
