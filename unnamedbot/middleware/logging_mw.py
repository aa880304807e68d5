"""Logging middleware – per-update timing and per-command before/after logs."""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.dispatcher.flags import get_flag
from aiogram.types import Message, TelegramObject, Update

logger = logging.getLogger("unnamedbot.updates")
command_logger = logging.getLogger("unnamedbot.commands")


class LoggingMiddleware(BaseMiddleware):
    """Log each update with timing and basic metadata."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        start = time.perf_counter()

        update: Update | None = data.get("event_update")
        update_type = "unknown"
        chat_id = None

        if isinstance(event, Update):
            update = event

        if update and update.message:
            update_type = "message"
            chat_id = update.message.chat.id

        try:
            result = await handler(event, data)
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                "update=%s chat=%s elapsed=%.1fms",
                update_type,
                chat_id,
                elapsed,
            )
            return result
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.error(
                "update=%s chat=%s elapsed=%.1fms error=%s",
                update_type,
                chat_id,
                elapsed,
                e,
            )
            raise


class CommandLoggingMiddleware(BaseMiddleware):
    """Log before and after every handler flagged with ``command=<name>``.

    Registered as inner middleware on ``dp.message`` so it only sees
    messages that matched a handler.
    """

    async def __call__(
        self,
        handler: Callable[[Message, dict[str, Any]], Awaitable[Any]],
        event: Message,
        data: dict[str, Any],
    ) -> Any:
        command_name = get_flag(data, "command")
        if command_name is None:
            return await handler(event, data)

        author = event.from_user
        command_logger.info(
            "Calling command '%s' (invoked by %s at %s)",
            command_name,
            (author.username or author.full_name) if author else "unknown",
            event.date,
        )
        result = await handler(event, data)
        command_logger.info("Processed command '%s'", command_name)
        return result
