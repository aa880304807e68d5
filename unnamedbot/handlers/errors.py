"""Error router – logs failed commands and tells the invoker."""

from __future__ import annotations

import logging

from aiogram import Router
from aiogram.types import ErrorEvent

from unnamedbot.config import settings
from unnamedbot.utils.errors import BotError
from unnamedbot.utils.text import split_command

logger = logging.getLogger(__name__)

errors_router = Router(name="errors")

GENERIC_ERROR = "Something went wrong while running that command."


@errors_router.errors()
async def on_error(event: ErrorEvent) -> None:
    """Reply with BotError messages verbatim and a generic text for anything else.

    Raw exception text (database errors included) is logged, never sent.
    """
    exc = event.exception
    message = event.update.message

    parsed = split_command(message.text, settings.COMMAND_PREFIX) if message else None
    command_name = parsed.name if parsed else "<none>"
    user_id = message.from_user.id if message and message.from_user else None

    if isinstance(exc, BotError):
        # the underlying driver error, if any, only goes to the log
        logger.warning(
            "Command '%s' (user %s) failed: %s",
            command_name,
            user_id,
            exc,
            exc_info=exc if exc.__cause__ else None,
        )
        reply = str(exc)
    else:
        logger.error(
            "Command '%s' (user %s) returned error %r",
            command_name,
            user_id,
            exc,
            exc_info=exc,
        )
        reply = GENERIC_ERROR

    if message is None:
        return

    try:
        await message.reply(reply, parse_mode=None)
    except Exception as e:
        logger.error("Failed to send error message for command '%s': %s", command_name, e)
