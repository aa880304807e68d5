"""Fallback router – answers unrecognised commands with a matching alias.

Must be included last so registered commands always win.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from aiogram import Bot, F, Router
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.config import settings
from unnamedbot.services.alias import resolve_alias
from unnamedbot.utils.errors import PersistenceError
from unnamedbot.utils.text import guild_id_of, split_command

logger = logging.getLogger(__name__)

fallback_router = Router(name="fallback")


@fallback_router.message(F.text.startswith(settings.COMMAND_PREFIX))
async def on_unrecognised_command(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    redis: aioredis.Redis,
) -> None:
    """Reply with the alias text for an unknown command, if the group has one.

    The text is sent as-is and never re-parsed as a command.  Database
    failures are logged and the command is dropped.
    """
    guild_id = guild_id_of(message)
    if guild_id is None:
        return

    parsed = split_command(message.text, settings.COMMAND_PREFIX)
    if parsed is None:
        return

    if parsed.mention is not None:
        me = await bot.me()
        if (me.username or "").lower() != parsed.mention.lower():
            return  # addressed to another bot

    try:
        text = await resolve_alias(redis, session, guild_id, parsed.name)
    except PersistenceError as e:
        logger.error(
            "Alias lookup for '%s' in chat %d failed: %s", parsed.name, guild_id, e
        )
        return

    if text is None:
        logger.debug("Unrecognised command '%s' in chat %d", parsed.name, guild_id)
        return

    await message.reply(text, parse_mode=None)
