"""Alias commands – ``alias add`` and ``alias remove``."""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from aiogram import Bot, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.config import settings
from unnamedbot.db.repositories.alias_repo import AliasRepo
from unnamedbot.db.repositories.user_repo import UserRepo
from unnamedbot.models.alias import Alias
from unnamedbot.services.alias import invalidate_alias_cache
from unnamedbot.services.permissions import can_delete_alias
from unnamedbot.utils.errors import (
    AliasNotFoundError,
    ContextError,
    DuplicateAliasError,
    PersistenceError,
)
from unnamedbot.utils.text import guild_id_of, pop_quoted, unquote

logger = logging.getLogger(__name__)

alias_router = Router(name="alias")

_P = settings.COMMAND_PREFIX

USAGE = (
    f"Usage:\n"
    f"{_P}alias add <name> <text>\n"
    f"{_P}alias remove <name>"
)

ADDED = "Successfully added alias"
ADD_FAILED = "Failed to add alias"
DELETED = "Successfully deleted alias"
NOT_FOUND = "Could not find alias"
NOT_AUTHORISED = "You are not the owner of this alias or an administrator"


@alias_router.message(Command("alias", prefix=_P), flags={"command": "alias"})
async def cmd_alias(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    redis: aioredis.Redis,
) -> None:
    """Dispatch ``alias add`` / ``alias remove``."""
    sub, rest = pop_quoted(command.args or "")
    sub = sub.lower()

    if sub == "add":
        await alias_add(message, rest, session, redis)
    elif sub == "remove":
        await alias_remove(message, rest, bot, session, redis)
    else:
        await message.reply(USAGE, parse_mode=None)


async def alias_add(
    message: Message,
    args: str,
    session: AsyncSession,
    redis: aioredis.Redis,
) -> None:
    guild_id = guild_id_of(message)
    if guild_id is None or message.from_user is None:
        raise ContextError()

    command_name, command_text = pop_quoted(args)
    command_text = unquote(command_text)
    if not command_name or not command_text:
        await message.reply(USAGE, parse_mode=None)
        return

    user = await UserRepo(session).get_or_create(message.from_user.id)
    alias = Alias.new(user.user_id, guild_id, command_name, command_text)

    try:
        await AliasRepo(session).create(alias)
    except DuplicateAliasError as e:
        await message.reply(str(e), parse_mode=None)
        return
    except PersistenceError:
        logger.exception(
            "Failed to add alias %r in chat %d for user %d",
            command_name,
            guild_id,
            user.user_id,
        )
        await message.reply(ADD_FAILED, parse_mode=None)
        return

    await _invalidate_cache(redis, guild_id)
    logger.info("Alias %r added in chat %d by user %d", command_name, guild_id, user.user_id)
    await message.reply(ADDED, parse_mode=None)


async def alias_remove(
    message: Message,
    args: str,
    bot: Bot,
    session: AsyncSession,
    redis: aioredis.Redis,
) -> None:
    guild_id = guild_id_of(message)
    if guild_id is None or message.from_user is None:
        raise ContextError("Must be used in the group where the alias was added")

    command_name, extra = pop_quoted(args)
    if not command_name:
        await message.reply(USAGE, parse_mode=None)
        return
    if extra:
        logger.debug("Ignoring extra text in alias remove: %s", extra)

    repo = AliasRepo(session)
    alias = await repo.search(guild_id, command_name)
    if alias is None:
        await message.reply(NOT_FOUND, parse_mode=None)
        return

    actor_id = message.from_user.id
    if not await can_delete_alias(bot, actor_id, alias, guild_id):
        await message.reply(NOT_AUTHORISED, parse_mode=None)
        return

    try:
        await repo.delete(alias)
    except AliasNotFoundError:
        await _invalidate_cache(redis, guild_id)
        await message.reply(NOT_FOUND, parse_mode=None)
        return

    await _invalidate_cache(redis, guild_id)

    logger.info("Alias %r removed from chat %d by user %d", alias.command_name, guild_id, actor_id)
    await message.reply(DELETED, parse_mode=None)


async def _invalidate_cache(redis: aioredis.Redis, guild_id: int) -> None:
    # the database write already happened, so its reply still stands
    try:
        await invalidate_alias_cache(redis, guild_id)
    except RedisError as e:
        logger.error("Failed to invalidate alias cache for chat %d: %s", guild_id, e)
