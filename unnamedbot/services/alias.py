"""Alias service – cached alias resolution for the unrecognised-command path."""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.config import settings
from unnamedbot.db.repositories.alias_repo import AliasRepo
from unnamedbot.utils.text import compatibility_case_fold

logger = logging.getLogger(__name__)


def alias_generation_key(guild_id: int) -> str:
    return f"alias_gen:{guild_id}"


def alias_cache_key(guild_id: int, generation: int, command_name: str) -> str:
    return f"alias:{guild_id}:{generation}:{compatibility_case_fold(command_name)}"


async def _generation(redis: aioredis.Redis, guild_id: int) -> int:
    value = await redis.get(alias_generation_key(guild_id))
    return int(value) if value is not None else 0


async def resolve_alias(
    redis: aioredis.Redis,
    session: AsyncSession,
    guild_id: int,
    command_name: str,
) -> str | None:
    """Return the stored text for *command_name* in *guild_id*, or None.

    Cached in Redis under ``alias:{guild_id}:{generation}:{key}`` with a TTL
    of ``ALIAS_CACHE_TTL``.  The generation is read before the database, so
    a lookup that overlaps an add or remove writes to a key nobody reads
    any more.  Misses are not cached.  Redis errors count as a miss.
    """
    generation: int | None
    try:
        generation = await _generation(redis, guild_id)
        cached = await redis.get(alias_cache_key(guild_id, generation, command_name))
    except RedisError as e:
        logger.warning("Alias cache read failed in chat %d: %s", guild_id, e)
        generation, cached = None, None

    if cached is not None:
        return cached if isinstance(cached, str) else cached.decode()

    alias = await AliasRepo(session).search(guild_id, command_name)
    if alias is None:
        return None

    if generation is not None:
        try:
            await redis.set(
                alias_cache_key(guild_id, generation, command_name),
                alias.command_text,
                ex=settings.ALIAS_CACHE_TTL,
            )
        except RedisError as e:
            logger.warning("Alias cache write failed in chat %d: %s", guild_id, e)
    return alias.command_text


async def invalidate_alias_cache(redis: aioredis.Redis, guild_id: int) -> None:
    """Retire every cached alias in *guild_id* after an add or remove."""
    await redis.incr(alias_generation_key(guild_id))
