"""Tests for unrecognised-command alias resolution and its Redis cache."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from unnamedbot.handlers.fallback import on_unrecognised_command
from unnamedbot.services.alias import (
    alias_cache_key,
    alias_generation_key,
    invalidate_alias_cache,
    resolve_alias,
)
from unnamedbot.utils.errors import PersistenceError

G1 = -100111


def _bot(username="UnnamedBot"):
    bot = MagicMock()
    me = MagicMock()
    me.username = username
    bot.me = AsyncMock(return_value=me)
    return bot


@pytest.fixture
def alias_repo():
    with patch("unnamedbot.services.alias.AliasRepo") as repo_cls:
        repo_cls.return_value.search = AsyncMock(return_value=None)
        yield repo_cls.return_value


# ── resolve_alias ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_resolve_alias_caches_hit(fake_redis, alias_repo, make_alias):
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="hello there")

    text = await resolve_alias(fake_redis, AsyncMock(), G1, "greet")

    assert text == "hello there"
    assert fake_redis._store[alias_cache_key(G1, 0, "greet")] == "hello there"


@pytest.mark.asyncio
async def test_resolve_alias_uses_cache(fake_redis, alias_repo):
    fake_redis._store[alias_cache_key(G1, 0, "greet")] = "cached text"

    text = await resolve_alias(fake_redis, AsyncMock(), G1, "GREET")

    assert text == "cached text"
    alias_repo.search.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_alias_miss_is_not_cached(fake_redis, alias_repo):
    assert await resolve_alias(fake_redis, AsyncMock(), G1, "nope") is None
    assert fake_redis._store == {}


def test_cache_key_is_folded_and_scoped():
    assert alias_cache_key(G1, 0, "Ｈｅｌｌｏ") == alias_cache_key(G1, 0, "hello")
    assert alias_cache_key(G1, 0, "hello") != alias_cache_key(-100222, 0, "hello")
    assert alias_cache_key(G1, 0, "hello") != alias_cache_key(G1, 1, "hello")


# ── on_unrecognised_command ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_unrecognised_command_replies_with_alias_text(
    make_message, fake_redis, alias_repo, make_alias
):
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="hello there")
    msg = make_message(chat_id=G1, text="/greet")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    alias_repo.search.assert_awaited_once_with(G1, "greet")
    msg.reply.assert_awaited_once_with("hello there", parse_mode=None)


@pytest.mark.asyncio
async def test_alias_text_is_not_reinterpreted(make_message, fake_redis, alias_repo, make_alias):
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="/alias remove greet")
    msg = make_message(chat_id=G1, text="/greet")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    msg.reply.assert_awaited_once_with("/alias remove greet", parse_mode=None)
    assert alias_repo.search.await_count == 1


@pytest.mark.asyncio
async def test_addressed_to_this_bot(make_message, fake_redis, alias_repo, make_alias):
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="hi")
    msg = make_message(chat_id=G1, text="/greet@unnamedbot extra words")

    await on_unrecognised_command(msg, _bot("UnnamedBot"), AsyncMock(), fake_redis)

    msg.reply.assert_awaited_once_with("hi", parse_mode=None)


@pytest.mark.asyncio
async def test_addressed_to_other_bot_is_ignored(make_message, fake_redis, alias_repo):
    msg = make_message(chat_id=G1, text="/greet@OtherBot")

    await on_unrecognised_command(msg, _bot("UnnamedBot"), AsyncMock(), fake_redis)

    alias_repo.search.assert_not_called()
    msg.reply.assert_not_called()


@pytest.mark.asyncio
async def test_no_guild_does_nothing(make_message, fake_redis, alias_repo):
    msg = make_message(chat_type="private", chat_id=5, text="/greet")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    alias_repo.search.assert_not_called()
    msg.reply.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_alias_is_dropped(make_message, fake_redis, alias_repo):
    msg = make_message(chat_id=G1, text="/nothing")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    msg.reply.assert_not_called()


@pytest.mark.asyncio
async def test_lookup_failure_is_logged_not_replied(make_message, fake_redis, alias_repo, caplog):
    alias_repo.search.side_effect = PersistenceError("Failed to look up alias: timeout")
    msg = make_message(chat_id=G1, text="/greet")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    msg.reply.assert_not_called()
    assert "Alias lookup for 'greet'" in caplog.text


@pytest.mark.asyncio
async def test_cache_read_failure_falls_back_to_database(
    make_message, fake_redis, alias_repo, make_alias, caplog
):
    fake_redis.get.side_effect = RedisConnectionError("redis down")
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="hello there")
    msg = make_message(chat_id=G1, text="/greet")

    await on_unrecognised_command(msg, _bot(), AsyncMock(), fake_redis)

    alias_repo.search.assert_awaited_once_with(G1, "greet")
    msg.reply.assert_awaited_once_with("hello there", parse_mode=None)
    fake_redis.set.assert_not_called()
    assert "Alias cache read failed" in caplog.text


@pytest.mark.asyncio
async def test_cache_write_failure_still_returns_text(fake_redis, alias_repo, make_alias):
    fake_redis.set.side_effect = RedisConnectionError("redis down")
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="hello there")

    assert await resolve_alias(fake_redis, AsyncMock(), G1, "greet") == "hello there"


# ── invalidation ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_invalidation_retires_cached_text(fake_redis, alias_repo, make_alias):
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="old text")
    await resolve_alias(fake_redis, AsyncMock(), G1, "greet")

    await invalidate_alias_cache(fake_redis, G1)
    alias_repo.search.return_value = make_alias(guild_id=G1, command_text="new text")

    assert await resolve_alias(fake_redis, AsyncMock(), G1, "greet") == "new text"
    assert fake_redis._store[alias_generation_key(G1)] == "1"


@pytest.mark.asyncio
async def test_remove_during_lookup_does_not_resurrect_alias(
    fake_redis, alias_repo, make_alias
):
    alias = make_alias(guild_id=G1, command_text="hello there")

    async def search_then_removed(guild_id, command_name):
        # the row is deleted and the cache invalidated after this read
        await invalidate_alias_cache(fake_redis, G1)
        return alias

    alias_repo.search.side_effect = search_then_removed
    assert await resolve_alias(fake_redis, AsyncMock(), G1, "greet") == "hello there"

    alias_repo.search.side_effect = None
    alias_repo.search.return_value = None
    assert await resolve_alias(fake_redis, AsyncMock(), G1, "greet") is None
