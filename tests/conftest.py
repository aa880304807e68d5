"""Shared fixtures for unnamedbot tests."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Ensure BOT_TOKEN is set before any bot module triggers Settings validation
os.environ.setdefault("BOT_TOKEN", "0:TEST_TOKEN")

import pytest


@pytest.fixture
def fake_redis():
    """In-memory mock that behaves like redis.asyncio.Redis for the subset we use."""

    store: dict[str, str] = {}

    redis = AsyncMock()

    async def _set(key, value, ex=None, nx=False):
        if nx and key in store:
            return None  # Key already exists
        store[key] = value
        return True

    async def _get(key):
        return store.get(key)

    async def _incr(key, amount=1):
        store[key] = str(int(store.get(key, 0)) + amount)
        return int(store[key])

    redis.set = AsyncMock(side_effect=_set)
    redis.get = AsyncMock(side_effect=_get)
    redis.incr = AsyncMock(side_effect=_incr)
    redis.ping = AsyncMock(return_value=True)

    redis._store = store  # Expose for assertions
    return redis


@pytest.fixture
def make_message():
    """Factory to create a mock aiogram Message with desired attributes."""

    def _make(
        message_id: int = 1,
        chat_id: int = -100200,
        chat_type: str = "supergroup",
        text: str | None = None,
        from_user_id: int | None = 999,
        username: str = "someone",
        message_thread_id: int | None = None,
    ):
        msg = MagicMock()
        msg.message_id = message_id
        msg.chat = MagicMock()
        msg.chat.id = chat_id
        msg.chat.type = chat_type
        msg.text = text
        msg.date = datetime(2026, 1, 1, tzinfo=timezone.utc)
        msg.message_thread_id = message_thread_id
        if from_user_id is None:
            msg.from_user = None
        else:
            msg.from_user = MagicMock()
            msg.from_user.id = from_user_id
            msg.from_user.username = username
            msg.from_user.is_bot = False
        msg.reply = AsyncMock()
        msg.answer = AsyncMock()
        return msg

    return _make


@pytest.fixture
def make_session():
    """Factory for a mock AsyncSession whose execute() returns *results* in order."""

    def _make(*results):
        session = AsyncMock()
        session.add = MagicMock()
        if results:
            session.execute = AsyncMock(side_effect=list(results))
        return session

    return _make


@pytest.fixture
def make_alias():
    """Factory for a stored Alias (alias_id assigned)."""

    def _make(
        alias_id: int | None = 1,
        user_id: int = 1,
        guild_id: int = -100200,
        command_name: str = "greet",
        command_text: str = "hello there",
    ):
        from unnamedbot.models.alias import Alias

        alias = Alias.new(user_id, guild_id, command_name, command_text)
        alias.alias_id = alias_id
        return alias

    return _make
