"""Tests for alias deletion authorization (owner, group admin, fail-closed)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest

from unnamedbot.services.permissions import can_delete_alias, is_group_admin

GUILD_A = -1001
GUILD_B = -1002


def _bot(status=None, error=None):
    bot = MagicMock()
    if error is not None:
        bot.get_chat_member = AsyncMock(side_effect=error)
    else:
        member = MagicMock()
        member.status = status
        bot.get_chat_member = AsyncMock(return_value=member)
    return bot


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["administrator", "creator"])
async def test_is_group_admin_true_for_admin_statuses(status):
    assert await is_group_admin(_bot(status), GUILD_A, 5) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["member", "restricted", "left", "kicked"])
async def test_is_group_admin_false_for_others(status):
    assert await is_group_admin(_bot(status), GUILD_A, 5) is False


@pytest.mark.asyncio
async def test_is_group_admin_fails_closed_on_api_error():
    bot = _bot(error=TelegramBadRequest(method=MagicMock(), message="user not found"))
    assert await is_group_admin(bot, GUILD_A, 5) is False


@pytest.mark.asyncio
async def test_is_group_admin_fails_closed_on_unexpected_error():
    bot = _bot(error=RuntimeError("boom"))
    assert await is_group_admin(bot, GUILD_A, 5) is False


@pytest.mark.asyncio
async def test_owner_can_always_delete(make_alias):
    bot = _bot(error=RuntimeError("should not be asked"))
    alias = make_alias(user_id=1, guild_id=GUILD_A)

    assert await can_delete_alias(bot, 1, alias, GUILD_A) is True
    bot.get_chat_member.assert_not_called()


@pytest.mark.asyncio
async def test_admin_can_delete_other_users_alias(make_alias):
    bot = _bot("administrator")
    alias = make_alias(user_id=1, guild_id=GUILD_A)

    assert await can_delete_alias(bot, 2, alias, GUILD_A) is True
    bot.get_chat_member.assert_awaited_once_with(GUILD_A, 2)


@pytest.mark.asyncio
async def test_non_owner_non_admin_denied(make_alias):
    alias = make_alias(user_id=1, guild_id=GUILD_A)
    assert await can_delete_alias(_bot("member"), 2, alias, GUILD_A) is False


@pytest.mark.asyncio
async def test_permission_lookup_failure_denies_non_owner(make_alias):
    alias = make_alias(user_id=1, guild_id=GUILD_A)
    bot = _bot(error=TelegramBadRequest(method=MagicMock(), message="chat not found"))
    assert await can_delete_alias(bot, 2, alias, GUILD_A) is False


@pytest.mark.asyncio
async def test_cross_guild_delete_denied_for_admin(make_alias):
    alias = make_alias(user_id=1, guild_id=GUILD_A)
    bot = _bot("creator")

    assert await can_delete_alias(bot, 2, alias, GUILD_B) is False
    bot.get_chat_member.assert_not_called()


@pytest.mark.asyncio
async def test_cross_guild_delete_denied_for_owner(make_alias):
    alias = make_alias(user_id=1, guild_id=GUILD_A)
    assert await can_delete_alias(_bot("creator"), 1, alias, GUILD_B) is False
