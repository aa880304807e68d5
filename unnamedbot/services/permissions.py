"""Authorization checks for mutating aliases."""

from __future__ import annotations

import logging

from aiogram import Bot
from aiogram.enums import ChatMemberStatus

from unnamedbot.models.alias import Alias

logger = logging.getLogger(__name__)

_ADMIN_STATUSES = (ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.CREATOR)


async def is_group_admin(bot: Bot, guild_id: int, user_id: int) -> bool:
    """Return True if *user_id* administers the group *guild_id*.

    Any failure to look the member up counts as "not an admin".
    """
    try:
        member = await bot.get_chat_member(guild_id, user_id)
    except Exception as e:
        logger.warning(
            "Admin check failed for user %d in chat %d: %s", user_id, guild_id, e
        )
        return False
    return getattr(member, "status", None) in _ADMIN_STATUSES


async def can_delete_alias(bot: Bot, actor_id: int, alias: Alias, guild_id: int) -> bool:
    """Owner or group admin, and only from the group the alias lives in."""
    if alias.guild_id != guild_id:
        return False
    if alias.user_id == actor_id:
        return True
    return await is_group_admin(bot, alias.guild_id, actor_id)
