"""Reminder and timezone commands."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aiogram import Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from unnamedbot.config import settings
from unnamedbot.db.repositories.reminder_repo import ReminderRepo
from unnamedbot.db.repositories.user_repo import UserRepo
from unnamedbot.models.reminder import Reminder
from unnamedbot.services.reminder import format_duration, parse_duration
from unnamedbot.utils.errors import ContextError
from unnamedbot.utils.text import guild_id_of, pop_quoted, truncate, unquote

logger = logging.getLogger(__name__)

reminders_router = Router(name="reminders")

_P = settings.COMMAND_PREFIX

REMIND_USAGE = f"Usage: {_P}remind <30m|2h|7d|1d12h> <text>"
TIME_FORMAT = "%Y-%m-%d %H:%M %Z"


def _local(dt: datetime, tz: ZoneInfo | None) -> str:
    return dt.astimezone(tz or timezone.utc).strftime(TIME_FORMAT)


# ── /remind ───────────────────────────────────────────────────────────


@reminders_router.message(Command("remind", prefix=_P), flags={"command": "remind"})
async def cmd_remind(message: Message, command: CommandObject, session: AsyncSession) -> None:
    """Schedule a reminder in this group. Usage: /remind 2h stretch"""
    if guild_id_of(message) is None or message.from_user is None:
        raise ContextError()

    duration_arg, text = pop_quoted(command.args or "")
    delta = parse_duration(duration_arg)
    text = unquote(text)
    if delta is None or not text:
        await message.reply(REMIND_USAGE, parse_mode=None)
        return

    user = await UserRepo(session).get_or_create(message.from_user.id)
    due = datetime.now(timezone.utc) + delta
    reminder = Reminder.from_message(message, due, text)
    await ReminderRepo(session).create(reminder)

    logger.info(
        "Reminder %s scheduled for user %d in chat %d at %s",
        reminder.reminder_id,
        reminder.user_id,
        reminder.guild_id,
        due.isoformat(),
    )
    await message.reply(
        f"⏰ I'll remind you in <b>{format_duration(delta)}</b> ({_local(due, user.tz)})."
    )


# ── /reminders ────────────────────────────────────────────────────────


@reminders_router.message(Command("reminders", prefix=_P), flags={"command": "reminders"})
async def cmd_reminders(message: Message, session: AsyncSession) -> None:
    """List the invoker's pending reminders in this group."""
    guild_id = guild_id_of(message)
    if guild_id is None or message.from_user is None:
        raise ContextError()

    user = await UserRepo(session).get_or_create(message.from_user.id)
    pending = await ReminderRepo(session).pending_for(user.user_id, guild_id)
    if not pending:
        await message.reply("You have no pending reminders here.")
        return

    lines = [f"⏰ <b>Pending reminders</b> ({len(pending)})\n"]
    for r in pending:
        lines.append(f"• {_local(r.reminder_time, user.tz)} – {html.quote(truncate(r.reminder_text, 80))}")
    await message.reply("\n".join(lines))


# ── /timezone ─────────────────────────────────────────────────────────


@reminders_router.message(Command("timezone", prefix=_P), flags={"command": "timezone"})
async def cmd_timezone(message: Message, command: CommandObject, session: AsyncSession) -> None:
    """Show, set or clear the invoker's timezone. Usage: /timezone Europe/Berlin"""
    if message.from_user is None:
        return

    user_id = message.from_user.id
    repo = UserRepo(session)
    arg = (command.args or "").strip()

    if not arg:
        user = await repo.get_or_create(user_id)
        if user.tz is None:
            await message.reply(
                f"Your timezone is not set (times are shown in UTC).\n"
                f"Usage: {_P}timezone Europe/Berlin",
                parse_mode=None,
            )
        else:
            await message.reply(f"Your timezone is {user.timezone}.", parse_mode=None)
        return

    if arg.lower() == "clear":
        await repo.set_timezone(user_id, None)
        await message.reply("Timezone cleared.", parse_mode=None)
        return

    try:
        ZoneInfo(arg)
    except (ZoneInfoNotFoundError, ValueError):
        await message.reply(f"Unknown timezone: {arg}", parse_mode=None)
        return

    await repo.set_timezone(user_id, arg)
    logger.info("User %d set timezone to %s", user_id, arg)
    await message.reply(f"Timezone set to {arg}.", parse_mode=None)
