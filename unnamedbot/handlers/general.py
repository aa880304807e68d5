"""General commands – ping and help."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from unnamedbot.config import settings

general_router = Router(name="general")

_P = settings.COMMAND_PREFIX

HELP_TEXT = (
    "<b>Commands</b>\n"
    f"{_P}ping – check the bot is alive\n"
    f"{_P}alias add &lt;name&gt; &lt;text&gt; – reply with text when someone types {_P}name\n"
    f"{_P}alias remove &lt;name&gt; – delete an alias (owner or group admin)\n"
    f"{_P}remind &lt;30m|2h|1d12h&gt; &lt;text&gt; – get pinged later\n"
    f"{_P}reminders – list your pending reminders here\n"
    f"{_P}timezone [Area/City|clear] – show or set your timezone"
)


@general_router.message(Command("ping", prefix=_P), flags={"command": "ping"})
async def cmd_ping(message: Message) -> None:
    await message.reply("🏓")


@general_router.message(Command("start", "help", prefix=_P), flags={"command": "help"})
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)
