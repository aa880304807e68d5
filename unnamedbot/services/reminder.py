"""Reminder service – duration parsing, delivery and the background poller."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone

from aiogram import Bot, html

from unnamedbot.config import settings
from unnamedbot.db.engine import async_session
from unnamedbot.db.repositories.reminder_repo import ReminderRepo
from unnamedbot.models.reminder import Reminder
from unnamedbot.utils.errors import ReminderDeliveryError

logger = logging.getLogger(__name__)

# Pattern for duration strings like "30m", "2h", "7d", "1d12h", "24h30m"
_DURATION_RE = re.compile(
    r"(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?$", re.IGNORECASE
)


def parse_duration(text: str) -> timedelta | None:
    """Parse a human-friendly duration string.

    Supported formats: ``30m``, ``2h``, ``7d``, ``1d12h``, ``24h30m``, ``1d6h30m``.
    Returns ``None`` on invalid input.
    """
    text = text.strip().lower()
    if not text:
        return None

    match = _DURATION_RE.match(text)
    if match is None:
        return None

    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)

    if days == 0 and hours == 0 and minutes == 0:
        return None

    return timedelta(days=days, hours=hours, minutes=minutes)


def format_duration(td: timedelta) -> str:
    """Format a timedelta into a human-readable string like '2d 6h 30m'."""
    total_seconds = int(td.total_seconds())
    if total_seconds <= 0:
        return "0m"

    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts: list[str] = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")

    return " ".join(parts) if parts else "0m"


async def trigger(reminder: Reminder, bot: Bot, now: datetime | None = None) -> bool:
    """Post *reminder* if it is due.

    Returns False without sending when it is too early, True once sent.
    Raises ReminderDeliveryError when the member or chat can't be reached.
    """
    now = now or datetime.now(timezone.utc)
    if now < reminder.reminder_time:
        logger.debug(
            "Too early for reminder %s (now: %s, reminder time: %s)",
            reminder.reminder_id,
            now,
            reminder.reminder_time,
        )
        return False

    try:
        member = await bot.get_chat_member(reminder.guild_id, reminder.user_id)
    except Exception as e:
        raise ReminderDeliveryError(
            f"Could not find member {reminder.user_id} in chat {reminder.guild_id} "
            f"for reminder {reminder.reminder_id}"
        ) from e

    content = f"Reminding {member.user.mention_html()}: {html.quote(reminder.reminder_text)}"
    try:
        await bot.send_message(
            reminder.channel_id,
            content,
            message_thread_id=reminder.thread_id,
        )
    except Exception as e:
        raise ReminderDeliveryError(
            f"Failed to send reminder {reminder.reminder_id} to chat {reminder.channel_id}"
        ) from e
    return True


class ReminderTask:
    """Periodic background task that posts due reminders."""

    def __init__(self, bot: Bot, interval: int | None = None) -> None:
        self._bot = bot
        self._interval = interval or settings.REMINDER_POLL_INTERVAL
        self._task: asyncio.Task | None = None
        self._running = False

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="reminders")
        logger.info("Reminder task started.")

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Reminder task stopped.")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Reminder poll error: %s", e)
            await asyncio.sleep(self._interval)

    async def run_once(self, now: datetime | None = None) -> int:
        """Deliver every due reminder. Returns how many were sent."""
        now = now or datetime.now(timezone.utc)
        async with async_session() as session:
            repo = ReminderRepo(session)
            reminders = await repo.due(now)

            sent = 0
            for reminder in reminders:
                try:
                    delivered = await trigger(reminder, self._bot, now)
                except ReminderDeliveryError as e:
                    logger.error("%s: %s", e, e.__cause__)
                    continue
                if delivered:
                    await repo.mark_triggered(reminder.reminder_id)
                    sent += 1
                    logger.info(
                        "Sent reminder %d to chat %d", reminder.reminder_id, reminder.channel_id
                    )
        return sent
