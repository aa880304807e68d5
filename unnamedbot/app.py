"""Application factory – builds the Bot, Dispatcher, registers routers/middleware,
and starts either webhook or polling mode."""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.enums import ParseMode
from aiogram.webhook.aiohttp_server import (
    SimpleRequestHandler,
    setup_application,
)
from aiohttp import web
from sqlalchemy import text

from unnamedbot.config import settings

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message"]


def _create_bot() -> Bot:
    """Construct the Bot instance (optionally pointing to a local API server)."""
    session = None
    if settings.LOCAL_API_URL:
        from aiogram.client.telegram import TelegramAPIServer

        session = AiohttpSession(
            api=TelegramAPIServer.from_base(settings.LOCAL_API_URL)
        )
    return Bot(
        token=settings.BOT_TOKEN,
        session=session,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def _register_routers(dp: Dispatcher) -> None:
    """Import and include all routers."""
    from unnamedbot.handlers.alias import alias_router
    from unnamedbot.handlers.errors import errors_router
    from unnamedbot.handlers.fallback import fallback_router
    from unnamedbot.handlers.general import general_router
    from unnamedbot.handlers.reminders import reminders_router

    dp.include_router(errors_router)
    dp.include_router(general_router)
    dp.include_router(alias_router)
    dp.include_router(reminders_router)
    dp.include_router(fallback_router)  # must be last (catch-all)


def _register_middleware(dp: Dispatcher) -> None:
    """Register all middleware on the dispatcher."""
    from unnamedbot.middleware.db_session_mw import DbSessionMiddleware
    from unnamedbot.middleware.logging_mw import (
        CommandLoggingMiddleware,
        LoggingMiddleware,
    )

    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.outer_middleware(DbSessionMiddleware())
    dp.message.middleware(CommandLoggingMiddleware())


async def _on_startup(bot: Bot, redis: aioredis.Redis, dp: Dispatcher) -> None:
    """Run on startup – create tables if needed, start the reminder poller."""
    from unnamedbot.db.base import Base
    from unnamedbot.db.engine import engine

    # Import models so they register on metadata
    from unnamedbot.models.alias import Alias  # noqa: F401
    from unnamedbot.models.reminder import Reminder  # noqa: F401
    from unnamedbot.models.user import User  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables ensured.")

    from unnamedbot.services.reminder import ReminderTask

    reminder_task = ReminderTask(bot)
    dp["reminder_task"] = reminder_task
    await reminder_task.start()

    bot_info = await bot.me()
    logger.info("Bot @%s (id=%d) started.", bot_info.username, bot_info.id)


async def _on_shutdown(dp: Dispatcher) -> None:
    """Graceful shutdown – stop background tasks, close pools."""
    logger.info("Shutting down…")
    reminder_task = dp.get("reminder_task")
    if reminder_task:
        await reminder_task.stop()

    redis: aioredis.Redis | None = dp.get("redis")
    if redis:
        await redis.aclose()

    from unnamedbot.db.engine import engine

    await engine.dispose()
    logger.info("Shutdown complete.")


async def main() -> None:
    """Entry point."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    bot = _create_bot()
    dp = Dispatcher()
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    dp["redis"] = redis

    _register_middleware(dp)
    _register_routers(dp)

    async def on_startup(*_args: object, **_kwargs: object) -> None:
        await _on_startup(bot, redis, dp)

    async def on_shutdown(*_args: object, **_kwargs: object) -> None:
        await _on_shutdown(dp)

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    if settings.BOT_MODE == "webhook":
        await _run_webhook(bot, dp)
    else:
        await _run_polling(bot, dp)


async def _run_polling(bot: Bot, dp: Dispatcher) -> None:
    """Long-polling mode (development)."""
    logger.info("Starting in POLLING mode.")
    await bot.delete_webhook(drop_pending_updates=True)
    await dp.start_polling(bot, allowed_updates=ALLOWED_UPDATES)


async def _health_handler(request: web.Request) -> web.Response:
    """Health check endpoint for monitoring / container probes."""
    dp: Dispatcher | None = request.app.get("dp")
    info: dict = {"status": "ok"}
    if dp:
        redis_conn = dp.get("redis")
        if redis_conn:
            try:
                await redis_conn.ping()
                info["redis"] = "ok"
            except Exception:
                info["redis"] = "error"

    from unnamedbot.db.engine import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        info["database"] = "ok"
    except Exception:
        info["database"] = "error"
    return web.json_response(info)


async def _run_webhook(bot: Bot, dp: Dispatcher) -> None:
    """Webhook mode (production)."""
    logger.info("Starting in WEBHOOK mode at %s", settings.webhook_url)
    await bot.set_webhook(
        url=settings.webhook_url,
        secret_token=settings.WEBHOOK_SECRET or None,
        allowed_updates=ALLOWED_UPDATES,
        drop_pending_updates=True,
        max_connections=40,
    )
    app = web.Application()

    # Health check endpoint (no auth required)
    app.router.add_get("/health", _health_handler)

    handler = SimpleRequestHandler(dispatcher=dp, bot=bot, secret_token=settings.WEBHOOK_SECRET or None)
    handler.register(app, path=settings.WEBHOOK_PATH)
    setup_application(app, dp, bot=bot)
    app["dp"] = dp  # Make dispatcher accessible to health handler
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host="0.0.0.0", port=settings.WEBHOOK_PORT)
    await site.start()
    logger.info("Webhook server listening on port %d", settings.WEBHOOK_PORT)
    # Keep running until interrupted
    await asyncio.Event().wait()
