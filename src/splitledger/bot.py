from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from splitledger.config import get_settings
from splitledger.db.repo import Database, LedgerRepository, set_global_repository
from splitledger.handlers import basic_router, expenses_router, ledger_router, payments_router
from splitledger.logging import configure_logging, get_logger
from splitledger.scheduler import setup_scheduler


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    db = Database(settings.database_url)
    await db.connect()
    repo = LedgerRepository(db)

    dp.include_router(basic_router)
    dp.include_router(ledger_router)
    dp.include_router(expenses_router)
    dp.include_router(payments_router)

    set_global_repository(repo)
    await repo.initialize_default_users()

    scheduler = await setup_scheduler(repo)

    log = get_logger(__name__)
    log.info("bot.start")
    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown(wait=False)
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
