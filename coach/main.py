import asyncio
import logging
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from coach.config import load_config
from coach.db import DB
from coach.middleware import DBMiddleware
from coach.services.advisor import Advisor
from coach.handlers.start import router as start_router
from coach.handlers.checkin import router as checkin_router
from coach.handlers.misc import router as misc_router
from coach.handlers.training import router as training_router
from coach.handlers.review import router as review_router


async def main():
    cfg = load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db = DB(cfg.db_path)
    advisor = Advisor(cfg.coach_api_key, cfg.coach_model, cfg.coach_timeout)

    bot = Bot(token=cfg.bot_token)
    dp = Dispatcher(storage=MemoryStorage())

    mw = DBMiddleware(db, cfg, advisor)
    dp.message.middleware(mw)
    dp.callback_query.middleware(mw)

    dp.include_router(start_router)
    dp.include_router(misc_router)
    dp.include_router(training_router)
    dp.include_router(review_router)
    dp.include_router(checkin_router)

    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        db.close()


def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
