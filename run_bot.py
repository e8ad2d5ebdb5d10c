"""Standalone script to run the file sequencer Telegram bot.

Run it alongside (or instead of) the reporting API:
    python run_bot.py
"""

import asyncio
import logging
import sys

from seqbot.config import settings
from seqbot.dependencies import (
    build_reaper,
    close_stats_store,
    get_session_manager,
    get_stats_store,
)
from seqbot.sequencing.ordering import use_system_collation
from seqbot.telegram.bot import SequencerTelegramBot

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler("seqbot.log"),
    ],
)

logger = logging.getLogger(__name__)


async def main():
    """Run the Telegram bot and the idle session reaper."""
    logger.info("=" * 50)
    logger.info("Starting File Sequencer Bot...")
    logger.info("=" * 50)

    use_system_collation()

    try:
        stats = get_stats_store()
        await stats.ensure_indexes()
        logger.info("Statistics store initialized successfully")

        bot = SequencerTelegramBot(
            manager=get_session_manager(),
            stats=stats,
            reaper=build_reaper(),
            settings=settings,
        )
        await bot.start_polling()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        close_stats_store()
        logger.info("Bot shut down cleanly")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal. Shutting down...")
