"""Telegram bot handlers for file sequencing.

Users open a sequence with /ssequence, send documents, videos or audio files,
and get them back sorted with /esequence. Updates are processed concurrently,
so one user's delivery never holds up anyone else.
"""

import asyncio
import logging
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from seqbot.config import Settings, settings as default_settings
from seqbot.errors import (
    CapacityExceeded,
    EmptySession,
    NoActiveSession,
    SequencerError,
    SessionAlreadyActive,
    SessionBusy,
    StatisticsUpdateFailure,
    UnsupportedKind,
)
from seqbot.models.items import MediaKind
from seqbot.scheduler.reaper import IdleReaper
from seqbot.sessions.manager import SessionManager
from seqbot.stats.store import UserStatsStore
from seqbot.telegram import messages
from seqbot.telegram.transport import TelegramTransport

logger = logging.getLogger(__name__)

LIGHT_ACK_REACTION = "👍"


def _media_of(message: Message) -> tuple[Optional[str], Optional[object]]:
    """Return the media kind and attachment of a message, if supported."""
    for kind in MediaKind:
        media = getattr(message, kind.value, None)
        if media is not None:
            return kind.value, media
    return None, None


class SequencerTelegramBot:
    """Telegram front end for the session manager."""

    def __init__(
        self,
        manager: SessionManager,
        stats: Optional[UserStatsStore] = None,
        reaper: Optional[IdleReaper] = None,
        settings: Settings = default_settings,
    ):
        self.manager = manager
        self.stats = stats
        self.reaper = reaper
        self.settings = settings
        self.application: Optional[Application] = None

    def _error_text(self, error: SequencerError) -> str:
        if isinstance(error, SessionAlreadyActive):
            return messages.already_active(error.item_count)
        if isinstance(error, CapacityExceeded):
            return messages.capacity_exceeded(error.max_items)
        if isinstance(error, UnsupportedKind):
            return messages.UNSUPPORTED_KIND
        if isinstance(error, EmptySession):
            return messages.EMPTY_SESSION
        if isinstance(error, SessionBusy):
            return messages.SESSION_BUSY
        if isinstance(error, NoActiveSession):
            return messages.NO_SESSION
        return messages.GENERIC_ERROR

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start: greet the user and record their profile."""
        user = update.effective_user

        if self.stats is not None:
            try:
                await self.stats.upsert_user(user.id, user.username, user.first_name)
            except StatisticsUpdateFailure as e:
                logger.error(f"Error updating user info for {user.id}: {e}")

        keyboard = InlineKeyboardMarkup(
            [[InlineKeyboardButton("Updates!", url=self.settings.updates_url)]]
        )
        await update.message.reply_text(
            messages.welcome(user.first_name, self.settings.owner_handle),
            reply_markup=keyboard,
        )
        logger.info(f"User {user.id} started the bot")

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /help command."""
        await update.message.reply_text(
            messages.help_text(
                self.settings.owner_handle, self.settings.max_items_per_session
            ),
            parse_mode="Markdown",
        )

    async def ssequence_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /ssequence: open a new session."""
        user_id = update.effective_user.id
        try:
            await self.manager.start(user_id)
        except SequencerError as e:
            await update.message.reply_text(self._error_text(e))
            return
        await update.message.reply_text(messages.SEQUENCE_STARTED)

    async def handle_file(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle an incoming attachment: add it to the user's session."""
        message = update.message
        user_id = update.effective_user.id
        kind, media = _media_of(message)

        try:
            receipt = await self.manager.ingest(
                user_id,
                kind,
                getattr(media, "file_id", ""),
                file_unique_id=getattr(media, "file_unique_id", None),
                file_name=getattr(media, "file_name", None),
                file_size=getattr(media, "file_size", None),
                caption=message.caption,
            )
        except SequencerError as e:
            await message.reply_text(self._error_text(e))
            return

        if receipt.announce:
            await message.reply_text(messages.file_received(receipt.item_count))
            return
        try:
            await message.set_reaction(LIGHT_ACK_REACTION)
        except TelegramError as e:
            logger.debug(f"Could not react to message from {user_id}: {e}")

    async def esequence_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /esequence: sort and send back the collected files."""
        user_id = update.effective_user.id
        try:
            current = await self.manager.status(user_id)
        except SequencerError as e:
            await update.message.reply_text(self._error_text(e))
            return
        if current.item_count and not current.delivering:
            await update.message.reply_text(messages.delivery_starting(current.item_count))

        transport = TelegramTransport(context.bot, update.effective_chat.id)
        try:
            report = await self.manager.close(user_id, transport)
        except SequencerError as e:
            await update.message.reply_text(self._error_text(e))
            return

        await update.message.reply_text(messages.delivery_summary(report))
        logger.info(
            f"Delivered {report.succeeded}/{report.total} files to user {user_id}"
        )

    async def cancel_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /cancel: discard the user's session."""
        user_id = update.effective_user.id
        try:
            discarded = await self.manager.cancel(user_id)
        except NoActiveSession:
            await update.message.reply_text(messages.NO_SESSION_TO_CANCEL)
            return
        except SequencerError as e:
            await update.message.reply_text(self._error_text(e))
            return
        await update.message.reply_text(messages.cancelled(discarded))

    async def status_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /status: report the current session."""
        try:
            current = await self.manager.status(update.effective_user.id)
        except SequencerError as e:
            await update.message.reply_text(self._error_text(e))
            return
        await update.message.reply_text(
            messages.status(current.item_count, current.elapsed, current.delivering)
        )

    async def stats_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /stats: show aggregate bot statistics."""
        if self.stats is None:
            await update.message.reply_text(messages.STATS_UNAVAILABLE)
            return
        try:
            aggregate = await self.stats.read_aggregate()
        except StatisticsUpdateFailure as e:
            logger.error(f"Error fetching stats: {e}")
            await update.message.reply_text(messages.STATS_UNAVAILABLE)
            return
        await update.message.reply_text(messages.aggregate_stats(aggregate))

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log unexpected handler errors and apologise to the user."""
        logger.error("Error while handling update", exc_info=context.error)
        if isinstance(update, Update) and update.effective_message:
            try:
                await update.effective_message.reply_text(messages.GENERIC_ERROR)
            except TelegramError as e:
                logger.warning(f"Could not send error reply: {e}")

    def register_handlers(self, application: Application) -> None:
        application.add_handler(CommandHandler("start", self.start_command))
        application.add_handler(CommandHandler("help", self.help_command))
        application.add_handler(CommandHandler("ssequence", self.ssequence_command))
        application.add_handler(CommandHandler("esequence", self.esequence_command))
        application.add_handler(CommandHandler("cancel", self.cancel_command))
        application.add_handler(CommandHandler("status", self.status_command))
        application.add_handler(CommandHandler("stats", self.stats_command))
        application.add_handler(
            MessageHandler(filters.ATTACHMENT & ~filters.COMMAND, self.handle_file)
        )
        application.add_error_handler(self.error_handler)

    async def start_polling(self) -> None:
        """Start the bot with polling."""
        if not self.settings.telegram_bot_token:
            logger.error("TELEGRAM_BOT_TOKEN not configured!")
            raise ValueError("TELEGRAM_BOT_TOKEN is required for Telegram bot")

        logger.info("Starting Telegram bot with polling...")

        self.application = (
            ApplicationBuilder()
            .token(self.settings.telegram_bot_token)
            .concurrent_updates(True)
            .build()
        )
        self.register_handlers(self.application)

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(drop_pending_updates=True)

        if self.reaper is not None:
            self.reaper.start()

        logger.info("✅ Telegram bot is running and polling for messages!")

        try:
            while True:
                await asyncio.sleep(1)
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the bot gracefully."""
        if self.reaper is not None:
            self.reaper.shutdown()
        if self.application:
            logger.info("Stopping Telegram bot...")
            await self.application.updater.stop()
            await self.application.stop()
            await self.application.shutdown()
            self.application = None
            logger.info("Telegram bot stopped.")
