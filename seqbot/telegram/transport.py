"""Telegram transport used by the delivery engine."""

from __future__ import annotations

import logging
from datetime import timedelta

from telegram import Bot
from telegram.error import RetryAfter, TelegramError

from seqbot.errors import TransportDeliveryFailure
from seqbot.models.items import Item, MediaKind

logger = logging.getLogger(__name__)


def _retry_after_seconds(error: RetryAfter) -> float:
    value = error.retry_after
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class TelegramTransport:
    """Send items and progress messages to one chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def send_item(self, item: Item) -> None:
        caption = item.caption or None
        try:
            if item.kind is MediaKind.DOCUMENT:
                await self.bot.send_document(
                    chat_id=self.chat_id, document=item.file_id, caption=caption
                )
            elif item.kind is MediaKind.VIDEO:
                await self.bot.send_video(
                    chat_id=self.chat_id, video=item.file_id, caption=caption
                )
            else:
                await self.bot.send_audio(
                    chat_id=self.chat_id, audio=item.file_id, caption=caption
                )
        except RetryAfter as e:
            raise TransportDeliveryFailure(
                str(e), retry_after=_retry_after_seconds(e)
            ) from e
        except TelegramError as e:
            raise TransportDeliveryFailure(e.message) from e

    async def notify(self, text: str) -> None:
        await self.bot.send_message(chat_id=self.chat_id, text=text)
