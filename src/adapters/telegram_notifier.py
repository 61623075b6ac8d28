"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance to satisfy the NotificationPort protocol.
Telegram errors propagate so the scheduler can log and retry.
"""

from __future__ import annotations

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


def format_holiday_digest(holiday_names: list[str]) -> str:
    lines = "\n".join(f"🇲🇲 {name}" for name in holiday_names)
    return f"🎉 Today is a Holiday!\n\n{lines}"


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(self, user_id: int, text: str) -> None:
        await self._bot.send_message(chat_id=user_id, text=text)
        logger.debug("Message delivered to %d", user_id)

    async def send_holiday_digest(self, user_id: int, holiday_names: list[str]) -> None:
        await self._bot.send_message(chat_id=user_id, text=format_holiday_digest(holiday_names))
        logger.debug("Holiday digest (%d) delivered to %d", len(holiday_names), user_id)
