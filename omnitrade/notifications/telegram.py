"""Telegram bot notification channel."""

import re

import requests

from omnitrade.notifications.base import BaseChannel, NotificationError

TELEGRAM_API_URL = "https://api.telegram.org"

# Characters that must be escaped in MarkdownV2 text
_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown(text: str) -> str:
    """Escape text for Telegram's MarkdownV2 parse mode."""
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


class TelegramChannel(BaseChannel):
    """Sends messages through the Telegram Bot API."""

    name = "telegram"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10.0):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    def _url(self, method: str) -> str:
        return f"{TELEGRAM_API_URL}/bot{self.bot_token}/{method}"

    def send(self, title: str, message: str) -> None:
        text = f"🔔 *{escape_markdown(title)}*\n\n{escape_markdown(message)}"
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "MarkdownV2",
        }

        try:
            response = requests.post(self._url("sendMessage"), json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Telegram request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(f"HTTP {response.status_code}: {response.text[:200]}")

    def verify(self) -> str:
        """Call ``getMe`` and return the bot's username."""
        try:
            response = requests.get(self._url("getMe"), timeout=self.timeout)
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Telegram request failed: {e}") from e
        except ValueError as e:
            raise NotificationError("Failed to parse Telegram response") from e

        if not isinstance(data, dict):
            raise NotificationError("Unexpected Telegram response")

        result = data.get("result")
        if data.get("ok") and isinstance(result, dict):
            return result.get("username") or "bot"
        raise NotificationError(data.get("description") or "Invalid bot token")
