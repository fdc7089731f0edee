"""Discord webhook notification channel."""

from datetime import datetime, timezone
from urllib.parse import urlparse

import requests

from omnitrade.notifications.base import BaseChannel, NotificationError

EMBED_COLOR = 0x00D4AA
ALLOWED_HOSTS = ("discord.com", "discordapp.com")


class DiscordChannel(BaseChannel):
    """Posts embeds to a Discord webhook URL."""

    name = "discord"

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def build_payload(self, title: str, message: str) -> dict:
        return {
            "embeds": [
                {
                    "title": f"🔔 {title}",
                    "description": message,
                    "color": EMBED_COLOR,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "footer": {"text": "OmniTrade"},
                }
            ]
        }

    def send(self, title: str, message: str) -> None:
        try:
            response = requests.post(
                self.webhook_url,
                json=self.build_payload(title, message),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Discord webhook request failed: {e}") from e

        # Discord answers 204 No Content on success
        if not 200 <= response.status_code < 300:
            raise NotificationError(f"HTTP {response.status_code}: {response.text[:200]}")

    def verify(self) -> str:
        """Check the webhook exists without posting a message."""
        host = urlparse(self.webhook_url).hostname or ""
        if not any(host == allowed or host.endswith("." + allowed) for allowed in ALLOWED_HOSTS):
            raise NotificationError("Webhook URL must be a Discord URL")

        try:
            response = requests.get(self.webhook_url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Discord webhook request failed: {e}") from e

        if response.status_code != 200:
            raise NotificationError(f"Invalid webhook: HTTP {response.status_code}")

        try:
            return response.json().get("name") or "webhook"
        except ValueError:
            return "webhook"
