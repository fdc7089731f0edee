"""Notification dispatcher.

Routes one notification to every enabled channel concurrently. Each
channel runs in its own worker thread and its failure is converted into a
failed outcome for that channel only.
"""

import logging
import threading
import time
from typing import Optional

from omnitrade.config import NotificationConfig
from omnitrade.models import NotificationOutcome
from omnitrade.notifications.base import BaseChannel
from omnitrade.notifications.discord import DiscordChannel
from omnitrade.notifications.native import NativeChannel
from omnitrade.notifications.telegram import TelegramChannel

logger = logging.getLogger(__name__)

# Upper bound on a whole dispatch, on top of each transport's own timeout
DEFAULT_DISPATCH_TIMEOUT = 30.0


def build_channels(config: Optional[NotificationConfig]) -> list[BaseChannel]:
    """Create an adapter for each enabled and fully configured channel.

    A channel missing its credentials counts as disabled.
    """
    if config is None:
        return []

    channels: list[BaseChannel] = []
    if config.telegram.is_configured:
        channels.append(TelegramChannel(config.telegram.bot_token, config.telegram.chat_id))
    if config.discord.is_configured:
        channels.append(DiscordChannel(config.discord.webhook_url))
    if config.native.is_configured:
        channels.append(NativeChannel())
    return channels


def enabled_channels(config: Optional[NotificationConfig]) -> list[str]:
    """Names of the channels a dispatch would use."""
    return [channel.name for channel in build_channels(config)]


def _deliver(channel: BaseChannel, title: str, message: str) -> NotificationOutcome:
    try:
        channel.send(title, message)
    except Exception as e:
        logger.debug("Delivery via %s failed", channel.name, exc_info=True)
        return NotificationOutcome(
            channel=channel.name,
            success=False,
            error=str(e) or type(e).__name__,
        )
    return NotificationOutcome(channel=channel.name, success=True)


def dispatch_to_channels(
    channels: list[BaseChannel],
    title: str,
    message: str,
    timeout: float = DEFAULT_DISPATCH_TIMEOUT,
) -> list[NotificationOutcome]:
    """Send to all channels at once and collect one outcome per channel.

    Each send runs on a daemon thread, so a transport still blocked at
    interpreter exit does not hold up shutdown. Channels still running
    when ``timeout`` elapses are reported as failed and are not waited for.
    """
    if not channels:
        return []

    results: list[Optional[NotificationOutcome]] = [None] * len(channels)

    def _run(index: int, channel: BaseChannel) -> None:
        results[index] = _deliver(channel, title, message)

    workers = [
        threading.Thread(
            target=_run, args=(index, channel), name=f"notify-{channel.name}", daemon=True
        )
        for index, channel in enumerate(channels)
    ]
    for worker in workers:
        worker.start()

    deadline = time.monotonic() + timeout
    for worker in workers:
        worker.join(max(0.0, deadline - time.monotonic()))

    outcomes = []
    for channel, outcome in zip(channels, list(results)):
        if outcome is None:
            outcome = NotificationOutcome(
                channel=channel.name,
                success=False,
                error=f"Timed out after {timeout}s",
            )
        outcomes.append(outcome)
    return outcomes


def dispatch(
    config: Optional[NotificationConfig],
    title: str,
    message: str,
    timeout: float = DEFAULT_DISPATCH_TIMEOUT,
) -> list[NotificationOutcome]:
    """Send a notification to every enabled channel.

    Returns:
        One outcome per enabled channel, in no particular order. Empty if
        no channel is enabled.
    """
    return dispatch_to_channels(build_channels(config), title, message, timeout=timeout)
