"""Notification channels for OmniTrade."""

from omnitrade.notifications.base import BaseChannel, NotificationError
from omnitrade.notifications.discord import DiscordChannel
from omnitrade.notifications.dispatcher import (
    build_channels,
    dispatch,
    dispatch_to_channels,
    enabled_channels,
)
from omnitrade.notifications.native import NativeChannel
from omnitrade.notifications.telegram import TelegramChannel

__all__ = [
    "BaseChannel",
    "DiscordChannel",
    "NativeChannel",
    "NotificationError",
    "TelegramChannel",
    "build_channels",
    "dispatch",
    "dispatch_to_channels",
    "enabled_channels",
]
