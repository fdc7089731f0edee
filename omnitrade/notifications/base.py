"""Base notification channel interface for OmniTrade."""

from abc import ABC, abstractmethod


class NotificationError(Exception):
    """Raised when a channel fails to deliver or verify."""


class BaseChannel(ABC):
    """Abstract notification channel.

    Channels share no state with each other, so any number of them can
    deliver the same notification at the same time.
    """

    name: str

    @abstractmethod
    def send(self, title: str, message: str) -> None:
        """Deliver a notification.

        Raises:
            NotificationError: If delivery fails.
        """
        pass

    @abstractmethod
    def verify(self) -> str:
        """Check the channel's credentials or local tooling.

        Used when configuring channels, never during dispatch.

        Returns:
            A short description of the verified identity.

        Raises:
            NotificationError: If verification fails.
        """
        pass
