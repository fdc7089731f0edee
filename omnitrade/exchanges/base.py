"""Base exchange interface for OmniTrade."""

from abc import ABC, abstractmethod


class ExchangeError(Exception):
    """Raised when an exchange call fails."""


class BaseExchange(ABC):
    """Abstract price source.

    The daemon only needs the last traded price for a symbol. Every call
    may fail independently of other calls and other exchanges.
    """

    name: str

    @abstractmethod
    def fetch_last_price(self, symbol: str) -> float:
        """Get the last traded price for a symbol.

        Args:
            symbol: Trading pair (e.g., 'BTC/USDT').

        Returns:
            Last traded price.

        Raises:
            ExchangeError: If the price cannot be fetched.
        """
        pass
