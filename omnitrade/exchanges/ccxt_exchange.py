"""ccxt-backed exchange implementation."""

import logging

import ccxt

from omnitrade.config import ExchangeConfig
from omnitrade.exchanges.base import BaseExchange, ExchangeError

logger = logging.getLogger(__name__)

# Per-request transport timeout in milliseconds
DEFAULT_TIMEOUT_MS = 10000


class CcxtExchange(BaseExchange):
    """Public price client for any exchange supported by ccxt."""

    def __init__(self, name: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        """Create a public client.

        Args:
            name: ccxt exchange ID (e.g., 'binance', 'kraken').
            timeout_ms: Request timeout in milliseconds.

        Raises:
            ValueError: If ccxt does not know the exchange.
        """
        exchange_id = name.lower()
        if exchange_id not in ccxt.exchanges:
            raise ValueError(f"Unknown exchange: {name}")

        exchange_class = getattr(ccxt, exchange_id)
        self.name = exchange_id
        self._client = exchange_class({"enableRateLimit": True, "timeout": timeout_ms})

    def fetch_last_price(self, symbol: str) -> float:
        try:
            ticker = self._client.fetch_ticker(symbol)
        except ccxt.BaseError as e:
            raise ExchangeError(str(e)) from e

        last = ticker.get("last")
        if last is None:
            raise ExchangeError(f"No last price for {symbol} on {self.name}")
        return float(last)


def create_exchanges(
    exchange_configs: dict[str, ExchangeConfig],
) -> dict[str, BaseExchange]:
    """Build one client per configured exchange.

    Exchanges that cannot be initialized are logged and left out. Price
    polling uses public endpoints, so credentials are not passed along.

    Returns:
        Mapping of lower-cased exchange name to client, in configuration
        order.
    """
    exchanges: dict[str, BaseExchange] = {}
    for name in exchange_configs:
        try:
            exchanges[name.lower()] = CcxtExchange(name)
            logger.info("Exchange ready: %s", name)
        except Exception as e:
            logger.warning("Could not initialize exchange %s: %s", name, e)
    return exchanges
