"""Exchange clients for OmniTrade."""

from omnitrade.exchanges.base import BaseExchange, ExchangeError
from omnitrade.exchanges.ccxt_exchange import CcxtExchange, create_exchanges

__all__ = [
    "BaseExchange",
    "CcxtExchange",
    "ExchangeError",
    "create_exchanges",
]
