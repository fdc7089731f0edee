"""OmniTrade - cryptocurrency price alerts with a background daemon."""

__version__ = "0.3.2"
