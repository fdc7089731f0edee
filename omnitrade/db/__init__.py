"""Persistence for OmniTrade."""

from omnitrade.db.store import AlertStore

__all__ = ["AlertStore"]
