"""Data models for OmniTrade."""

from omnitrade.models.alert import AlertsDocument, PriceAlert
from omnitrade.models.daemon import DaemonProcessRecord
from omnitrade.models.notification import NotificationOutcome

__all__ = [
    "AlertsDocument",
    "DaemonProcessRecord",
    "NotificationOutcome",
    "PriceAlert",
]
