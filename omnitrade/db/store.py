"""JSON-backed alert store for OmniTrade."""

import logging
from pathlib import Path

from pydantic import ValidationError

from omnitrade.models import AlertsDocument, PriceAlert

logger = logging.getLogger(__name__)


class AlertStore:
    """Whole-document store for price alerts.

    The file is always read and written in full. There is no locking: the
    daemon is the only intended writer while it runs and every save is
    last-writer-wins.
    """

    def __init__(self, path: Path):
        """Initialize the alert store.

        Args:
            path: Path to the alerts JSON file.
        """
        self.path = path

    def _ensure_dir(self) -> None:
        """Ensure the store directory exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load_all(self) -> AlertsDocument:
        """Load every alert.

        A missing or unparsable file is treated as an empty document.
        """
        if not self.path.exists():
            return AlertsDocument()

        try:
            raw = self.path.read_text(encoding="utf-8")
            return AlertsDocument.model_validate_json(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.debug("Ignoring unreadable alerts file %s: %s", self.path, e)
            return AlertsDocument()

    @staticmethod
    def active_alerts(document: AlertsDocument) -> list[PriceAlert]:
        """Alerts in the document that have not triggered yet."""
        return document.active()

    def save_all(self, document: AlertsDocument) -> None:
        """Overwrite the store with the given document."""
        self._ensure_dir()
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(
            document.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        temp_path.replace(self.path)

    # ==================== Alert management ====================

    def add_alert(self, alert: PriceAlert) -> PriceAlert:
        """Append an alert and save."""
        document = self.load_all()
        document.alerts.append(alert)
        self.save_all(document)
        return alert

    def remove_alert(self, alert_id: str) -> bool:
        """Delete an alert by ID.

        Returns:
            True if an alert was removed, False if none matched.
        """
        document = self.load_all()
        remaining = [alert for alert in document.alerts if alert.id != alert_id]
        if len(remaining) == len(document.alerts):
            return False
        self.save_all(AlertsDocument(alerts=remaining))
        return True
