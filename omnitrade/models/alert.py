"""Price alert data models."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def _new_alert_id() -> str:
    return uuid.uuid4().hex[:8]


class PriceAlert(BaseModel):
    """A request to be notified when a pair's price crosses a threshold.

    Alerts move from pending to triggered exactly once. A triggered alert
    is terminal and is never evaluated again.
    """

    id: str = Field(default_factory=_new_alert_id, min_length=1, description="Alert ID")
    symbol: str = Field(..., min_length=1, description="Trading pair (e.g., 'BTC/USDT')")
    exchange: Optional[str] = Field(
        default=None,
        description="Pinned exchange, or the exchange that triggered the alert",
    )
    condition: Literal["above", "below"] = Field(..., description="Trigger direction")
    target_price: float = Field(..., gt=0, description="Threshold price")
    created_at: datetime = Field(
        default_factory=datetime.now, description="Alert creation timestamp"
    )
    triggered: bool = Field(default=False, description="Whether alert has triggered")
    triggered_at: Optional[datetime] = Field(default=None, description="Trigger timestamp")
    triggered_price: Optional[float] = Field(
        default=None, description="Price that satisfied the condition"
    )

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def is_met(self, current_price: float) -> bool:
        """Check the condition against a price.

        Both directions include the boundary: ``above`` fires at
        ``price >= target`` and ``below`` at ``price <= target``.
        """
        if self.condition == "above":
            return current_price >= self.target_price
        return current_price <= self.target_price

    def mark_triggered(
        self,
        exchange: str,
        price: float,
        when: Optional[datetime] = None,
    ) -> "PriceAlert":
        """Return the triggered copy of this alert.

        Raises:
            ValueError: If the alert has already triggered.
        """
        if self.triggered:
            raise ValueError(f"Alert {self.id} has already triggered")
        return self.model_copy(
            update={
                "triggered": True,
                "triggered_at": when or datetime.now(),
                "triggered_price": price,
                "exchange": exchange,
            }
        )


class AlertsDocument(BaseModel):
    """The full persisted set of alerts, read and written as one unit."""

    alerts: list[PriceAlert] = Field(default_factory=list)

    def active(self) -> list[PriceAlert]:
        """Alerts that have not triggered, in load order."""
        return [alert for alert in self.alerts if not alert.triggered]

    def get(self, alert_id: str) -> Optional[PriceAlert]:
        for alert in self.alerts:
            if alert.id == alert_id:
                return alert
        return None

    def replace(self, alert: PriceAlert) -> None:
        """Swap in a new version of an alert, matched by ID."""
        for index, existing in enumerate(self.alerts):
            if existing.id == alert.id:
                self.alerts[index] = alert
                return
        raise KeyError(alert.id)
