"""Polling loop that checks price alerts against live prices."""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from omnitrade.config import NotificationConfig
from omnitrade.db.store import AlertStore
from omnitrade.exchanges.base import BaseExchange
from omnitrade.models import NotificationOutcome, PriceAlert
from omnitrade.notifications.dispatcher import dispatch

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 60

Dispatcher = Callable[[Optional[NotificationConfig], str, str], list[NotificationOutcome]]


def format_notification(alert: PriceAlert, price: float, exchange: str) -> tuple[str, str]:
    """Build the (title, message) pair for a triggered alert."""
    title = f"OmniTrade Alert: {alert.symbol}"
    message = (
        f"{alert.symbol} is {alert.condition} ${alert.target_price:,.2f}\n"
        f"Current price: ${price:,.2f} on {exchange}"
    )
    return title, message


class PollScheduler:
    """Evaluates active alerts on a fixed interval.

    Each tick is sequential across alerts and exchanges. The only
    concurrency is the notification fan-out, which finishes before the
    tick does. Ticks never overlap.
    """

    def __init__(
        self,
        store: AlertStore,
        exchanges: dict[str, BaseExchange],
        notifications: Optional[NotificationConfig] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        dispatcher: Dispatcher = dispatch,
    ):
        """Initialize the scheduler.

        Args:
            store: Alert store to load from and save to.
            exchanges: Exchange clients owned by the daemon, built once.
                Names are matched case-insensitively.
            notifications: Channel settings passed to the dispatcher.
            poll_interval: Seconds between ticks.
            dispatcher: Function that sends a notification to all channels.
        """
        self.store = store
        self.exchanges = {name.lower(): exchange for name, exchange in exchanges.items()}
        self.notifications = notifications
        self.poll_interval = poll_interval
        self._dispatch = dispatcher
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()

    def _candidate_exchanges(self, alert: PriceAlert) -> list[tuple[str, BaseExchange]]:
        if alert.exchange:
            exchange_name = alert.exchange.lower()
            exchange = self.exchanges.get(exchange_name)
            if exchange is None:
                logger.warning(
                    "  ⚠ Exchange %s for alert %s is not available", alert.exchange, alert.id
                )
                return []
            return [(exchange_name, exchange)]
        return list(self.exchanges.items())

    def evaluate(self, alert: PriceAlert) -> Optional[tuple[str, float]]:
        """Find the first exchange whose price satisfies the alert.

        Exchanges are checked in order and the first match wins; prices on
        later exchanges are not compared.

        Returns:
            (exchange name, price) of the match, or None.
        """
        for exchange_name, exchange in self._candidate_exchanges(alert):
            try:
                price = exchange.fetch_last_price(alert.symbol)
            except Exception as e:
                logger.warning(
                    "  ⚠ Failed to fetch %s from %s: %s", alert.symbol, exchange_name, e
                )
                continue

            if alert.is_met(price):
                return exchange_name, price
        return None

    def _notify(self, alert: PriceAlert, price: float, exchange: str) -> list[NotificationOutcome]:
        title, message = format_notification(alert, price, exchange)
        outcomes = self._dispatch(self.notifications, title, message)

        for outcome in outcomes:
            if outcome.success:
                logger.info("  ✓ Notification sent via %s", outcome.channel)
            else:
                logger.warning("  ✗ Notification failed via %s: %s", outcome.channel, outcome.error)

        if not outcomes:
            logger.info(
                "  ℹ No notification channels configured. "
                "Enable telegram, discord or native in config.toml."
            )
        return outcomes

    def tick(self) -> list[PriceAlert]:
        """Run one evaluation pass over all active alerts.

        Returns:
            Alerts that triggered during this tick.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous poll still running — skipping this tick")
            return []
        try:
            return self._run_tick()
        finally:
            self._tick_lock.release()

    def _run_tick(self) -> list[PriceAlert]:
        document = self.store.load_all()
        active = self.store.active_alerts(document)

        if not active:
            logger.info("Poll complete — no active alerts")
            return []

        logger.info("Checking %d active alert(s)...", len(active))
        triggered: list[PriceAlert] = []

        for alert in active:
            match = self.evaluate(alert)
            if match is None:
                continue

            exchange_name, price = match
            logger.info(
                "🚨 ALERT TRIGGERED: %s %s $%s on %s (current: $%s)",
                alert.symbol,
                alert.condition,
                alert.target_price,
                exchange_name,
                price,
            )
            fired = alert.mark_triggered(exchange_name, price, when=datetime.now())
            document.replace(fired)
            triggered.append(fired)
            try:
                self._notify(fired, price, exchange_name)
            except Exception as e:
                logger.error("  ✗ Notification dispatch failed for %s: %s", fired.id, e)

        if triggered:
            self.store.save_all(document)
            logger.info("%d alert(s) triggered and saved", len(triggered))
        else:
            logger.info("Poll complete — no conditions met")
        return triggered

    def run_forever(self) -> None:
        """Tick immediately, then every ``poll_interval`` seconds until stopped.

        A tick that overruns the interval pushes the next one back instead
        of queueing extra ticks.
        """
        next_run = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error("Poll error: %s", e)

            next_run += self.poll_interval
            now = time.monotonic()
            if next_run < now:
                skipped = int((now - next_run) // self.poll_interval) + 1
                next_run += skipped * self.poll_interval
            self._stop_event.wait(next_run - now)

    def stop(self) -> None:
        """Ask the loop to exit after its current wait."""
        self._stop_event.set()
