"""Tests for the alert poll scheduler.

**Feature: omnitrade-daemon**
"""

import logging
import tempfile
import threading
from pathlib import Path
from typing import Optional

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from omnitrade.config import ExchangeConfig, NotificationConfig
from omnitrade.daemon.scheduler import PollScheduler, format_notification
from omnitrade.db.store import AlertStore
from omnitrade.exchanges import BaseExchange, ExchangeError, create_exchanges
from omnitrade.models import AlertsDocument, NotificationOutcome, PriceAlert


# ============================================================================
# Test Helpers
# ============================================================================

class FakeExchange(BaseExchange):
    """Exchange returning fixed prices and counting calls."""

    def __init__(self, name: str, prices: Optional[dict[str, float]] = None, error: Optional[Exception] = None):
        self.name = name
        self.prices = prices or {}
        self.error = error
        self.calls: list[str] = []

    def fetch_last_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return self.prices[symbol]


class RecordingDispatcher:
    """Dispatcher stand-in returning canned outcomes."""

    def __init__(self, outcomes: Optional[list[NotificationOutcome]] = None):
        self.outcomes = outcomes if outcomes is not None else []
        self.calls: list[tuple[str, str]] = []

    def __call__(self, config, title: str, message: str) -> list[NotificationOutcome]:
        self.calls.append((title, message))
        return list(self.outcomes)


class CountingStore(AlertStore):
    """Alert store that counts saves."""

    def __init__(self, path: Path):
        super().__init__(path)
        self.saves = 0

    def save_all(self, document: AlertsDocument) -> None:
        self.saves += 1
        super().save_all(document)


@pytest.fixture
def store():
    """Create a counting store in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield CountingStore(Path(tmpdir) / "alerts.json")


def _seed(store: AlertStore, *alerts: PriceAlert) -> None:
    store.save_all(AlertsDocument(alerts=list(alerts)))
    if isinstance(store, CountingStore):
        store.saves = 0


# ============================================================================
# Tick behaviour
# ============================================================================

class TestFirstMatchWins:
    """
    **Feature: omnitrade-daemon, Property 6: First-Match-Wins Evaluation**

    An alert without a pinned exchange triggers on the first exchange, in
    configuration order, whose price satisfies it. Later exchanges are not
    checked and prices are not compared.
    """

    def test_end_to_end_below_alert_across_two_exchanges(self, store: CountingStore):
        alert = PriceAlert(symbol="BTC/USDT", condition="below", target_price=50000)
        _seed(store, alert)
        first = FakeExchange("binance", {"BTC/USDT": 51000})
        second = FakeExchange("kraken", {"BTC/USDT": 49500})
        dispatcher = RecordingDispatcher()

        scheduler = PollScheduler(store, {"binance": first, "kraken": second}, dispatcher=dispatcher)
        triggered = scheduler.tick()

        assert [a.id for a in triggered] == [alert.id]
        saved = store.load_all().alerts[0]
        assert saved.triggered is True
        assert saved.exchange == "kraken"
        assert saved.triggered_price == 49500
        assert saved.triggered_at is not None
        assert len(dispatcher.calls) == 1

    def test_stops_at_first_satisfying_exchange(self, store: CountingStore):
        alert = PriceAlert(symbol="BTC/USDT", condition="below", target_price=50000)
        _seed(store, alert)
        first = FakeExchange("binance", {"BTC/USDT": 49900})
        second = FakeExchange("kraken", {"BTC/USDT": 40000})

        PollScheduler(store, {"binance": first, "kraken": second}, dispatcher=RecordingDispatcher()).tick()

        assert store.load_all().alerts[0].exchange == "binance"
        assert second.calls == []

    def test_pinned_exchange_only(self, store: CountingStore):
        alert = PriceAlert(symbol="ETH/USDT", condition="above", target_price=3000, exchange="kraken")
        _seed(store, alert)
        binance = FakeExchange("binance", {"ETH/USDT": 3500})
        kraken = FakeExchange("kraken", {"ETH/USDT": 2900})

        triggered = PollScheduler(
            store, {"binance": binance, "kraken": kraken}, dispatcher=RecordingDispatcher()
        ).tick()

        assert triggered == []
        assert binance.calls == []
        assert kraken.calls == ["ETH/USDT"]

    def test_pinned_exchange_unavailable_is_skipped(self, store: CountingStore, caplog):
        alert = PriceAlert(symbol="ETH/USDT", condition="above", target_price=1, exchange="okx")
        _seed(store, alert)
        binance = FakeExchange("binance", {"ETH/USDT": 3500})

        with caplog.at_level(logging.WARNING):
            triggered = PollScheduler(store, {"binance": binance}, dispatcher=RecordingDispatcher()).tick()

        assert triggered == []
        assert binance.calls == []
        assert "okx" in caplog.text

    def test_pinned_exchange_matches_case_insensitively(self, store: CountingStore):
        alert = PriceAlert(symbol="BTC/USDT", condition="above", target_price=1, exchange="binance")
        _seed(store, alert)
        exchange = FakeExchange("Binance", {"BTC/USDT": 100})

        triggered = PollScheduler(store, {"Binance": exchange}, dispatcher=RecordingDispatcher()).tick()

        assert [a.id for a in triggered] == [alert.id]
        assert store.load_all().alerts[0].exchange == "binance"

    def test_create_exchanges_lowercases_names(self):
        exchanges = create_exchanges({"Binance": ExchangeConfig()})

        assert list(exchanges) == ["binance"]
        assert exchanges["binance"].name == "binance"


class TestTerminalState:
    """
    **Feature: omnitrade-daemon, Property 7: Idempotent Terminal State**

    *For any* number of further ticks, a triggered alert keeps its state
    and is never evaluated again.
    """

    @given(extra_ticks=st.integers(min_value=1, max_value=5), later_price=st.floats(min_value=1, max_value=100000))
    @settings(max_examples=20, deadline=None)
    def test_triggered_alert_never_changes(self, extra_ticks: int, later_price: float):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CountingStore(Path(tmpdir) / "alerts.json")
            alert = PriceAlert(symbol="BTC/USDT", condition="above", target_price=1)
            _seed(store, alert)
            exchange = FakeExchange("binance", {"BTC/USDT": 10})
            dispatcher = RecordingDispatcher()
            scheduler = PollScheduler(store, {"binance": exchange}, dispatcher=dispatcher)

            scheduler.tick()
            fired = store.load_all().alerts[0]

            exchange.prices["BTC/USDT"] = later_price
            for _ in range(extra_ticks):
                assert scheduler.tick() == []

            assert store.load_all().alerts[0] == fired
            assert exchange.calls == ["BTC/USDT"]
            assert len(dispatcher.calls) == 1


class TestFaultTolerance:
    """Fetch and delivery failures stay contained."""

    def test_fetch_failure_moves_to_next_exchange(self, store: CountingStore, caplog):
        alert = PriceAlert(symbol="BTC/USDT", condition="above", target_price=100)
        _seed(store, alert)
        broken = FakeExchange("binance", error=ExchangeError("timeout"))
        working = FakeExchange("kraken", {"BTC/USDT": 150})

        with caplog.at_level(logging.WARNING):
            triggered = PollScheduler(
                store, {"binance": broken, "kraken": working}, dispatcher=RecordingDispatcher()
            ).tick()

        assert len(triggered) == 1
        assert triggered[0].exchange == "kraken"
        assert "Failed to fetch BTC/USDT from binance" in caplog.text

    def test_partial_delivery_still_saves(self, store: CountingStore, caplog):
        alert = PriceAlert(symbol="BTC/USDT", condition="above", target_price=100)
        _seed(store, alert)
        dispatcher = RecordingDispatcher([
            NotificationOutcome(channel="telegram", success=True),
            NotificationOutcome(channel="discord", success=False, error="HTTP 500"),
            NotificationOutcome(channel="native", success=True),
        ])

        with caplog.at_level(logging.INFO):
            PollScheduler(store, {"binance": FakeExchange("binance", {"BTC/USDT": 101})}, dispatcher=dispatcher).tick()

        assert store.saves == 1
        assert store.load_all().alerts[0].triggered
        assert "Notification failed via discord: HTTP 500" in caplog.text
        assert "Notification sent via telegram" in caplog.text

    def test_dispatch_error_still_saves_and_continues(self, store: CountingStore, caplog):
        _seed(
            store,
            PriceAlert(symbol="BTC/USDT", condition="above", target_price=1),
            PriceAlert(symbol="ETH/USDT", condition="above", target_price=1),
        )
        exchange = FakeExchange("binance", {"BTC/USDT": 10, "ETH/USDT": 10})

        def failing_dispatcher(config, title: str, message: str):
            raise RuntimeError("can't start new thread")

        scheduler = PollScheduler(store, {"binance": exchange}, dispatcher=failing_dispatcher)
        with caplog.at_level(logging.ERROR):
            triggered = scheduler.tick()

        assert len(triggered) == 2
        assert exchange.calls == ["BTC/USDT", "ETH/USDT"]
        assert [a.triggered for a in store.load_all().alerts] == [True, True]
        assert store.saves == 1
        assert "Notification dispatch failed" in caplog.text
        assert scheduler.tick() == []

    def test_no_channels_is_reported(self, store: CountingStore, caplog):
        _seed(store, PriceAlert(symbol="BTC/USDT", condition="below", target_price=100))

        with caplog.at_level(logging.INFO):
            PollScheduler(
                store,
                {"binance": FakeExchange("binance", {"BTC/USDT": 99})},
                notifications=NotificationConfig(),
                dispatcher=RecordingDispatcher([]),
            ).tick()

        assert "No notification channels configured" in caplog.text
        assert store.load_all().alerts[0].triggered


class TestPersistence:
    """Trigger state is saved once per tick, only when something fired."""

    def test_batched_single_save(self, store: CountingStore):
        _seed(
            store,
            PriceAlert(symbol="BTC/USDT", condition="above", target_price=1),
            PriceAlert(symbol="ETH/USDT", condition="above", target_price=1),
            PriceAlert(symbol="SOL/USDT", condition="above", target_price=1000),
        )
        exchange = FakeExchange("binance", {"BTC/USDT": 5, "ETH/USDT": 5, "SOL/USDT": 5})

        triggered = PollScheduler(store, {"binance": exchange}, dispatcher=RecordingDispatcher()).tick()

        assert [a.symbol for a in triggered] == ["BTC/USDT", "ETH/USDT"]
        assert store.saves == 1
        assert [a.triggered for a in store.load_all().alerts] == [True, True, False]

    def test_nothing_triggered_means_no_save(self, store: CountingStore):
        _seed(store, PriceAlert(symbol="BTC/USDT", condition="above", target_price=1000))

        PollScheduler(store, {"binance": FakeExchange("binance", {"BTC/USDT": 5})}, dispatcher=RecordingDispatcher()).tick()

        assert store.saves == 0

    def test_no_active_alerts_is_cheap(self, store: CountingStore, caplog):
        exchange = FakeExchange("binance", {"BTC/USDT": 5})

        with caplog.at_level(logging.INFO):
            assert PollScheduler(store, {"binance": exchange}, dispatcher=RecordingDispatcher()).tick() == []

        assert exchange.calls == []
        assert "no active alerts" in caplog.text
        assert store.saves == 0


class TestScheduling:
    """Loop control and single-flight ticks."""

    def test_overlapping_tick_is_skipped(self, store: CountingStore):
        scheduler = PollScheduler(store, {}, dispatcher=RecordingDispatcher())

        scheduler._tick_lock.acquire()
        try:
            assert scheduler.tick() == []
        finally:
            scheduler._tick_lock.release()

    def test_run_forever_ticks_immediately_and_stops(self, store: CountingStore):
        scheduler = PollScheduler(store, {}, poll_interval=0.05, dispatcher=RecordingDispatcher())
        ticks = []
        original_tick = scheduler.tick

        def counting_tick():
            ticks.append(1)
            if len(ticks) >= 3:
                scheduler.stop()
            return original_tick()

        scheduler.tick = counting_tick
        worker = threading.Thread(target=scheduler.run_forever)
        worker.start()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert len(ticks) == 3

    def test_tick_errors_do_not_stop_loop(self, store: CountingStore):
        scheduler = PollScheduler(store, {}, poll_interval=0.01, dispatcher=RecordingDispatcher())
        calls = []

        def failing_tick():
            calls.append(1)
            if len(calls) >= 2:
                scheduler.stop()
            raise RuntimeError("boom")

        scheduler.tick = failing_tick
        scheduler.run_forever()

        assert len(calls) == 2


def test_format_notification():
    alert = PriceAlert(symbol="BTC/USDT", condition="below", target_price=50000)

    title, message = format_notification(alert, 49500, "kraken")

    assert title == "OmniTrade Alert: BTC/USDT"
    assert "BTC/USDT is below $50,000.00" in message
    assert "$49,500.00 on kraken" in message
