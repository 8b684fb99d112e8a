import asyncio
from pathlib import Path

from helpers import make_trade

from whale_watcher.config import Settings
from whale_watcher.service import MonitorService
from whale_watcher.types import AnomalyTag, FetchError, Venue


class DummySource:
    def __init__(self, venue: Venue, batches) -> None:
        self.venue = venue
        self.batches = list(batches)

    async def fetch_latest_trades(self):
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch

    async def close(self) -> None:
        return None


class DummyDispatcher:
    def __init__(self) -> None:
        self.targets = []
        self.alerts = []

    def dispatch(self, alert) -> None:
        self.alerts.append(alert)

    async def close(self) -> None:
        return None


class DummyHistory:
    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.alerts = []

    def append(self, alert) -> None:
        if alert.trade.trade_id == self.fail_on:
            raise RuntimeError("boom")
        self.alerts.append(alert)


class DummyLabels:
    def __init__(self) -> None:
        self.lookups = []

    async def describe(self, ticker: str) -> str | None:
        self.lookups.append(ticker)
        return "Anaheim at Carolina"

    async def close(self) -> None:
        return None


def _settings(state_dir: Path) -> Settings:
    return Settings(
        alert_threshold_usd=25000,
        poll_interval_seconds=5,
        notification_targets=(),
        kalshi_api_key_id=None,
        poly_data_api_base="https://data.example.com",
        kalshi_api_base="https://kalshi.example.com/trade-api/v2",
        fetch_limit=100,
        fetch_timeout_seconds=8,
        health_log_interval_seconds=1000,
        state_dir=state_dir,
        log_level="INFO",
    )


def _service(tmp_path: Path, *sources, history=None) -> MonitorService:
    service = MonitorService(_settings(tmp_path))
    service.sources = list(sources)
    service.dispatcher = DummyDispatcher()
    service.history = history or DummyHistory()
    service.labels = DummyLabels()
    return service


def _poll(service: MonitorService, ticks: int = 1) -> None:
    async def run():
        for _ in range(ticks):
            await service.poll_once()

    asyncio.run(run())


def test_cold_start_raises_no_alerts(tmp_path) -> None:
    source = DummySource(Venue.POLYMARKET, [[make_trade("T2", size=900_000), make_trade("T1")]])
    service = _service(tmp_path, source)

    _poll(service)

    assert service.dispatcher.alerts == []
    assert service.cursors.get(Venue.POLYMARKET) == "T2"


def test_second_tick_alerts_oldest_first_at_or_above_threshold(tmp_path) -> None:
    batches = [
        [make_trade("T1")],
        [
            make_trade("T4", size=60_000, minutes=3),
            make_trade("T3", size=49_998, minutes=2),
            make_trade("T2", size=50_000, minutes=1),
            make_trade("T1"),
        ],
    ]
    service = _service(tmp_path, DummySource(Venue.POLYMARKET, batches))

    _poll(service, ticks=2)

    assert [a.trade.trade_id for a in service.dispatcher.alerts] == ["T2", "T4"]
    assert [a.trade.trade_id for a in service.history.alerts] == ["T2", "T4"]
    assert service.metrics.trades_seen == 3
    assert service.cursors.get(Venue.POLYMARKET) == "T4"


def test_one_failing_venue_does_not_stop_the_other(tmp_path) -> None:
    poly = DummySource(Venue.POLYMARKET, [FetchError("down"), RuntimeError("bad"), []])
    kalshi_batches = [
        [make_trade("K1", venue=Venue.KALSHI)],
        [make_trade("K2", venue=Venue.KALSHI, size=80_000), make_trade("K1", venue=Venue.KALSHI)],
        [],
    ]
    service = _service(tmp_path, poly, DummySource(Venue.KALSHI, kalshi_batches))

    _poll(service, ticks=3)

    assert [a.trade.trade_id for a in service.dispatcher.alerts] == ["K2"]
    assert service.metrics.fetch_errors == 2
    assert service.metrics.ticks == 3


def test_kalshi_alert_gets_market_title_and_decoded_position(tmp_path) -> None:
    ticker = "KXNHLGAME-26JAN08ANACAR-CAR"
    batches = [
        [],
        [
            make_trade(
                "K1",
                venue=Venue.KALSHI,
                market_key=ticker,
                market_label=None,
                outcome_label=None,
                venue_side="yes",
                size=80_000,
            )
        ],
        [
            make_trade(
                "K2",
                venue=Venue.KALSHI,
                market_key=ticker,
                market_label=None,
                outcome_label=None,
                venue_side="yes",
                size=80_000,
            ),
            make_trade("K1", venue=Venue.KALSHI, market_key=ticker),
        ],
    ]
    service = _service(tmp_path, DummySource(Venue.KALSHI, batches))

    _poll(service, ticks=3)

    [alert] = service.dispatcher.alerts
    assert alert.trade.market_label == "Anaheim at Carolina"
    assert alert.position == "CAR wins vs ANA (NHL)"
    assert alert.actor is None
    assert service.labels.lookups == [ticker]


def test_repeat_polymarket_actor_is_flagged(tmp_path) -> None:
    batches = [
        [make_trade("T0")],
        [make_trade("T1", size=100_000, minutes=1, actor_id="0xwhale"), make_trade("T0")],
        [
            make_trade("T2", size=100_000, minutes=10, actor_id="0xwhale"),
            make_trade("T1", size=100_000, minutes=1, actor_id="0xwhale"),
        ],
    ]
    service = _service(tmp_path, DummySource(Venue.POLYMARKET, batches))

    _poll(service, ticks=3)

    first, second = service.dispatcher.alerts
    assert first.anomalies == ()
    assert second.anomalies == (AnomalyTag.REPEAT_ACTOR,)
    assert second.actor.tx_count_last_hour == 2
    assert second.position == "Yes"


def test_failing_trade_is_isolated_and_cursor_still_advances(tmp_path) -> None:
    batches = [
        [make_trade("T1")],
        [
            make_trade("T3", size=60_000, minutes=2),
            make_trade("T2", size=60_000, minutes=1),
            make_trade("T1"),
        ],
    ]
    history = DummyHistory(fail_on="T2")
    service = _service(tmp_path, DummySource(Venue.POLYMARKET, batches), history=history)

    _poll(service, ticks=2)

    assert [a.trade.trade_id for a in history.alerts] == ["T3"]
    assert service.metrics.trade_errors == 1
    assert service.cursors.get(Venue.POLYMARKET) == "T3"


def test_idle_actors_are_swept_on_trade_time(tmp_path) -> None:
    batches = [
        [make_trade("T0")],
        [make_trade("T1", size=100_000, actor_id="0xold"), make_trade("T0")],
        [make_trade("T2", size=100_000, minutes=25 * 60, actor_id="0xnew"), make_trade("T1")],
    ]
    service = _service(tmp_path, DummySource(Venue.POLYMARKET, batches))

    _poll(service, ticks=2)
    assert len(service.tracker) == 1

    _poll(service)
    assert len(service.tracker) == 1
    assert service.tracker.snapshot("0xold") is None
    assert service.tracker.snapshot("0xnew") is not None
