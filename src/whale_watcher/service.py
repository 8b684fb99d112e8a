from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime

from .anomaly import classify
from .config import Settings
from .cursor import CursorTracker
from .formatting import format_alert_log
from .history import HISTORY_FILENAME, HistorySink
from .kalshi import KalshiMarketResolver, KalshiSource
from .notifier import NotificationDispatcher
from .polymarket import PolymarketSource
from .ticker import describe
from .types import AlertRecord, FetchError, Trade, Venue
from .wallet_tracker import WalletActivityTracker

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    ticks: int = 0
    fetch_errors: int = 0
    trades_seen: int = 0
    trades_over_threshold: int = 0
    alerts_raised: int = 0
    trade_errors: int = 0


class MonitorService:
    def __init__(
        self,
        settings: Settings,
        threshold_usd: float | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        self.settings = settings
        self.threshold_usd = (
            settings.alert_threshold_usd if threshold_usd is None else threshold_usd
        )
        self.interval_seconds = (
            settings.poll_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.metrics = Metrics()
        self._latest_trade_at: datetime | None = None
        self.cursors = CursorTracker()
        self.tracker = WalletActivityTracker()
        self.sources = [
            PolymarketSource(
                settings.poly_data_api_base,
                limit=settings.fetch_limit,
                timeout=settings.fetch_timeout_seconds,
            ),
            KalshiSource(
                settings.kalshi_api_base,
                api_key_id=settings.kalshi_api_key_id,
                limit=settings.fetch_limit,
                timeout=settings.fetch_timeout_seconds,
            ),
        ]
        self.labels = KalshiMarketResolver(
            settings.kalshi_api_base, timeout=settings.fetch_timeout_seconds
        )
        self.dispatcher = NotificationDispatcher(list(settings.notification_targets))
        self.history = HistorySink(settings.state_dir / HISTORY_FILENAME)

    async def run(self) -> None:
        logger.info(
            "Watching %s threshold=$%s interval=%ss targets=%d",
            ", ".join(source.venue.value for source in self.sources),
            f"{self.threshold_usd:,.0f}",
            self.interval_seconds,
            len(self.dispatcher.targets),
        )
        health_task = asyncio.create_task(self._health_loop())
        loop = asyncio.get_running_loop()
        try:
            while True:
                started = loop.time()
                await self.poll_once()
                elapsed = loop.time() - started
                await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
        finally:
            health_task.cancel()
            await asyncio.gather(health_task, return_exceptions=True)
            await self.close()

    async def close(self) -> None:
        await self.dispatcher.close()
        for source in self.sources:
            await source.close()
        await self.labels.close()

    async def poll_once(self) -> None:
        self.metrics.ticks += 1
        for source in self.sources:
            await self._poll_source(source)
        # Actors age on trade time, not wall clock.
        if self._latest_trade_at is not None:
            self.tracker.sweep(self._latest_trade_at)

    async def _poll_source(self, source) -> None:
        venue: Venue = source.venue
        try:
            batch = await source.fetch_latest_trades()
        except FetchError as exc:
            self.metrics.fetch_errors += 1
            logger.warning("%s fetch failed: %s", venue.value, exc)
            return
        except Exception:
            self.metrics.fetch_errors += 1
            logger.exception("%s fetch raised unexpectedly", venue.value)
            return

        if batch:
            newest = max(trade.occurred_at for trade in batch)
            if self._latest_trade_at is None or newest > self._latest_trade_at:
                self._latest_trade_at = newest

        unseen, new_cursor = self.cursors.unseen(venue, batch)
        for trade in unseen:
            try:
                await self._handle_trade(trade)
            except Exception:
                self.metrics.trade_errors += 1
                logger.exception("Failed to process %s trade %s", venue.value, trade.trade_id)
        self.cursors.commit(venue, new_cursor)

    async def _handle_trade(self, trade: Trade) -> AlertRecord | None:
        self.metrics.trades_seen += 1

        if trade.notional_value < self.threshold_usd:
            return None

        self.metrics.trades_over_threshold += 1
        alert = await self._build_alert(trade)

        logger.warning("ALERT %s", format_alert_log(alert))
        self.history.append(alert)
        self.dispatcher.dispatch(alert)
        self.metrics.alerts_raised += 1
        return alert

    async def _build_alert(self, trade: Trade) -> AlertRecord:
        if trade.venue is Venue.KALSHI:
            if not trade.market_label:
                label = await self.labels.describe(trade.market_key)
                if label:
                    trade = replace(trade, market_label=label)
            position = describe(trade.market_key, trade.venue_side)
        else:
            position = trade.outcome_label

        actor = None
        if trade.actor_id:
            actor = self.tracker.record_and_classify(trade.actor_id, trade)

        return AlertRecord(
            trade=trade,
            actor=actor,
            anomalies=classify(trade, actor),
            position=position,
        )

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.health_log_interval_seconds)
            logger.info(
                (
                    "health ticks=%d fetch_errors=%d trades_seen=%d over_threshold=%d "
                    "alerts=%d trade_errors=%d actors=%d"
                ),
                self.metrics.ticks,
                self.metrics.fetch_errors,
                self.metrics.trades_seen,
                self.metrics.trades_over_threshold,
                self.metrics.alerts_raised,
                self.metrics.trade_errors,
                len(self.tracker),
            )
