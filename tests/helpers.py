from __future__ import annotations

from datetime import datetime, timedelta, timezone

from whale_watcher.types import Side, Trade, Venue

BASE_TIME = datetime(2026, 1, 8, 9, 0, tzinfo=timezone.utc)


def make_trade(
    trade_id: str = "t1",
    *,
    venue: Venue = Venue.POLYMARKET,
    side: Side = Side.BUY,
    price: float = 0.5,
    size: float = 1000.0,
    minutes: float = 0,
    actor_id: str | None = None,
    market_key: str = "0xmarket",
    market_label: str | None = "Will X happen?",
    outcome_label: str | None = "Yes",
    venue_side: str | None = None,
    tx_hash: str | None = None,
) -> Trade:
    return Trade(
        trade_id=trade_id,
        venue=venue,
        market_key=market_key,
        side=side,
        price=price,
        size=size,
        occurred_at=BASE_TIME + timedelta(minutes=minutes),
        actor_id=actor_id,
        market_label=market_label,
        outcome_label=outcome_label,
        venue_side=venue_side,
        tx_hash=tx_hash,
    )
