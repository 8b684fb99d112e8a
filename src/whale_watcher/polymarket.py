from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from .types import FetchError, Side, Trade, Venue

logger = logging.getLogger(__name__)


class PolymarketSource:
    venue = Venue.POLYMARKET

    def __init__(
        self,
        api_base: str,
        limit: int = 100,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.limit = limit
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_latest_trades(self) -> list[Trade]:
        try:
            resp = await self._client.get(
                f"{self.api_base}/trades",
                params={"limit": self.limit},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchError(f"Polymarket trades request failed: {exc}") from exc

        rows = data.get("data", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise FetchError(f"Unexpected Polymarket trades payload: {type(data).__name__}")
        return parse_trades(rows)


def parse_trades(rows: list[Any]) -> list[Trade]:
    trades: list[Trade] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        trade = _normalize_trade(row)
        if trade is not None:
            trades.append(trade)
    return trades


def _normalize_trade(record: dict[str, Any]) -> Trade | None:
    asset = _string_or_none(record.get("asset") or record.get("asset_id"))
    market_key = _string_or_none(record.get("conditionId")) or asset
    if not market_key:
        return None

    try:
        price = float(record.get("price", 0) or 0)
        size = float(record.get("size", 0) or 0)
        raw_ts = float(record.get("timestamp", 0) or 0)
    except (TypeError, ValueError):
        return None

    if not 0 <= price <= 1 or size < 0 or raw_ts <= 0:
        return None

    if raw_ts > 10**12:
        raw_ts /= 1000

    side_raw = str(record.get("side", "")).upper()
    if side_raw not in ("BUY", "SELL"):
        return None

    tx_hash = _string_or_none(record.get("transactionHash") or record.get("transaction_hash"))
    trade_id = _string_or_none(record.get("id"))
    if not trade_id:
        trade_id = f"{tx_hash or 'notx'}_{asset or market_key}_{size}_{price}"

    return Trade(
        trade_id=trade_id,
        venue=Venue.POLYMARKET,
        market_key=market_key,
        side=Side(side_raw),
        price=price,
        size=size,
        occurred_at=datetime.fromtimestamp(raw_ts, tz=timezone.utc),
        actor_id=_string_or_none(record.get("proxyWallet") or record.get("wallet")),
        market_label=_string_or_none(record.get("title")),
        outcome_label=_string_or_none(record.get("outcome")),
        venue_side=side_raw,
        tx_hash=tx_hash,
    )


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
