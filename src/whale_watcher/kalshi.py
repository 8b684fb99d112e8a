from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from .types import FetchError, Side, Trade, Venue

logger = logging.getLogger(__name__)


class KalshiSource:
    venue = Venue.KALSHI

    def __init__(
        self,
        api_base: str,
        api_key_id: str | None = None,
        limit: int = 100,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.limit = limit
        headers = {"Accept": "application/json"}
        if api_key_id:
            headers["KALSHI-ACCESS-KEY"] = api_key_id
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_latest_trades(self) -> list[Trade]:
        try:
            resp = await self._client.get(
                f"{self.api_base}/markets/trades",
                params={"limit": self.limit},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchError(f"Kalshi trades request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise FetchError(f"Unexpected Kalshi trades payload: {type(data).__name__}")
        rows = data.get("trades") or []
        if not isinstance(rows, list):
            raise FetchError("Unexpected Kalshi trades payload: trades is not a list")
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
    trade_id = str(record.get("trade_id") or "").strip()
    ticker = str(record.get("ticker") or "").strip()
    if not trade_id or not ticker:
        return None

    try:
        cents = float(record.get("yes_price", 0) or 0)
        count = float(record.get("count", 0) or 0)
    except (TypeError, ValueError):
        return None
    if not 0 <= cents <= 100 or count < 0:
        return None

    occurred_at = _parse_time(record.get("created_time"))
    if occurred_at is None:
        return None

    taker_side = str(record.get("taker_side") or "").strip().lower()
    # Taking NO contracts opens a position just like taking YES.
    side = Side.SELL if taker_side == "sell" else Side.BUY

    return Trade(
        trade_id=trade_id,
        venue=Venue.KALSHI,
        market_key=ticker,
        side=side,
        price=cents / 100.0,
        size=count,
        occurred_at=occurred_at,
        venue_side=taker_side or None,
    )


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class KalshiMarketResolver:
    """Best-effort ticker -> market title lookup, cached for the process lifetime."""

    def __init__(
        self,
        api_base: str,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._cache: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        await self._client.aclose()

    async def describe(self, ticker: str) -> str | None:
        if ticker in self._cache:
            return self._cache[ticker]

        async with self._lock:
            if ticker in self._cache:
                return self._cache[ticker]
            title = await self._fetch_title(ticker)
            if title is not None:
                self._cache[ticker] = title
            return title

    async def _fetch_title(self, ticker: str) -> str | None:
        try:
            resp = await self._client.get(f"{self.api_base}/markets/{ticker}")
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Kalshi market lookup failed for %s: %s", ticker, exc)
            return None

        market = data.get("market") if isinstance(data, dict) else None
        if not isinstance(market, dict):
            return None
        for key in ("title", "subtitle"):
            value = market.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None
