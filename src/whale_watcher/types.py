from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Venue(str, Enum):
    POLYMARKET = "Polymarket"
    KALSHI = "Kalshi"


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class AnomalyTag(str, Enum):
    # Declaration order is display severity order.
    HEAVY_ACTOR = "HeavyActor"
    REPEAT_ACTOR = "RepeatActor"
    COORDINATED_VOLUME = "CoordinatedVolume"
    EXTREME_CONFIDENCE = "ExtremeConfidence"
    CONTRARIAN_POSITION = "ContrarianPosition"
    OVERSIZED_POSITION = "OversizedPosition"
    MAJOR_CAPITAL_DEPLOYMENT = "MajorCapitalDeployment"
    HIGH_CONVICTION_LIKELY = "HighConvictionLikely"
    ASYMMETRIC_INFO_HEDGE = "AsymmetricInfoHedge"


@dataclass(frozen=True)
class Trade:
    trade_id: str
    venue: Venue
    market_key: str
    side: Side
    price: float
    size: float
    occurred_at: datetime
    actor_id: str | None = None
    market_label: str | None = None
    outcome_label: str | None = None
    venue_side: str | None = None
    tx_hash: str | None = None

    @property
    def notional_value(self) -> float:
        return self.price * self.size

    @property
    def action(self) -> str:
        # Kalshi reports the contract taken (YES/NO), Polymarket the direction.
        return (self.venue_side or self.side.value).upper()

    @property
    def timestamp_iso(self) -> str:
        return self.occurred_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ActorSnapshot:
    actor_id: str
    tx_count_last_hour: int
    tx_count_last_day: int
    volume_last_hour: float
    volume_last_day: float

    @property
    def is_repeat_actor(self) -> bool:
        return self.tx_count_last_hour >= 2

    @property
    def is_heavy_actor(self) -> bool:
        return self.tx_count_last_day >= 5

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions_last_hour": self.tx_count_last_hour,
            "transactions_last_day": self.tx_count_last_day,
            "total_value_hour": self.volume_last_hour,
            "total_value_day": self.volume_last_day,
            "is_repeat_actor": self.is_repeat_actor,
            "is_heavy_actor": self.is_heavy_actor,
        }


@dataclass(frozen=True)
class AlertRecord:
    trade: Trade
    actor: ActorSnapshot | None
    anomalies: tuple[AnomalyTag, ...]
    position: str | None

    @property
    def is_exit(self) -> bool:
        return self.trade.side is Side.SELL

    @property
    def alert_type(self) -> str:
        return "WHALE_EXIT" if self.is_exit else "WHALE_ENTRY"

    def to_dict(self) -> dict[str, Any]:
        trade = self.trade
        payload: dict[str, Any] = {
            "platform": trade.venue.value,
            "alert_type": self.alert_type,
            "action": trade.action,
            "value": trade.notional_value,
            "price": trade.price,
            "price_percent": round(trade.price * 100),
            "size": trade.size,
            "timestamp": trade.timestamp_iso,
            "market_title": trade.market_label,
            "outcome": self.position or trade.outcome_label,
            "trade_id": trade.trade_id,
            "anomalies": [tag.value for tag in self.anomalies],
        }
        if trade.actor_id:
            payload["wallet_id"] = trade.actor_id
        if self.actor is not None:
            payload["wallet_activity"] = self.actor.to_dict()
        return payload


@dataclass(frozen=True)
class DeliveryResult:
    target: str
    ok: bool
    attempts: int
    error: str | None = None


class FetchError(RuntimeError):
    pass
