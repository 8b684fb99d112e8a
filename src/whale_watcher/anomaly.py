from __future__ import annotations

from .types import ActorSnapshot, AnomalyTag, Trade

COORDINATED_VOLUME_USD = 200_000.0
EXTREME_CONFIDENCE_PRICE = 0.95
CONTRARIAN_PRICE = 0.05
OVERSIZED_POSITION_SIZE = 100_000.0
MAJOR_CAPITAL_USD = 100_000.0
HIGH_CONVICTION_PRICE = 0.90
HIGH_CONVICTION_SIZE = 50_000.0
ASYMMETRIC_PRICE = 0.20
ASYMMETRIC_VALUE_USD = 50_000.0

_SEVERITY = {tag: idx for idx, tag in enumerate(AnomalyTag)}


def classify(trade: Trade, actor: ActorSnapshot | None) -> tuple[AnomalyTag, ...]:
    tags: set[AnomalyTag] = set()

    if actor is not None:
        if actor.is_heavy_actor:
            tags.add(AnomalyTag.HEAVY_ACTOR)
        elif actor.is_repeat_actor:
            tags.add(AnomalyTag.REPEAT_ACTOR)
        if actor.volume_last_hour > COORDINATED_VOLUME_USD:
            tags.add(AnomalyTag.COORDINATED_VOLUME)

    price = trade.price
    size = trade.size
    value = trade.notional_value

    if price > EXTREME_CONFIDENCE_PRICE:
        tags.add(AnomalyTag.EXTREME_CONFIDENCE)
    if price < CONTRARIAN_PRICE:
        tags.add(AnomalyTag.CONTRARIAN_POSITION)
    if size > OVERSIZED_POSITION_SIZE:
        tags.add(AnomalyTag.OVERSIZED_POSITION)
    if value > MAJOR_CAPITAL_USD:
        tags.add(AnomalyTag.MAJOR_CAPITAL_DEPLOYMENT)
    if price > HIGH_CONVICTION_PRICE and size > HIGH_CONVICTION_SIZE:
        tags.add(AnomalyTag.HIGH_CONVICTION_LIKELY)
    if price < ASYMMETRIC_PRICE and value > ASYMMETRIC_VALUE_USD:
        tags.add(AnomalyTag.ASYMMETRIC_INFO_HEDGE)

    return tuple(sorted(tags, key=_SEVERITY.__getitem__))


def describe_anomaly(tag: AnomalyTag, trade: Trade, actor: ActorSnapshot | None) -> str:
    if tag is AnomalyTag.HEAVY_ACTOR and actor is not None:
        return (
            f"Heavy actor: {actor.tx_count_last_day} transactions worth "
            f"${actor.volume_last_day:,.2f} in last 24h"
        )
    if tag is AnomalyTag.REPEAT_ACTOR and actor is not None:
        return f"Repeat actor: {actor.tx_count_last_hour} transactions in last hour"
    if tag is AnomalyTag.COORDINATED_VOLUME and actor is not None:
        return f"Coordinated activity: ${actor.volume_last_hour:,.0f} volume in past hour"
    if tag is AnomalyTag.EXTREME_CONFIDENCE:
        return f"Extreme confidence bet ({trade.price * 100:.1f}% probability)"
    if tag is AnomalyTag.CONTRARIAN_POSITION:
        return f"Contrarian position ({trade.price * 100:.1f}% probability)"
    if tag is AnomalyTag.OVERSIZED_POSITION:
        return "Exceptionally large position size"
    if tag is AnomalyTag.MAJOR_CAPITAL_DEPLOYMENT:
        return f"Major capital deployment: ${trade.notional_value:,.0f}"
    if tag is AnomalyTag.HIGH_CONVICTION_LIKELY:
        return "High conviction in likely outcome"
    if tag is AnomalyTag.ASYMMETRIC_INFO_HEDGE:
        return "Significant bet on unlikely outcome, possible hedge or information asymmetry"
    return tag.value
