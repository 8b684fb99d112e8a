from __future__ import annotations

import json
import re

from .anomaly import describe_anomaly
from .types import ActorSnapshot, AlertRecord, Side, Venue

_ALLOWED_PUNCTUATION = set(".,:;!?'-/$%&+@=")
_OPEN_BRACKETS = set("([{")
_CLOSE_BRACKETS = set(")]}")
_SPACES = re.compile(r"\s+")


def sanitize_text(text: str | None) -> str:
    """Keep alphanumerics, spaces and a small punctuation set.

    Every bracket style collapses to plain parentheses so free-text renderers
    downstream never see unbalanced markup.
    """
    if not text:
        return ""
    out: list[str] = []
    for ch in text:
        if ch.isalnum() or ch in _ALLOWED_PUNCTUATION:
            out.append(ch)
        elif ch in _OPEN_BRACKETS:
            out.append("(")
        elif ch in _CLOSE_BRACKETS:
            out.append(")")
        elif ch.isspace():
            out.append(" ")
    return _SPACES.sub(" ", "".join(out)).strip()


def side_to_text(side: Side) -> str:
    if side is Side.SELL:
        return "Sold"
    return "Bought"


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 10:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def build_trade_link(tx_hash: str | None) -> str | None:
    if not tx_hash:
        return None
    return f"https://polygonscan.com/tx/{tx_hash}"


def build_market_link(venue: Venue, market_title: str | None) -> str | None:
    if venue is Venue.KALSHI:
        return "https://kalshi.com/markets"
    if not market_title:
        return None
    slug = re.sub(r"[^a-z0-9-]+", "-", market_title.lower())
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    if not slug:
        return None
    return f"https://polymarket.com/markets/{slug}"


def actor_status(actor: ActorSnapshot) -> str:
    if actor.is_heavy_actor:
        return "HEAVY ACTOR"
    if actor.is_repeat_actor:
        return "REPEAT ACTOR"
    return "NEW ACTOR"


def alert_title(alert: AlertRecord) -> str:
    if alert.is_exit:
        return "🚨 WHALE EXITING POSITION"
    return "🐋 WHALE ENTRY DETECTED"


def format_push_message(alert: AlertRecord) -> str:
    trade = alert.trade
    lines = [
        f"Platform: {trade.venue.value}",
        f"Market: {sanitize_text(trade.market_label) or 'Unknown'}",
    ]
    position = sanitize_text(alert.position or trade.outcome_label)
    if position:
        lines.append(f"Action: {trade.action} {position}")
    else:
        lines.append(f"Action: {trade.action}")
    lines.append(f"Amount: ${trade.notional_value:,.2f}")
    lines.append(f"Price: ${trade.price:.4f} ({trade.price * 100:.1f}%)")
    lines.append(f"Size: {trade.size:,.0f} contracts")
    if trade.actor_id:
        lines.append(f"Wallet: {short_address(trade.actor_id)}")
    tx_link = build_trade_link(trade.tx_hash)
    if tx_link:
        lines.append(f"Tx: {tx_link}")

    actor = alert.actor
    if actor is not None:
        lines.extend(
            [
                "",
                "Wallet Activity:",
                f"├─ Txns (1h): {actor.tx_count_last_hour}",
                f"├─ Txns (24h): {actor.tx_count_last_day}",
                f"├─ Volume (1h): ${actor.volume_last_hour:,.2f}",
                f"├─ Volume (24h): ${actor.volume_last_day:,.2f}",
                f"└─ Status: {actor_status(actor)}",
            ]
        )

    if alert.anomalies:
        lines.append("")
        lines.append("Anomalies:")
        for tag in alert.anomalies:
            lines.append(f"- {describe_anomaly(tag, trade, actor)}")

    return "\n".join(lines)


def format_webhook_message(alert: AlertRecord, payload: dict) -> str:
    trade = alert.trade
    if alert.is_exit:
        header = "📉🚨🐋 WHALE EXITING POSITION"
        action = "📉 SELL"
    else:
        header = "📈🚨🐋 WHALE ENTERING POSITION"
        action = f"📈 {trade.action}"

    lines = [
        header,
        "",
        f"📱 Platform: {trade.venue.value}",
        f"📊 Action: {action}",
    ]
    market = sanitize_text(trade.market_label)
    if market:
        lines.append(f"📋 Market: {market}")
    position = sanitize_text(alert.position or trade.outcome_label)
    if position:
        lines.append(f"🎯 Position: {position}")
    lines.append(f"💰 Amount: ${trade.notional_value:,.2f}")
    lines.append(f"🎲 Price: ${trade.price:.4f} ({trade.price * 100:.1f}%)")
    for tag in alert.anomalies:
        lines.append(f"⚠️ {describe_anomaly(tag, trade, alert.actor)}")
    lines.extend(["", "```json", json.dumps(payload, indent=2, ensure_ascii=False), "```"])
    return "\n".join(lines).strip()


def format_alert_log(alert: AlertRecord) -> str:
    trade = alert.trade
    tags = ",".join(tag.value for tag in alert.anomalies) or "-"
    market = sanitize_text(trade.market_label) or trade.market_key
    position = sanitize_text(alert.position or trade.outcome_label) or "N/A"
    return (
        f"[{trade.venue.value}] {alert.alert_type} {side_to_text(trade.side)} "
        f"${trade.notional_value:,.0f} @ {trade.price:.4f} market={market!r} "
        f"position={position!r} wallet={short_address(trade.actor_id)} anomalies={tags}"
    )
