from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

from .config import ConfigError, Settings, ensure_state_dir, load_settings
from .history import HISTORY_FILENAME, read_history
from .notifier import NotificationDispatcher, mask_target
from .service import MonitorService
from .ticker import describe
from .types import ActorSnapshot, AlertRecord, Side, Trade, Venue


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whale-watcher",
        description="Monitor large transactions on Polymarket and Kalshi",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Watch for large transactions")
    watch.add_argument("-t", "--threshold", type=float, default=None, help="Minimum USD notional")
    watch.add_argument("-i", "--interval", type=float, default=None, help="Polling interval (s)")

    history = sub.add_parser("history", help="View alert history")
    history.add_argument("-l", "--limit", type=int, default=20)
    history.add_argument("-p", "--platform", default="all", help="polymarket, kalshi or all")
    history.add_argument("--json", action="store_true", help="Output as JSON")

    sub.add_parser("status", help="Show current configuration")
    sub.add_parser("test-webhook", help="Send sample alerts to every notification target")
    return parser


async def _watch(settings: Settings, threshold: float | None, interval: float | None) -> None:
    service = MonitorService(settings, threshold_usd=threshold, interval_seconds=interval)
    await service.run()


def show_status(settings: Settings) -> None:
    print("Whale Watcher status")
    print(f"  Threshold:   ${settings.alert_threshold_usd:,.0f}")
    print(f"  Interval:    {settings.poll_interval_seconds:g}s")
    print(f"  Polymarket:  {settings.poly_data_api_base} (public access)")
    kalshi_auth = "key configured" if settings.kalshi_api_key_id else "public data"
    print(f"  Kalshi:      {settings.kalshi_api_base} ({kalshi_auth})")
    print(f"  State dir:   {settings.state_dir}")
    if settings.notification_targets:
        for target in settings.notification_targets:
            print(f"  Notify:      {mask_target(target)}")
    else:
        print("  Notify:      not configured")


def show_history(settings: Settings, limit: int, platform: str, as_json: bool) -> None:
    path = settings.state_dir / HISTORY_FILENAME
    alerts = read_history(path, limit=limit, platform=platform)
    if as_json:
        print(json.dumps(alerts, indent=2, ensure_ascii=False))
        return
    if not alerts:
        print("No alerts found matching filters.")
        return

    print(f"Showing {len(alerts)} most recent alerts")
    for idx, alert in enumerate(alerts, start=1):
        print(f"#{idx} | {alert.get('platform', 'Unknown')} | {alert.get('alert_type', 'UNKNOWN')}")
        print(f"  Time:    {alert.get('timestamp', 'Unknown')}")
        print(f"  Market:  {alert.get('market_title') or 'Unknown market'}")
        if alert.get("outcome"):
            print(f"  Outcome: {alert['outcome']}")
        print(f"  Action:  {alert.get('action', 'UNKNOWN')} | Value: ${alert.get('value', 0):,.2f}")
        activity = alert.get("wallet_activity") or {}
        if activity.get("transactions_last_hour", 0) > 1:
            print(f"  Wallet:  {activity['transactions_last_hour']} txns in last hour")
        if alert.get("anomalies"):
            print(f"  Flags:   {', '.join(alert['anomalies'])}")


def sample_alerts() -> list[AlertRecord]:
    now = datetime.now(timezone.utc)
    buy = Trade(
        trade_id="test-buy",
        venue=Venue.POLYMARKET,
        market_key="test-market",
        side=Side.BUY,
        price=0.65,
        size=76923.08,
        occurred_at=now,
        actor_id="0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
        market_label="Will Bitcoin reach $100k by end of 2026?",
        outcome_label="Yes",
    )
    sell = Trade(
        trade_id="test-sell",
        venue=Venue.POLYMARKET,
        market_key="test-market",
        side=Side.SELL,
        price=0.42,
        size=95238.10,
        occurred_at=now,
        actor_id="0x8f3a21Bc44d9E0c7a61f5d2B9e0cA4d7F1b3e902",
        market_label="Will Bitcoin reach $100k by end of 2026?",
        outcome_label="Yes",
        venue_side="SELL",
    )
    kalshi = Trade(
        trade_id="test-kalshi",
        venue=Venue.KALSHI,
        market_key="KXBTCD-26JAN16-T96999.99",
        side=Side.BUY,
        price=0.54,
        size=64814.81,
        occurred_at=now,
        market_label="Bitcoin price on Jan 16, 2026?",
        venue_side="no",
    )
    activity = ActorSnapshot(
        actor_id=buy.actor_id or "",
        tx_count_last_hour=2,
        tx_count_last_day=5,
        volume_last_hour=125000.0,
        volume_last_day=380000.0,
    )
    return [
        AlertRecord(trade=buy, actor=activity, anomalies=(), position="Yes"),
        AlertRecord(trade=sell, actor=None, anomalies=(), position="Yes"),
        AlertRecord(
            trade=kalshi,
            actor=None,
            anomalies=(),
            position=describe(kalshi.market_key, kalshi.venue_side),
        ),
    ]


async def _test_webhook(settings: Settings) -> int:
    if not settings.notification_targets:
        print("No notification target configured. Set WEBHOOK_URLS.")
        return 1

    dispatcher = NotificationDispatcher(list(settings.notification_targets))
    failures = 0
    try:
        for alert in sample_alerts():
            for target in dispatcher.targets:
                result = await dispatcher.deliver(target, alert)
                status = "ok" if result.ok else f"FAILED ({result.error})"
                print(f"{alert.alert_type} -> {mask_target(target)}: {status}")
                failures += 0 if result.ok else 1
    finally:
        await dispatcher.close()
    return 1 if failures else 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        ensure_state_dir(settings.state_dir)
    except (ConfigError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.command == "status":
        show_status(settings)
    elif args.command == "history":
        show_history(settings, args.limit, args.platform, args.json)
    elif args.command == "test-webhook":
        raise SystemExit(asyncio.run(_test_webhook(settings)))
    elif args.command == "watch":
        try:
            asyncio.run(_watch(settings, args.threshold, args.interval))
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
