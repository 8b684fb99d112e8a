from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .notifier import NotificationTarget, parse_target


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    alert_threshold_usd: float
    poll_interval_seconds: float
    notification_targets: tuple[NotificationTarget, ...]
    kalshi_api_key_id: str | None
    poly_data_api_base: str
    kalshi_api_base: str
    fetch_limit: int
    fetch_timeout_seconds: float
    health_log_interval_seconds: int
    state_dir: Path
    log_level: str


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _targets(name: str) -> tuple[NotificationTarget, ...]:
    raw = os.getenv(name, "")
    return tuple(parse_target(part) for part in raw.split(",") if part.strip())


def _state_dir() -> Path:
    raw = os.getenv("WHALE_WATCHER_HOME", "").strip()
    if raw:
        return Path(raw).expanduser()
    xdg = os.getenv("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "wwatcher"


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        alert_threshold_usd=_optional_float("ALERT_THRESHOLD_USD", 25000.0),
        poll_interval_seconds=_optional_float("POLL_INTERVAL_SECONDS", 5.0),
        notification_targets=_targets("WEBHOOK_URLS"),
        kalshi_api_key_id=os.getenv("KALSHI_API_KEY_ID", "").strip() or None,
        poly_data_api_base=os.getenv(
            "POLY_DATA_API_BASE", "https://data-api.polymarket.com"
        ).strip(),
        kalshi_api_base=os.getenv(
            "KALSHI_API_BASE", "https://api.elections.kalshi.com/trade-api/v2"
        ).strip(),
        fetch_limit=_optional_int("FETCH_LIMIT", 100),
        fetch_timeout_seconds=_optional_float("FETCH_TIMEOUT_SECONDS", 8.0),
        health_log_interval_seconds=_optional_int("HEALTH_LOG_INTERVAL_SECONDS", 300),
        state_dir=_state_dir(),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )


def ensure_state_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Cannot create state directory {path}: {exc}") from exc
    if not os.access(path, os.W_OK):
        raise ConfigError(f"State directory {path} is not writable")
    return path
