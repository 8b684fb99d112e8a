from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .types import AlertRecord

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "alert_history.jsonl"


class HistorySink:
    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, alert: AlertRecord) -> None:
        try:
            line = json.dumps(alert.to_dict(), ensure_ascii=False)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to write alert history to %s: %s", self.path, exc)


def read_history(path: Path, limit: int = 20, platform: str = "all") -> list[dict[str, Any]]:
    """Return logged alerts newest first, optionally filtered by platform."""
    if not path.exists():
        return []

    wanted = platform.strip().lower()
    alerts: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict):
                continue
            if wanted != "all" and str(entry.get("platform", "")).lower() != wanted:
                continue
            alerts.append(entry)

    alerts.reverse()
    return alerts[: max(limit, 0)]
