from __future__ import annotations

import bisect
import logging
import threading
from datetime import datetime, timedelta

from .types import ActorSnapshot, Trade

logger = logging.getLogger(__name__)

HOUR = timedelta(hours=1)
DAY = timedelta(hours=24)


class _Observations:
    __slots__ = ("timestamps", "values")

    def __init__(self) -> None:
        self.timestamps: list[datetime] = []
        self.values: list[float] = []

    def add(self, ts: datetime, value: float) -> None:
        idx = bisect.bisect_right(self.timestamps, ts)
        self.timestamps.insert(idx, ts)
        self.values.insert(idx, value)

    def evict_before(self, cutoff: datetime) -> None:
        idx = bisect.bisect_left(self.timestamps, cutoff)
        if idx:
            del self.timestamps[:idx]
            del self.values[:idx]

    def window(self, cutoff: datetime) -> tuple[int, float]:
        idx = bisect.bisect_left(self.timestamps, cutoff)
        return len(self.timestamps) - idx, sum(self.values[idx:])

    @property
    def latest(self) -> datetime | None:
        return self.timestamps[-1] if self.timestamps else None


class WalletActivityTracker:
    """Sliding-window transaction history per actor.

    The tracker owns its table; callers only see frozen snapshots. A single
    lock guards the table so record/evict stays atomic if fetching and
    dispatching ever run on separate threads.
    """

    def __init__(self) -> None:
        self._actors: dict[str, _Observations] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._actors)

    def record_and_classify(self, actor_id: str, trade: Trade) -> ActorSnapshot:
        with self._lock:
            obs = self._actors.setdefault(actor_id, _Observations())
            obs.add(trade.occurred_at, trade.notional_value)
            # Windows are anchored on the actor's latest trade, never wall clock.
            now = obs.latest or trade.occurred_at
            obs.evict_before(now - DAY)
            return self._snapshot(actor_id, obs, now)

    def snapshot(self, actor_id: str) -> ActorSnapshot | None:
        with self._lock:
            obs = self._actors.get(actor_id)
            if obs is None or obs.latest is None:
                return None
            now = obs.latest
            obs.evict_before(now - DAY)
            return self._snapshot(actor_id, obs, now)

    def sweep(self, now: datetime) -> int:
        """Drop actors whose latest observation is more than 24h before ``now``."""
        cutoff = now - DAY
        with self._lock:
            stale = [
                actor_id
                for actor_id, obs in self._actors.items()
                if obs.latest is None or obs.latest < cutoff
            ]
            for actor_id in stale:
                del self._actors[actor_id]
        if stale:
            logger.debug("Swept %d inactive actors", len(stale))
        return len(stale)

    @staticmethod
    def _snapshot(actor_id: str, obs: _Observations, now: datetime) -> ActorSnapshot:
        hour_count, hour_volume = obs.window(now - HOUR)
        day_count, day_volume = obs.window(now - DAY)
        return ActorSnapshot(
            actor_id=actor_id,
            tx_count_last_hour=hour_count,
            tx_count_last_day=day_count,
            volume_last_hour=hour_volume,
            volume_last_day=day_volume,
        )
