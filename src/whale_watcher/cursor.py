from __future__ import annotations

from collections.abc import Sequence

from .types import Trade, Venue


def filter_unseen(
    cursor: str | None, batch: Sequence[Trade]
) -> tuple[list[Trade], str | None]:
    """Split a newest-first batch into trades not yet evaluated.

    Returns the unseen trades oldest first (processing order) and the id the
    cursor should move to. On a cold start (``cursor is None``) nothing is
    returned so history is not replayed as alerts. If the cursor is no longer
    in the batch every trade is treated as unseen; anything older that fell off
    the venue's recent list is lost.
    """
    if not batch:
        return [], cursor

    newest_id = batch[0].trade_id
    if cursor is None:
        return [], newest_id

    unseen: list[Trade] = []
    for trade in batch:
        if trade.trade_id == cursor:
            break
        unseen.append(trade)

    unseen.reverse()
    return unseen, newest_id


class CursorTracker:
    def __init__(self) -> None:
        self._cursors: dict[Venue, str | None] = {}

    def get(self, venue: Venue) -> str | None:
        return self._cursors.get(venue)

    def unseen(self, venue: Venue, batch: Sequence[Trade]) -> tuple[list[Trade], str | None]:
        return filter_unseen(self.get(venue), batch)

    def commit(self, venue: Venue, trade_id: str | None) -> None:
        if trade_id is not None:
            self._cursors[venue] = trade_id
