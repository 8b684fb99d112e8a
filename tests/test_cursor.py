from helpers import make_trade

from whale_watcher.cursor import CursorTracker, filter_unseen
from whale_watcher.types import Venue


def _batch(*ids: str):
    return [make_trade(trade_id) for trade_id in ids]


def test_cold_start_returns_nothing_and_records_newest() -> None:
    unseen, cursor = filter_unseen(None, _batch("T5", "T4", "T3"))
    assert unseen == []
    assert cursor == "T5"


def test_unseen_trades_come_back_oldest_first() -> None:
    unseen, cursor = filter_unseen("T5", _batch("T8", "T7", "T6", "T5", "T4"))
    assert [t.trade_id for t in unseen] == ["T6", "T7", "T8"]
    assert cursor == "T8"


def test_nothing_new_keeps_cursor_at_newest() -> None:
    unseen, cursor = filter_unseen("T5", _batch("T5", "T4"))
    assert unseen == []
    assert cursor == "T5"


def test_empty_batch_keeps_previous_cursor() -> None:
    assert filter_unseen("T5", []) == ([], "T5")
    assert filter_unseen(None, []) == ([], None)


def test_cursor_missing_from_batch_treats_everything_as_unseen() -> None:
    unseen, cursor = filter_unseen("T1", _batch("T9", "T8"))
    assert [t.trade_id for t in unseen] == ["T8", "T9"]
    assert cursor == "T9"


def test_tracker_never_repeats_trades_across_ticks() -> None:
    tracker = CursorTracker()
    alerted: list[str] = []
    batches = [
        _batch("T3", "T2", "T1"),
        _batch("T5", "T4", "T3", "T2"),
        _batch("T6", "T5", "T4"),
        _batch("T6", "T5"),
    ]
    for batch in batches:
        unseen, new_cursor = tracker.unseen(Venue.POLYMARKET, batch)
        alerted.extend(t.trade_id for t in unseen)
        tracker.commit(Venue.POLYMARKET, new_cursor)

    assert alerted == ["T4", "T5", "T6"]
    assert tracker.get(Venue.POLYMARKET) == "T6"
    assert tracker.get(Venue.KALSHI) is None
