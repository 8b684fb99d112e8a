import json

from helpers import make_trade

from whale_watcher.history import HistorySink, read_history
from whale_watcher.types import AlertRecord, Venue


def _alert(trade_id: str, venue: Venue = Venue.POLYMARKET) -> AlertRecord:
    return AlertRecord(
        trade=make_trade(trade_id, venue=venue, size=100_000),
        actor=None,
        anomalies=(),
        position=None,
    )


def test_history_round_trip_newest_first(tmp_path) -> None:
    path = tmp_path / "alert_history.jsonl"
    sink = HistorySink(path)
    sink.append(_alert("a"))
    sink.append(_alert("b", Venue.KALSHI))
    sink.append(_alert("c"))

    entries = read_history(path)
    assert [e["trade_id"] for e in entries] == ["c", "b", "a"]
    assert entries[0]["alert_type"] == "WHALE_ENTRY"


def test_history_platform_filter_and_limit(tmp_path) -> None:
    path = tmp_path / "alert_history.jsonl"
    sink = HistorySink(path)
    for idx in range(5):
        sink.append(_alert(f"p{idx}"))
    sink.append(_alert("k0", Venue.KALSHI))

    assert [e["trade_id"] for e in read_history(path, platform="kalshi")] == ["k0"]
    assert [e["trade_id"] for e in read_history(path, limit=2, platform="Polymarket")] == ["p4", "p3"]


def test_history_skips_corrupt_lines(tmp_path) -> None:
    path = tmp_path / "alert_history.jsonl"
    path.write_text('not json\n\n[1,2]\n' + json.dumps({"platform": "Kalshi"}) + "\n")
    assert read_history(path) == [{"platform": "Kalshi"}]


def test_missing_history_is_empty(tmp_path) -> None:
    assert read_history(tmp_path / "nope.jsonl") == []


def test_append_failure_is_swallowed(tmp_path) -> None:
    sink = HistorySink(tmp_path / "missing-dir" / "alert_history.jsonl")
    sink.append(_alert("a"))
    assert not sink.path.exists()
