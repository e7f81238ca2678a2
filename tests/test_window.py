import pytest

from host_watch.errors import WindowFullError
from host_watch.probe.window import TimeoutWindow, WindowVerdict


def _filled(times, capacity=3, span=100) -> TimeoutWindow:
    w = TimeoutWindow(capacity=capacity, span_seconds=span)
    for t in times:
        w.record_failure(t)
    return w


def test_defaults() -> None:
    w = TimeoutWindow()
    assert w.capacity == 10
    assert w.span_seconds == 120


def test_dense_burst_alerts_and_clears() -> None:
    w = _filled([0, 10, 20])
    assert w.is_full()
    assert w.evaluate() == WindowVerdict.ALERT
    assert len(w) == 0
    assert not w.is_full()


def test_interval_equal_to_span_still_alerts() -> None:
    w = _filled([0, 50, 100])
    assert w.evaluate() == WindowVerdict.ALERT


def test_sparse_window_compacts_without_alert() -> None:
    w = _filled([0, 50, 300])
    assert w.evaluate() == WindowVerdict.COMPACTED
    # 0 and 50 are both more than 100s older than 300.
    assert w.entries == [300]
    assert len(w) == 1


def test_compaction_keeps_recent_entries_in_order() -> None:
    w = _filled([0, 250, 300])
    assert w.evaluate() == WindowVerdict.COMPACTED
    assert w.entries == [250, 300]


def test_evaluate_when_not_full_is_noop() -> None:
    w = _filled([0, 10])
    assert w.evaluate() == WindowVerdict.PENDING
    assert w.evaluate() == WindowVerdict.PENDING
    assert w.entries == [0, 10]


def test_record_when_full_is_rejected() -> None:
    w = _filled([0, 10, 20])
    with pytest.raises(WindowFullError):
        w.record_failure(30)


def test_window_keeps_accepting_after_compaction() -> None:
    w = _filled([0, 50, 300])
    w.evaluate()
    w.record_failure(310)
    w.record_failure(320)
    assert w.is_full()
    assert w.evaluate() == WindowVerdict.ALERT


def test_backwards_clock_is_clamped() -> None:
    w = _filled([100, 90], capacity=5)
    assert w.entries == [100, 100]


def test_evict_and_drain() -> None:
    w = _filled([0, 10, 200], capacity=5)
    assert w.evict_older_than(150) == 2
    assert w.entries == [200]
    assert w.drain() == [200]
    assert len(w) == 0


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        TimeoutWindow(capacity=0)
