import threading
import time

import pytest
from pydantic import ValidationError

from csvwatch.errors import ListingError
from csvwatch.watcher import DirWatcher


def names(events):
    return sorted(e.filename for e in events)


def wait_for(cond, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.01)
    return cond()


def test_first_cycle_announces_each_file_once(watcher, watch_dir, received):
    for n in ("a.csv", "b.csv", "notes.txt"):
        (watch_dir / n).write_text("x")

    first = watcher.poll_once(str(watch_dir))
    for _ in range(5):
        assert watcher.poll_once(str(watch_dir)) == []

    assert names(first) == ["a.csv", "b.csv", "notes.txt"]
    assert names(received) == ["a.csv", "b.csv", "notes.txt"]
    assert watcher.cycles == 6


def test_new_file_detected_on_next_cycle(watcher, watch_dir, received):
    (watch_dir / "a.csv").write_text("x")
    watcher.poll_once(str(watch_dir))
    assert names(received) == ["a.csv"]

    (watch_dir / "b.csv").write_text("x")
    assert names(received) == ["a.csv"]
    assert names(watcher.poll_once(str(watch_dir))) == ["b.csv"]
    assert names(received) == ["a.csv", "b.csv"]


def test_recreated_file_is_not_announced_again(watcher, watch_dir, received):
    p = watch_dir / "a.csv"
    p.write_text("old")
    watcher.poll_once(str(watch_dir))
    p.unlink()
    watcher.poll_once(str(watch_dir))
    p.write_text("new content")
    assert watcher.poll_once(str(watch_dir)) == []
    assert names(received) == ["a.csv"]


def test_subdirectories_are_skipped(watcher, watch_dir, received):
    (watch_dir / "nested").mkdir()
    (watch_dir / "nested" / "inner.csv").write_text("x")
    (watch_dir / "top.csv").write_text("x")
    watcher.poll_once(str(watch_dir))
    assert names(received) == ["top.csv"]


def test_marked_seen_even_if_subscriber_fails(watcher, bus, watch_dir, reporter):
    bus.subscribe(lambda e: 1 / 0)
    (watch_dir / "a.csv").write_text("x")
    watcher.poll_once(str(watch_dir))
    assert watcher.tracker.has_seen("a.csv")
    assert watcher.poll_once(str(watch_dir)) == []
    assert len(reporter.recent) == 1


def test_missing_directory_raises_listing_error(watcher, tmp_path):
    with pytest.raises(ListingError) as exc:
        watcher.poll_once(str(tmp_path / "nope"))
    assert exc.value.directory == str(tmp_path / "nope")


def test_listing_error_does_not_stop_the_loop(watcher, tmp_path, reporter, received):
    missing = tmp_path / "later"
    t = watcher.start(str(missing), 0.02)
    try:
        assert wait_for(lambda: len(reporter.recent) >= 2)
        missing.mkdir()
        (missing / "a.csv").write_text("x")
        assert wait_for(lambda: names(received) == ["a.csv"])
    finally:
        watcher.stop()
        t.join(timeout=2)
    assert not t.is_alive()
    assert "ListingError" in reporter.recent[0][1]


def test_halt_on_listing_error(tmp_path, reporter):
    w = DirWatcher(reporter=reporter, halt_on_listing_error=True)
    with pytest.raises(ListingError):
        w.watch(str(tmp_path / "nope"), 0.01)
    assert len(reporter.recent) == 1


def test_stop_ends_watch(watcher, watch_dir):
    t = watcher.start(str(watch_dir), 0.05)
    assert wait_for(lambda: watcher.cycles >= 1)
    watcher.stop()
    t.join(timeout=2)
    assert not t.is_alive()
    assert watcher.stopped


def test_stop_interrupts_long_sleep(watcher, watch_dir):
    t = watcher.start(str(watch_dir), 60)
    assert wait_for(lambda: watcher.cycles >= 1)
    started = time.monotonic()
    watcher.stop()
    t.join(timeout=2)
    assert not t.is_alive()
    assert time.monotonic() - started < 2


def test_cycles_do_not_overlap(watcher, bus, watch_dir):
    active = []
    overlaps = []
    lock = threading.Lock()

    def slow(event):
        with lock:
            active.append(event)
            if len(active) > 1:
                overlaps.append(event)
        time.sleep(0.05)
        with lock:
            active.remove(event)

    bus.subscribe(slow)
    for i in range(3):
        (watch_dir / f"f{i}.csv").write_text("x")
    t = watcher.start(str(watch_dir), 0.01)
    try:
        assert wait_for(lambda: len(watcher.tracker) == 3 and watcher.cycles >= 3)
    finally:
        watcher.stop()
        t.join(timeout=2)
    assert overlaps == []


def test_invalid_interval_is_rejected(watcher, watch_dir):
    with pytest.raises(ValidationError):
        watcher.watch(str(watch_dir), 0)


def test_steady_arrivals_are_picked_up(watcher, watch_dir, received):
    # 100 ms polls, a new file every 150 ms; allow slack for slow machines
    t = watcher.start(str(watch_dir), 0.1)
    try:
        started = time.monotonic()
        i = 0
        while time.monotonic() - started < 0.5:
            (watch_dir / f"f{i}.csv").write_text("x")
            i += 1
            time.sleep(0.15)
        assert wait_for(lambda: len(received) >= 3, timeout=1.0)
    finally:
        watcher.stop()
        t.join(timeout=2)
    assert len({e.filename for e in received}) == len(received)


def test_second_start_is_refused(watcher, watch_dir):
    t = watcher.start(str(watch_dir), 0.05)
    try:
        assert watcher.running
        with pytest.raises(RuntimeError):
            watcher.start(str(watch_dir), 0.05)
        with pytest.raises(RuntimeError):
            watcher.watch(str(watch_dir), 0.05)
    finally:
        watcher.stop()
        t.join(timeout=2)
    assert not watcher.running


def test_each_file_published_once_with_slow_subscriber(watcher, bus, watch_dir, received):
    bus.subscribe(lambda e: time.sleep(0.01))
    for i in range(20):
        (watch_dir / f"f{i}.csv").write_text("x")
    t = watcher.start(str(watch_dir), 0.01)
    with pytest.raises(RuntimeError):
        watcher.start(str(watch_dir), 0.01)
    try:
        assert wait_for(lambda: len(watcher.tracker) == 20 and watcher.cycles >= 3)
    finally:
        watcher.stop()
        t.join(timeout=2)
    assert len(received) == 20
