"""
Shared fixtures for the csvwatch test suite.
"""

import pytest

from csvwatch.alerts import FailureReporter
from csvwatch.bus import NotificationBus
from csvwatch.watcher import DirWatcher


@pytest.fixture
def watch_dir(tmp_path):
    """An empty directory to watch."""
    d = tmp_path / "incoming"
    d.mkdir()
    return d


@pytest.fixture
def reporter():
    """Reporter with every alert channel off."""
    return FailureReporter()


@pytest.fixture
def bus(reporter):
    return NotificationBus(reporter=reporter)


@pytest.fixture
def watcher(bus, reporter):
    w = DirWatcher(bus=bus, reporter=reporter)
    yield w
    w.stop()


@pytest.fixture
def received(bus):
    """Collects every event published on the bus."""
    events = []
    bus.subscribe(events.append)
    return events
