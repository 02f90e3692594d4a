## csvwatch/watcher.py

from __future__ import annotations
import os, sys, threading, time
from typing import List, Optional

from .alerts import FailureReporter
from .bus import NotificationBus
from .errors import ConfigError, ListingError
from .pipeline import Importer
from .schemas import ChangeEvent, WatchConfig, WatchTarget
from .tracker import ChangeTracker
from .utils import logger, load_yaml, setup_logging


class DirWatcher:
    """Polls one directory and announces each new file name once.

    Cycles run one at a time on the calling thread. The seen set belongs
    to this watcher alone, so it needs no locking. A name that is deleted
    and recreated is not announced again.
    """

    def __init__(self, bus: Optional[NotificationBus] = None, tracker: Optional[ChangeTracker] = None,
                 reporter=None, halt_on_listing_error: bool = False):
        self.reporter = reporter
        self.bus = bus if bus is not None else NotificationBus(reporter=reporter)
        self.tracker = tracker if tracker is not None else ChangeTracker()
        self.halt_on_listing_error = halt_on_listing_error
        self.cycles = 0
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._running = False

    def list_dir(self, directory: str) -> List[str]:
        try:
            with os.scandir(directory) as it:
                return [e.name for e in it if not e.is_dir()]
        except OSError as e:
            raise ListingError(directory, e.strerror or str(e)) from e

    def poll_once(self, directory: str) -> List[ChangeEvent]:
        emitted = []
        for name in self.list_dir(directory):
            if self.tracker.has_seen(name): continue
            event = ChangeEvent(filename=name)
            self.bus.publish(event)
            self.tracker.mark_seen(name)
            emitted.append(event)
        self.cycles += 1
        return emitted

    def watch(self, directory: str, interval: float):
        target = WatchTarget(directory=directory, interval=interval)
        self._claim()
        self._run_claimed(target)

    def _run_claimed(self, target: WatchTarget):
        try:
            self._loop(target)
        finally:
            with self._lock:
                self._running = False

    def _claim(self):
        # one poll loop per watcher; the seen set is not shared between loops
        with self._lock:
            if self._running:
                raise RuntimeError("watcher is already polling")
            self._running = True

    def _loop(self, target: WatchTarget):
        logger.info(f"Watching {target.directory} every {target.interval:g}s")
        next_at = time.monotonic()
        while not self._stop.is_set():
            try:
                self.poll_once(target.directory)
            except ListingError as e:
                self._report(e)
                if self.halt_on_listing_error:
                    raise
            next_at += target.interval
            delay = next_at - time.monotonic()
            if delay < 0:
                # overran; start the next cycle now rather than catching up
                next_at = time.monotonic()
                delay = 0
            if self._stop.wait(delay):
                break
        logger.info(f"Stopped watching {target.directory}")

    def start(self, directory: str, interval: float) -> threading.Thread:
        target = WatchTarget(directory=directory, interval=interval)
        self._claim()
        t = threading.Thread(target=self._run_claimed, args=(target,), name="csvwatch-poll", daemon=True)
        t.start()
        return t

    def stop(self):
        self._stop.set()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _report(self, error: ListingError):
        if self.reporter is not None:
            self.reporter.report(error.directory, error)
        else:
            logger.error(str(error))


def build(cfg: WatchConfig):
    reporter = FailureReporter(email=cfg.alerts.email, slack=cfg.alerts.slack)
    watcher = DirWatcher(reporter=reporter, halt_on_listing_error=cfg.halt_on_listing_error)
    importer = Importer(watcher.bus, cfg.watch_path, reporter=reporter, max_workers=cfg.max_workers)
    return watcher, importer


def run(cfg_path: str = "config.yaml") -> int:
    try:
        cfg = WatchConfig.from_dict(load_yaml(cfg_path))
    except ConfigError as e:
        print(f"csvwatch: {e}", file=sys.stderr)
        return 2
    setup_logging(cfg.log_dir)
    logger.info(cfg.name)

    watcher, importer = build(cfg)
    target = cfg.target()
    try:
        watcher.watch(target.directory, target.interval)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except ListingError:
        return 1
    finally:
        watcher.stop()
        importer.close()
    return 0


def main():
    sys.exit(run(sys.argv[1] if len(sys.argv) > 1 else "config.yaml"))


if __name__ == "__main__":
    main()
