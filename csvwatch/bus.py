## csvwatch/bus.py

from __future__ import annotations
import threading
from typing import Callable, List, Optional

from .schemas import ChangeEvent
from .utils import logger

Handler = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, bus: "NotificationBus", handler: Handler):
        self.bus = bus
        self.handler = handler

    def cancel(self):
        self.bus.unsubscribe(self.handler)


class NotificationBus:
    """In-process publish/subscribe for ChangeEvents.

    publish() delivers synchronously to a snapshot of the handlers, in
    registration order, and returns once every handler has run. A handler
    that raises is logged and reported; the remaining handlers still run.
    Events are not retained.
    """

    def __init__(self, reporter=None):
        self.reporter = reporter
        self._handlers: List[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> Subscription:
        with self._lock:
            self._handlers.append(handler)
        return Subscription(self, handler)

    def unsubscribe(self, handler: Handler) -> bool:
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    @property
    def handlers(self) -> List[Handler]:
        with self._lock:
            return list(self._handlers)

    def publish(self, event: ChangeEvent) -> int:
        delivered = 0
        for handler in self.handlers:
            try:
                handler(event)
            except Exception as e:
                name = getattr(handler, "__qualname__", repr(handler))
                logger.exception(f"Subscriber {name} failed on {event.filename}: {e}")
                self._report(f"subscriber {name} ({event.filename})", e)
            else:
                delivered += 1
        return delivered

    def _report(self, source: str, error: Exception):
        if self.reporter is not None:
            self.reporter.report(source, error)
