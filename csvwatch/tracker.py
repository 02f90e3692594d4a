## csvwatch/tracker.py

from __future__ import annotations


class ChangeTracker:
    """Names already dispatched by one watcher. Insert-only."""

    def __init__(self):
        self._seen: set[str] = set()

    def has_seen(self, filename: str) -> bool:
        return filename in self._seen

    def mark_seen(self, filename: str):
        self._seen.add(filename)

    def __contains__(self, filename: str) -> bool:
        return self.has_seen(filename)

    def __len__(self) -> int:
        return len(self._seen)
