from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Default wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MonotonicClock:
    """Never returns a timestamp earlier than one it already handed out."""

    def __init__(self, source: Clock | None = None) -> None:
        self._source = source or SystemClock()
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        current = self._source.now()
        with self._lock:
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
            return current
