from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Deque, List

from host_watch.errors import WindowFullError

DEFAULT_CAPACITY = 10
DEFAULT_SPAN_SECONDS = 120


class WindowVerdict(str, Enum):
    PENDING = "pending"
    ALERT = "alert"
    COMPACTED = "compacted"


class TimeoutWindow:
    """
    Burst detector over failure timestamps (Unix seconds).

    Holds at most `capacity` timestamps in insertion order. Once full, the
    window is evaluated:

    - newest - oldest <= span: the failures form one incident. The window is
      drained and ALERT is returned.
    - otherwise the failures are too spread out. Entries further than `span`
      from the newest one are evicted, survivors keep their order, and
      COMPACTED is returned. Compaction never alerts on its own.

    Evaluating a window that is not full is a no-op (PENDING).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, span_seconds: int = DEFAULT_SPAN_SECONDS) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if span_seconds < 0:
            raise ValueError("span_seconds must be >= 0")
        self._capacity = int(capacity)
        self._span = int(span_seconds)
        self._entries: Deque[int] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def span_seconds(self) -> int:
        return self._span

    @property
    def entries(self) -> List[int]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def is_full(self) -> bool:
        return len(self._entries) >= self._capacity

    def push(self, now: int) -> None:
        if self.is_full():
            raise WindowFullError("timeout window is full; evaluate() before recording more")
        now = int(now)
        # Wall clock can step backwards; keep the queue non-decreasing.
        if self._entries and now < self._entries[-1]:
            now = self._entries[-1]
        self._entries.append(now)

    record_failure = push

    def evict_older_than(self, reference: int) -> int:
        kept = [t for t in self._entries if reference - t <= self._span]
        dropped = len(self._entries) - len(kept)
        self._entries = deque(kept)
        return dropped

    def drain(self) -> List[int]:
        out = list(self._entries)
        self._entries.clear()
        return out

    def evaluate(self) -> WindowVerdict:
        if not self.is_full():
            return WindowVerdict.PENDING

        interval = self._entries[-1] - self._entries[0]
        if interval <= self._span:
            self.drain()
            return WindowVerdict.ALERT

        self.evict_older_than(self._entries[-1])
        return WindowVerdict.COMPACTED
