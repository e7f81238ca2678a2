from __future__ import annotations

import threading
from typing import Callable, List

Callback = Callable[[], None]


class CancelToken:
    """
    One-shot cancellation shared between the probe loop and the signal side.

    `cancel()` may be called from any thread. Registered callbacks run once,
    in the cancelling thread; the probe loop uses one to force-close its
    active connection so a blocked read fails.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callback] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callback) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for cb in callbacks:
            cb()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True as soon as the token is cancelled."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)
