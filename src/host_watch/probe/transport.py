from __future__ import annotations

from abc import ABC, abstractmethod


class ProbeConnection(ABC):
    """One open conversation with the target host."""

    @abstractmethod
    def send(self, data: bytes) -> None:
        """Write one packet. Raises WriteError."""
        raise NotImplementedError

    @abstractmethod
    def receive(self, deadline: float) -> bytes:
        """
        Block until a packet arrives or `deadline` (a time.monotonic() value) passes.
        Raises ReceiveTimeout on deadline, ReadError on any other read failure.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Idempotent. Must be safe to call from another thread while receive() blocks."""
        raise NotImplementedError


class ProbeTransport(ABC):
    @abstractmethod
    def open(self) -> ProbeConnection:
        """Open a fresh connection. Raises ConnectError."""
        raise NotImplementedError
