from __future__ import annotations

import socket
import threading
import time
from typing import Callable, Optional

from host_watch.errors import ConnectError, ReadError, ReceiveTimeout, WriteError
from host_watch.probe.transport import ProbeConnection, ProbeTransport

DEFAULT_BIND_ADDRESS = "0.0.0.0"
DEFAULT_BUFFER_SIZE = 1024


class RawIcmpConnection(ProbeConnection):
    def __init__(
        self,
        sock: socket.socket,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sock = sock
        self._buffer_size = buffer_size
        self._clock = clock
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, data: bytes) -> None:
        try:
            self._sock.send(data)
        except OSError as e:
            raise WriteError("send failed: %s" % (e,)) from e

    def receive(self, deadline: float) -> bytes:
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise ReceiveTimeout("deadline already passed")
        try:
            self._sock.settimeout(remaining)
            return self._sock.recv(self._buffer_size)
        except socket.timeout as e:
            raise ReceiveTimeout("no reply within %.1fs" % remaining) from e
        except OSError as e:
            raise ReadError("recv failed: %s" % (e,)) from e

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # shutdown() wakes a reader blocked in another thread on platforms that support it.
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()


class RawIcmpTransport(ProbeTransport):
    """
    ICMP over IPv4 using a raw socket. Needs root or CAP_NET_RAW.
    """

    def __init__(
        self,
        host: str,
        *,
        bind_address: str = DEFAULT_BIND_ADDRESS,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        socket_factory: Optional[Callable[[], socket.socket]] = None,
    ) -> None:
        self._host = host
        self._bind_address = bind_address
        self._buffer_size = buffer_size
        self._socket_factory = socket_factory or _raw_icmp_socket

    @property
    def host(self) -> str:
        return self._host

    def open(self) -> RawIcmpConnection:
        try:
            sock = self._socket_factory()
        except OSError as e:
            raise ConnectError("cannot create raw icmp socket: %s" % (e,)) from e

        try:
            sock.bind((self._bind_address, 0))
            sock.connect((self._host, 0))
        except OSError as e:
            sock.close()
            raise ConnectError("cannot reach %s: %s" % (self._host, e)) from e

        return RawIcmpConnection(sock, buffer_size=self._buffer_size)


def _raw_icmp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
