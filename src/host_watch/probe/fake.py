from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, List, Optional, Union

from host_watch.errors import ConnectError, ReadError, ReceiveTimeout, WriteError
from host_watch.probe.transport import ProbeConnection, ProbeTransport

REPLY = "reply"
TIMEOUT = "timeout"
ERROR = "error"

Step = Union[str, Callable[[], None]]


class ScriptedTransport(ProbeTransport):
    """
    In-memory transport for tests and dry runs.

    script: steps consumed one per receive(), shared across reconnects.
      "reply"   -> returns an echo-reply-sized payload
      "timeout" -> raises ReceiveTimeout
      "error"   -> raises ReadError
      callable  -> called first (e.g. to cancel a token), then the read behaves
                   like a blocked read: ReadError if the connection was closed
                   meanwhile, else ReceiveTimeout
    When the script runs out, `when_exhausted` is called once (if given) and
    reads time out from then on.
    """

    def __init__(
        self,
        script: Optional[Iterable[Step]] = None,
        *,
        fail_open_at: Iterable[int] = (),
        fail_send_at: Iterable[int] = (),
        when_exhausted: Optional[Callable[[], None]] = None,
    ) -> None:
        self.script = deque(script or [])
        self.fail_open_at = set(fail_open_at)
        self.fail_send_at = set(fail_send_at)
        self.when_exhausted = when_exhausted
        self.connections: List[ScriptedConnection] = []
        self.sent: List[bytes] = []
        self.send_count = 0
        self.open_attempts = 0

    def open(self) -> "ScriptedConnection":
        attempt = self.open_attempts
        self.open_attempts += 1
        if attempt in self.fail_open_at:
            raise ConnectError("scripted open failure (attempt %d)" % attempt)
        conn = ScriptedConnection(self)
        self.connections.append(conn)
        return conn

    def next_step(self) -> Optional[Step]:
        if self.script:
            return self.script.popleft()
        if self.when_exhausted is not None:
            cb, self.when_exhausted = self.when_exhausted, None
            cb()
        return None


class ScriptedConnection(ProbeConnection):
    def __init__(self, transport: ScriptedTransport) -> None:
        self._t = transport
        self.closed = False

    def send(self, data: bytes) -> None:
        index = self._t.send_count
        self._t.send_count += 1
        if self.closed:
            raise WriteError("connection closed")
        if index in self._t.fail_send_at:
            raise WriteError("scripted send failure (send %d)" % index)
        self._t.sent.append(bytes(data))

    def receive(self, deadline: float) -> bytes:
        if self.closed:
            raise ReadError("connection closed")
        step = self._t.next_step()
        if callable(step):
            step()
            step = ERROR if self.closed else TIMEOUT
        if self.closed:
            raise ReadError("connection closed")
        if step == REPLY:
            return b"\x00" * 28
        if step == ERROR:
            raise ReadError("scripted read failure")
        raise ReceiveTimeout("scripted timeout")

    def close(self) -> None:
        self.closed = True
