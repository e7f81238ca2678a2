from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, Optional

from host_watch.core.cancel import CancelToken
from host_watch.core.logging import get_logger
from host_watch.errors import ConnectError, ReadError, WriteError
from host_watch.icmp.echo import build_echo_request
from host_watch.integrations.alerts import AlertSink, render_alert
from host_watch.probe.transport import ProbeConnection, ProbeTransport
from host_watch.probe.window import TimeoutWindow, WindowVerdict

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_INTERVAL_SECONDS = 1.0

Echo = Callable[[str], None]


class ProbeState(str, Enum):
    PROBING = "probing"
    TIMED_OUT = "timed_out"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


class ProbeOutcome(str, Enum):
    CANCELLED = "cancelled"
    CONNECT_FAILED = "connect_failed"
    WRITE_FAILED = "write_failed"


class ProbeLoop:
    """
    Ping one host forever and alert on timeout bursts.

    One echo request is built up front and resent every iteration. A reply
    within the deadline is a success: latency is printed and the loop sleeps
    for `interval_seconds`. A timeout (or any read failure) is recorded in
    the TimeoutWindow; a full, dense window dispatches one alert. After every
    timeout the connection is reopened unless the token was cancelled.

    Open and write failures end the loop. Alert failures never do.

    The token's cancel callback force-closes the active connection from the
    cancelling thread; the loop itself only looks at the token after a failed
    read, during the inter-probe sleep, or after a failed write.
    """

    def __init__(
        self,
        *,
        host: str,
        transport: ProbeTransport,
        sink: AlertSink,
        token: Optional[CancelToken] = None,
        window: Optional[TimeoutWindow] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
        echo: Echo = print,
    ) -> None:
        self._host = host
        self._transport = transport
        self._sink = sink
        self._token = token if token is not None else CancelToken()
        self._window = window if window is not None else TimeoutWindow()
        self._timeout = float(timeout_seconds)
        self._interval = float(interval_seconds)
        self._clock = clock
        self._echo = echo
        self._log = get_logger(component="probe_loop", host=host)

        self._conn_lock = threading.Lock()
        self._conn: Optional[ProbeConnection] = None
        self.state = ProbeState.PROBING
        self.alerts_sent = 0
        self.alerts_failed = 0

        self._token.add_callback(self._close_active)

    @property
    def window(self) -> TimeoutWindow:
        return self._window

    @property
    def token(self) -> CancelToken:
        return self._token

    def run(self) -> ProbeOutcome:
        packet = build_echo_request()
        self._log.info("probe_starting", timeout_seconds=self._timeout, window=self._window.capacity)

        try:
            self._connect()
        except ConnectError as e:
            return self._stop(ProbeOutcome.CONNECT_FAILED, error=str(e))

        try:
            while True:
                self.state = ProbeState.PROBING
                conn = self._active()

                try:
                    conn.send(packet)
                except WriteError as e:
                    if self._token.cancelled:
                        return self._stop(ProbeOutcome.CANCELLED)
                    return self._stop(ProbeOutcome.WRITE_FAILED, error=str(e))

                started = time.perf_counter()
                try:
                    conn.receive(time.monotonic() + self._timeout)
                except ReadError as e:
                    self.state = ProbeState.TIMED_OUT
                    self._log.debug("probe_failed", error=str(e))
                    self._on_timeout()

                    if self._token.cancelled:
                        return self._stop(ProbeOutcome.CANCELLED)

                    self.state = ProbeState.RECONNECTING
                    try:
                        self._reconnect()
                    except ConnectError as e:
                        return self._stop(ProbeOutcome.CONNECT_FAILED, error=str(e))
                    continue

                rtt_ms = int((time.perf_counter() - started) * 1000)
                self._echo("PING %s : time = %dms" % (self._host, rtt_ms))

                if self._token.wait(self._interval):
                    return self._stop(ProbeOutcome.CANCELLED)
        finally:
            self._close_active()

    def _on_timeout(self) -> None:
        self._window.record_failure(int(self._clock()))
        self._echo("PING %s : timeout...(%d)" % (self._host, len(self._window)))
        self._log.debug("timeout_window", entries=self._window.entries)

        verdict = self._window.evaluate()
        if verdict == WindowVerdict.ALERT:
            self._dispatch_alert()
        elif verdict == WindowVerdict.COMPACTED:
            self._log.debug("timeout_window_compacted", remaining=len(self._window))

    def _dispatch_alert(self) -> None:
        event = render_alert(self._host)
        self._log.warning("alert_triggered", subject=event.subject)
        self._echo(event.subject)

        try:
            ok = self._sink.send(event)
        except Exception as e:
            # Sinks should report failure as False; a raising sink must not stop probing either.
            self._log.error("alert_sink_raised", sink=self._sink.name, error="%s: %s" % (type(e).__name__, e))
            ok = False

        if ok:
            self.alerts_sent += 1
            self._echo("Send alert succeed.")
        else:
            self.alerts_failed += 1
            self._echo("Send alert fail.")

    def _connect(self) -> None:
        conn = self._transport.open()
        with self._conn_lock:
            self._conn = conn
        if self._token.cancelled:
            # Cancelled while opening: the callback saw no connection to close.
            self._close_active()

    def _reconnect(self) -> None:
        self._log.info("reconnecting")
        self._close_active()
        self._connect()

    def _active(self) -> ProbeConnection:
        with self._conn_lock:
            if self._conn is None:
                raise RuntimeError("probe_not_connected")
            return self._conn

    def _close_active(self) -> None:
        with self._conn_lock:
            conn = self._conn
        if conn is not None:
            conn.close()

    def _stop(self, outcome: ProbeOutcome, **kw: object) -> ProbeOutcome:
        self.state = ProbeState.STOPPED
        if outcome == ProbeOutcome.CANCELLED:
            self._log.info("probe_stopped", status=outcome.value)
        else:
            self._log.error("probe_stopped", status=outcome.value, **kw)
        return outcome
