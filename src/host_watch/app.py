from __future__ import annotations

import signal
import threading
from enum import IntEnum
from typing import Any, Callable, Dict, Optional

from host_watch.config import AppSettings
from host_watch.core.cancel import CancelToken
from host_watch.core.logging import get_logger
from host_watch.integrations.alerts import AlertSink, build_alert_sink
from host_watch.probe.loop import ProbeLoop, ProbeOutcome
from host_watch.probe.raw_socket import RawIcmpTransport
from host_watch.probe.transport import ProbeTransport
from host_watch.probe.window import TimeoutWindow
from host_watch.startup.checks import CheckStatus, run_startup_checks


class ExitCode(IntEnum):
    OK = 0
    STARTUP_FAILED = 2
    CONNECT_FAILED = 3
    WRITE_FAILED = 4


_OUTCOME_EXIT = {
    ProbeOutcome.CANCELLED: ExitCode.OK,
    ProbeOutcome.CONNECT_FAILED: ExitCode.CONNECT_FAILED,
    ProbeOutcome.WRITE_FAILED: ExitCode.WRITE_FAILED,
}


class HostWatchApp:
    def __init__(
        self,
        settings: AppSettings,
        host: str,
        *,
        transport: Optional[ProbeTransport] = None,
        sink: Optional[AlertSink] = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._settings = settings
        self._host = host.strip()
        self._log = get_logger(app=settings.name, host=self._host)
        self._token = CancelToken()

        probe = settings.probe
        self._transport = transport or RawIcmpTransport(self._host, bind_address=probe.bind_address)
        self._sink = sink or build_alert_sink(settings)
        self._loop = ProbeLoop(
            host=self._host,
            transport=self._transport,
            sink=self._sink,
            token=self._token,
            window=TimeoutWindow(capacity=probe.window_size, span_seconds=probe.window_seconds),
            timeout_seconds=probe.timeout_seconds,
            interval_seconds=probe.interval_seconds,
            echo=echo,
        )
        self._outcome: Optional[ProbeOutcome] = None

    @property
    def loop(self) -> ProbeLoop:
        return self._loop

    def run(self, *, skip_checks: bool = False) -> int:
        self._log.info("starting", sink=self._sink.name)

        if not skip_checks:
            results = run_startup_checks(settings=self._settings, host=self._host)
            if any(r.status == CheckStatus.FAIL for r in results):
                self._log.error("startup_checks_failed")
                return int(ExitCode.STARTUP_FAILED)

        previous = self._install_signal_handlers()
        worker = threading.Thread(target=self._run_loop, name="probe-loop", daemon=True)
        try:
            worker.start()
            # Short joins keep the main thread responsive to signals.
            while worker.is_alive():
                worker.join(0.5)
        finally:
            self._restore_signal_handlers(previous)

        outcome = self._outcome or ProbeOutcome.CANCELLED
        self._log.info("stopping", status=outcome.value)
        return int(_OUTCOME_EXIT[outcome])

    def stop(self) -> None:
        self._token.cancel()

    def _run_loop(self) -> None:
        self._outcome = self._loop.run()

    def _on_signal(self, signum: int, frame: Any) -> None:
        self._log.info("signal_received", signal=signal.Signals(signum).name)
        self.stop()

    def _install_signal_handlers(self) -> Dict[int, Any]:
        previous: Dict[int, Any] = {}
        if threading.current_thread() is not threading.main_thread():
            return previous
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                previous[sig] = signal.signal(sig, self._on_signal)
            except (ValueError, OSError):  # pragma: no cover
                pass
        return previous

    def _restore_signal_handlers(self, previous: Dict[int, Any]) -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
