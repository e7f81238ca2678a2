from __future__ import annotations

import ipaddress
import os
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from host_watch.config import AppSettings
from host_watch.core.logging import get_logger
from host_watch.integrations.alerts import SINK_EMAIL, SINK_LOG


class CheckStatus(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: CheckStatus
    details: str


def run_startup_checks(*, settings: AppSettings, host: str) -> List[CheckResult]:
    """
    Runs fast preflight checks at process start.
    Keep these checks quick and side-effect-free.
    """
    log = get_logger(component="startup_checks")
    results: List[CheckResult] = [
        check_host_address(host),
        check_raw_socket_privilege(),
        check_alert_sink(settings),
    ]

    counts: Dict[CheckStatus, int] = {s: sum(1 for r in results if r.status == s) for s in CheckStatus}
    log.info(
        "startup_checks_complete",
        ok=counts[CheckStatus.OK],
        warn=counts[CheckStatus.WARN],
        fail=counts[CheckStatus.FAIL],
    )
    for r in results:
        log.info("startup_check", name=r.name, status=r.status.value, details=r.details)

    return results


def check_host_address(host: str) -> CheckResult:
    name = "host_address"
    host = (host or "").strip()
    if not host:
        return CheckResult(name=name, status=CheckStatus.FAIL, details="no host address given")

    try:
        ipaddress.IPv4Address(host)
        return CheckResult(name=name, status=CheckStatus.OK, details="IPv4 %s" % host)
    except ValueError:
        pass

    try:
        resolved = socket.gethostbyname(host)
    except OSError as e:
        return CheckResult(
            name=name,
            status=CheckStatus.FAIL,
            details="%r is not an IPv4 address and does not resolve (%s)" % (host, e),
        )
    return CheckResult(name=name, status=CheckStatus.OK, details="%s resolves to %s" % (host, resolved))


def check_raw_socket_privilege() -> CheckResult:
    name = "raw_socket_privilege"
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:  # pragma: no cover (Windows)
        return CheckResult(name=name, status=CheckStatus.OK, details="privilege not checked on this platform")
    if geteuid() == 0:
        return CheckResult(name=name, status=CheckStatus.OK, details="running as root")
    # CAP_NET_RAW may still be granted; opening the socket is the real test.
    return CheckResult(
        name=name,
        status=CheckStatus.WARN,
        details="not root; raw ICMP sockets need root or CAP_NET_RAW",
    )


def check_alert_sink(settings: AppSettings) -> CheckResult:
    name = "alert_sink"
    kind = (settings.alert_sink or "").strip().lower()
    if kind == SINK_LOG:
        return CheckResult(name=name, status=CheckStatus.OK, details="alerts go to the log")
    if kind != SINK_EMAIL:
        return CheckResult(name=name, status=CheckStatus.FAIL, details="unknown alert sink %r" % kind)

    missing = []
    if not settings.smtp.host:
        missing.append("smtp host")
    if not settings.mail.from_addr:
        missing.append("mail from")
    if not settings.mail.recipients:
        missing.append("mail to")
    if missing:
        return CheckResult(
            name=name,
            status=CheckStatus.WARN,
            details="email alerts will fail: missing %s" % ", ".join(missing),
        )
    return CheckResult(
        name=name,
        status=CheckStatus.OK,
        details="email via %s:%d to %s" % (settings.smtp.host, settings.smtp.port, settings.mail.to_addr),
    )
