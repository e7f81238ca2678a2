from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from host_watch.core.logging import get_logger

if TYPE_CHECKING:
    from host_watch.config import AppSettings

SINK_EMAIL = "email"
SINK_LOG = "log"


@dataclass(frozen=True)
class AlertEvent:
    host: str
    subject: str
    body: str


def render_alert(host: str) -> AlertEvent:
    subject = "WARNING: Host(%s) network exception" % host
    body = "%s, Please check it!" % subject
    return AlertEvent(host=host, subject=subject, body=body)


class AlertSink:
    """
    Receives a rendered alert. Implementations report delivery as a bool and
    must not raise: a failed alert never stops probing.
    """

    name: str = "unnamed"

    def send(self, event: AlertEvent) -> bool:  # pragma: no cover
        raise NotImplementedError


class LogAlertSink(AlertSink):
    name = SINK_LOG

    def __init__(self) -> None:
        self._log = get_logger(component="alert_sink", sink=self.name)

    def send(self, event: AlertEvent) -> bool:
        self._log.warning("alert", host=event.host, subject=event.subject, body=event.body)
        return True


def build_alert_sink(settings: "AppSettings") -> AlertSink:
    kind = (settings.alert_sink or SINK_EMAIL).strip().lower()
    if kind == SINK_LOG:
        return LogAlertSink()
    if kind == SINK_EMAIL:
        from host_watch.integrations.smtp_mailer import EmailAlertSink

        return EmailAlertSink(settings.smtp, settings.mail)
    raise ValueError("unknown alert sink: %r (expected %r or %r)" % (kind, SINK_EMAIL, SINK_LOG))
