from __future__ import annotations

import smtplib
import ssl
from email import charset as email_charset
from email.header import Header
from email.mime.text import MIMEText
from typing import List

from tenacity import RetryError, Retrying, stop_after_attempt, wait_exponential

from host_watch.config import MailSettings, SmtpSettings
from host_watch.core.logging import get_logger
from host_watch.errors import AlertDispatchError
from host_watch.integrations.alerts import SINK_EMAIL, AlertEvent, AlertSink


class EmailAlertSink(AlertSink):
    name = SINK_EMAIL

    def __init__(self, smtp: SmtpSettings, mail: MailSettings) -> None:
        self._s = smtp
        self._m = mail
        self._log = get_logger(component="alert_sink", sink=self.name)

    @property
    def enabled(self) -> bool:
        return bool(self._s.enabled) and bool(self._m.recipients) and bool(self._m.from_addr)

    def send(self, event: AlertEvent) -> bool:
        try:
            self.deliver(event)
        except AlertDispatchError as e:
            self._log.error("alert_failed", host=event.host, error=str(e))
            return False
        self._log.info("alert_sent", host=event.host, to=self._m.to_addr)
        return True

    def deliver(self, event: AlertEvent) -> None:
        if not self.enabled:
            raise AlertDispatchError("smtp_not_configured")

        msg = build_message(event, from_addr=self._m.from_addr, to_addrs=self._m.recipients)
        retrying = Retrying(
            stop=stop_after_attempt(max(1, int(self._s.retry_attempts))),
            wait=wait_exponential(min=1, max=10),
        )
        try:
            retrying(self._submit, msg)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise AlertDispatchError("%s: %s" % (type(last).__name__, last)) from last

    def _submit(self, msg: MIMEText) -> None:
        timeout = float(self._s.timeout_seconds or 20.0)

        if self._s.use_ssl:
            context = ssl.create_default_context()
            server: smtplib.SMTP = smtplib.SMTP_SSL(self._s.host, int(self._s.port), timeout=timeout, context=context)
        else:
            server = smtplib.SMTP(self._s.host, int(self._s.port), timeout=timeout)

        try:
            server.ehlo()
            if (not self._s.use_ssl) and self._s.use_starttls and server.has_extn("starttls"):
                context = ssl.create_default_context()
                server.starttls(context=context)
                server.ehlo()

            if self._s.username and self._s.password:
                server.login(self._s.username, self._s.password)

            server.send_message(msg)
        finally:
            try:
                server.quit()
            except OSError:
                server.close()


def build_message(event: AlertEvent, *, from_addr: str, to_addrs: List[str]) -> MIMEText:
    """
    HTML alert mail: Base64 UTF-8 encoded subject and body.
    """
    msg = MIMEText(event.body, "html", "utf-8")
    msg["From"] = from_addr
    msg["To"] = ", ".join(to_addrs)
    msg["Subject"] = Header(event.subject, _base64_utf8())
    return msg


def _base64_utf8() -> email_charset.Charset:
    # The stock utf-8 charset picks the shorter of Q/B per header; force B.
    cs = email_charset.Charset("utf-8")
    cs.header_encoding = email_charset.BASE64
    return cs
