from host_watch.config import AppSettings, MailSettings, SmtpSettings
from host_watch.startup import checks
from host_watch.startup.checks import (
    CheckStatus,
    check_alert_sink,
    check_host_address,
    check_raw_socket_privilege,
    run_startup_checks,
)


def test_ipv4_literal_is_ok() -> None:
    assert check_host_address("10.1.2.3").status == CheckStatus.OK


def test_empty_host_fails() -> None:
    assert check_host_address("  ").status == CheckStatus.FAIL


def test_host_name_resolution(monkeypatch) -> None:
    monkeypatch.setattr(checks.socket, "gethostbyname", lambda name: "93.184.216.34")
    r = check_host_address("example.com")
    assert r.status == CheckStatus.OK
    assert "93.184.216.34" in r.details


def test_unresolvable_host_fails(monkeypatch) -> None:
    def boom(name):
        raise OSError("Name or service not known")

    monkeypatch.setattr(checks.socket, "gethostbyname", boom)
    assert check_host_address("nowhere.invalid").status == CheckStatus.FAIL


def test_raw_socket_privilege(monkeypatch) -> None:
    monkeypatch.setattr(checks.os, "geteuid", lambda: 0, raising=False)
    assert check_raw_socket_privilege().status == CheckStatus.OK
    monkeypatch.setattr(checks.os, "geteuid", lambda: 1000, raising=False)
    assert check_raw_socket_privilege().status == CheckStatus.WARN


def test_alert_sink_checks() -> None:
    assert check_alert_sink(AppSettings(alert_sink="log")).status == CheckStatus.OK
    assert check_alert_sink(AppSettings(alert_sink="pager")).status == CheckStatus.FAIL

    unconfigured = AppSettings(
        alert_sink="email",
        smtp=SmtpSettings(host=""),
        mail=MailSettings(from_addr="", to_addr=""),
    )
    r = check_alert_sink(unconfigured)
    assert r.status == CheckStatus.WARN
    assert "smtp host" in r.details

    configured = AppSettings(
        alert_sink="email",
        smtp=SmtpSettings(host="mx.test", port=25),
        mail=MailSettings(from_addr="a@test", to_addr="b@test"),
    )
    assert check_alert_sink(configured).status == CheckStatus.OK


def test_run_startup_checks_reports_all() -> None:
    results = run_startup_checks(settings=AppSettings(alert_sink="log"), host="10.0.0.1")
    assert [r.name for r in results] == ["host_address", "raw_socket_privilege", "alert_sink"]
    assert not any(r.status == CheckStatus.FAIL for r in results)
