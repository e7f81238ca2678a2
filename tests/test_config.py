import pytest

from host_watch.config import (
    AppSettings,
    MailSettings,
    SmtpSettings,
    apply_ini,
    load_settings,
    parse_ini,
    read_config_file,
)
from host_watch.errors import ConfigParseError

SAMPLE = """
; alerting
[smtp]
host = smtp.example.com
port=2525
username =  alerts@example.com
password = s3cr=t

[mail]
from = alerts@example.com
to = oncall@example.com
mail.prefix = x
"""


def _settings() -> AppSettings:
    return AppSettings(smtp=SmtpSettings(host="", port=25), mail=MailSettings(from_addr="", to_addr=""))


def test_parse_ini_sections_and_values() -> None:
    cf = parse_ini(SAMPLE)
    assert cf["smtp"]["host"] == "smtp.example.com"
    assert cf["smtp"]["port"] == "2525"
    assert cf["smtp"]["username"] == "alerts@example.com"
    assert cf["smtp"]["password"] == "s3cr=t"
    assert cf["mail"]["to"] == "oncall@example.com"
    assert cf["mail"]["mail_prefix"] == "x"


@pytest.mark.parametrize(
    "text",
    [
        "[smtp\nhost=a\n",
        "[smtp]\njust-a-word\n",
        "host=a\n",
        "[smtp]\n=value\n",
    ],
)
def test_parse_ini_rejects_malformed_input(text: str) -> None:
    with pytest.raises(ConfigParseError):
        parse_ini(text)


def test_missing_file_degrades_to_empty(tmp_path) -> None:
    assert read_config_file(tmp_path / "nope.ini") == {}


def test_malformed_file_degrades_to_empty(tmp_path) -> None:
    p = tmp_path / "config.ini"
    p.write_text("[smtp\n", encoding="utf-8")
    assert read_config_file(p) == {}


def test_load_settings_overlays_ini(tmp_path) -> None:
    p = tmp_path / "config.ini"
    p.write_text(SAMPLE, encoding="utf-8")

    s = load_settings(str(p), settings=_settings())
    assert s.smtp.host == "smtp.example.com"
    assert s.smtp.port == 2525
    assert s.smtp.username == "alerts@example.com"
    assert s.smtp.password == "s3cr=t"
    assert s.mail.from_addr == "alerts@example.com"
    assert s.mail.recipients == ["oncall@example.com"]


def test_load_settings_without_file_keeps_settings(tmp_path) -> None:
    base = _settings()
    s = load_settings(str(tmp_path / "missing.ini"), settings=base)
    assert s.smtp.host == ""
    assert s.mail.to_addr == ""


def test_invalid_ini_values_are_ignored() -> None:
    base = _settings()
    s = apply_ini(base, {"smtp": {"host": "mx", "port": "not-a-port"}})
    assert s is base


def test_recipients_split() -> None:
    m = MailSettings(from_addr="a@x", to_addr="b@x; c@x,")
    assert m.recipients == ["b@x", "c@x"]
