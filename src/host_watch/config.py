from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from host_watch.core.logging import get_logger
from host_watch.errors import ConfigParseError

IniMapping = Dict[str, Dict[str, str]]

DEFAULT_CONFIG_FILE = "config.ini"


def _strip_quotes(s: str) -> str:
    s = (s or "").strip()
    if len(s) >= 2 and ((s[0] == s[-1]) and s[0] in ("'", '"')):
        s = s[1:-1].strip()
    return s


def _env_files() -> tuple[str, str]:
    """
    Allow running from subdirectories: check a local .env first, then the repo-root .env.
    """
    repo_root_env = str(Path(__file__).resolve().parents[2] / ".env")
    return (".env", repo_root_env)


def _settings_config() -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ProbeSettings(BaseSettings):
    model_config = _settings_config()

    timeout_seconds: float = Field(default=5.0, gt=0, alias="PROBE_TIMEOUT_SECONDS")
    interval_seconds: float = Field(default=1.0, ge=0, alias="PROBE_INTERVAL_SECONDS")
    # Alert once this many timeouts land within window_seconds.
    window_size: int = Field(default=10, ge=1, alias="PROBE_WINDOW_SIZE")
    window_seconds: int = Field(default=120, ge=0, alias="PROBE_WINDOW_SECONDS")
    bind_address: str = Field(default="0.0.0.0", alias="PROBE_BIND_ADDRESS")


class SmtpSettings(BaseSettings):
    """
    Outbound SMTP used by the email alert sink.
    """

    model_config = _settings_config()

    host: str = Field(default="", alias="SMTP_HOST")
    port: int = Field(default=25, alias="SMTP_PORT")
    username: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    password: Optional[str] = Field(default=None, alias="SMTP_PASSWORD")
    use_starttls: bool = Field(default=True, alias="SMTP_USE_STARTTLS")
    use_ssl: bool = Field(default=False, alias="SMTP_USE_SSL")
    timeout_seconds: float = Field(default=20.0, alias="SMTP_TIMEOUT_SECONDS")
    retry_attempts: int = Field(default=3, ge=1, alias="SMTP_RETRY_ATTEMPTS")

    @field_validator("host", mode="before")
    @classmethod
    def _norm_str(cls, v: object) -> str:
        return _strip_quotes(str(v)).strip()

    @field_validator("username", "password", mode="before")
    @classmethod
    def _norm_opt(cls, v: object) -> Optional[str]:
        if v is None:
            return None
        s = _strip_quotes(str(v)).strip()
        return s or None

    @property
    def enabled(self) -> bool:
        return bool((self.host or "").strip())


class MailSettings(BaseSettings):
    model_config = _settings_config()

    from_addr: str = Field(default="", alias="MAIL_FROM")
    to_addr: str = Field(default="", alias="MAIL_TO")

    @field_validator("from_addr", "to_addr", mode="before")
    @classmethod
    def _norm_str(cls, v: object) -> str:
        return _strip_quotes(str(v)).strip()

    @property
    def recipients(self) -> List[str]:
        return [a.strip() for a in self.to_addr.replace(";", ",").split(",") if a.strip()]


class AppSettings(BaseSettings):
    model_config = _settings_config()

    name: str = Field(default="host-watch", alias="HOST_WATCH_NAME")
    log_level: str = Field(default="INFO", alias="HOST_WATCH_LOG_LEVEL")
    config_file: str = Field(default=DEFAULT_CONFIG_FILE, alias="HOST_WATCH_CONFIG_FILE")
    # "email" or "log"
    alert_sink: str = Field(default="email", alias="HOST_WATCH_ALERT_SINK")

    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    mail: MailSettings = Field(default_factory=MailSettings)


# INI keys consumed from the config file: section -> {ini key: settings field}
_SMTP_KEYS = {"host": "host", "port": "port", "username": "username", "password": "password"}
_MAIL_KEYS = {"from": "from_addr", "to": "to_addr"}


def parse_ini(text: str) -> IniMapping:
    """
    Parse the small INI dialect used by config.ini:

      [section]
      key = value
      ; comment

    Whitespace around keys and values is stripped and "." in keys becomes "_".
    Raises ConfigParseError on a malformed header, a line without "=", or a
    key before any section.
    """
    out: IniMapping = {}
    section: Optional[str] = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(";"):
            continue

        if line.startswith("["):
            if not line.endswith("]") or len(line) < 3:
                raise ConfigParseError("line %d: bad section header %r" % (lineno, line))
            section = line[1:-1].strip()
            out.setdefault(section, {})
            continue

        if "=" not in line:
            raise ConfigParseError("line %d: expected key=value, got %r" % (lineno, line))
        if section is None:
            raise ConfigParseError("line %d: key outside of any [section]" % lineno)

        key, value = line.split("=", 1)
        key = key.strip().replace(".", "_")
        if not key:
            raise ConfigParseError("line %d: empty key" % lineno)
        out[section][key] = value.strip()

    return out


def read_ini(path: Union[str, Path]) -> IniMapping:
    return parse_ini(Path(path).read_text(encoding="utf-8"))


def read_config_file(path: Union[str, Path]) -> IniMapping:
    """
    Like read_ini(), but a missing or malformed file degrades to an empty mapping.
    Probing is useful even without alerting configured.
    """
    log = get_logger(component="config")
    try:
        return read_ini(path)
    except FileNotFoundError:
        log.warning("config_missing", path=str(path))
    except ConfigParseError as e:
        log.warning("config_parse_failed", path=str(path), error=str(e))
    except OSError as e:
        log.warning("config_unreadable", path=str(path), error=str(e))
    return {}


def apply_ini(settings: AppSettings, ini: IniMapping) -> AppSettings:
    """
    Overlay [smtp] and [mail] values from the INI mapping onto env-derived settings.
    Empty values are ignored so they never clobber the environment.
    """
    smtp_values = _pick(ini.get("smtp", {}), _SMTP_KEYS)
    mail_values = _pick(ini.get("mail", {}), _MAIL_KEYS)
    if not smtp_values and not mail_values:
        return settings

    try:
        smtp = SmtpSettings(**{**settings.smtp.model_dump(), **smtp_values})
        mail = MailSettings(**{**settings.mail.model_dump(), **mail_values})
    except ValidationError as e:
        get_logger(component="config").warning("config_invalid", error=str(e))
        return settings

    return settings.model_copy(update={"smtp": smtp, "mail": mail})


def load_settings(config_file: Optional[str] = None, settings: Optional[AppSettings] = None) -> AppSettings:
    base = settings if settings is not None else AppSettings()
    path = config_file or base.config_file
    return apply_ini(base, read_config_file(path))


def _pick(section: Dict[str, str], keys: Dict[str, str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for ini_key, field in keys.items():
        v = (section.get(ini_key) or "").strip()
        if v:
            out[field] = v
    return out
