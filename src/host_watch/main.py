from __future__ import annotations

from typing import Callable, Optional

from host_watch.app import ExitCode, HostWatchApp
from host_watch.config import AppSettings, load_settings
from host_watch.core.logging import configure_logging, get_logger


def main(
    host: str,
    *,
    config_file: Optional[str] = None,
    alert_sink: Optional[str] = None,
    echo: Callable[[str], None] = print,
) -> int:
    settings = AppSettings()
    configure_logging(settings.log_level)
    settings = load_settings(config_file, settings=settings)
    if alert_sink:
        settings = settings.model_copy(update={"alert_sink": alert_sink})

    try:
        app = HostWatchApp(settings, host, echo=echo)
    except ValueError as e:
        get_logger(app=settings.name).error("startup_failed", error=str(e))
        return int(ExitCode.STARTUP_FAILED)
    return app.run()
