from __future__ import annotations

import logging
from typing import Any, Dict

import structlog
from rich.logging import RichHandler


def configure_logging(level: str) -> None:
    """
    Human-friendly logs for a long-running probe.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                rich_tracebacks=True,
                markup=True,
                show_time=True,
                show_level=True,
                show_path=False,
            )
        ],
        force=True,
    )

    logging.getLogger("tenacity").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _pretty_rich_renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        cache_logger_on_first_use=True,
    )


def get_logger(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger().bind(**kwargs)


# Probe events worth spotting at a glance in a long-running console.
_EVENT_ICONS = {
    "probe_starting": "🚀",
    "probe_stopped": "🛑",
    "reconnecting": "🔁",
    "alert_triggered": "🚨",
    "alert_sent": "📧",
    "startup_check": "🧪",
}

_LEVEL_STYLES = {
    "critical": ("❌", "bold red"),
    "error": ("❌", "bold red"),
    "warning": ("⚠️", "bold yellow"),
}


def _pretty_rich_renderer(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> str:  # pragma: no cover
    """
    Render `event  host=... key=value` lines; host first, then sorted keys.
    """
    event = str(event_dict.pop("event", method_name))
    level = str(event_dict.pop("level", "")).lower()

    level_icon, style = _LEVEL_STYLES.get(level, ("✅", "bold cyan"))
    icon = _EVENT_ICONS.get(event, level_icon)
    title = "[%s]%s %s[/%s]" % (style, icon, event, style)

    host = event_dict.pop("host", None)
    parts = ["host=%s" % host] if host is not None else []
    parts.extend("%s=%r" % (k, event_dict[k]) for k in sorted(event_dict))
    return "%s  %s" % (title, " ".join(parts)) if parts else title
