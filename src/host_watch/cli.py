from __future__ import annotations

from typing import Optional

import typer

from host_watch.config import AppSettings, load_settings
from host_watch.core.logging import configure_logging
from host_watch.integrations.alerts import SINK_EMAIL, SINK_LOG, build_alert_sink, render_alert
from host_watch.main import main

app = typer.Typer(add_completion=False)


def _check_sink(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = value.strip().lower()
    if v not in (SINK_EMAIL, SINK_LOG):
        raise typer.BadParameter("must be %r or %r" % (SINK_EMAIL, SINK_LOG))
    return v


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    host: str = typer.Option(None, "--host", help="Host IPv4 address to watch (prompted when omitted)"),
    config: str = typer.Option(None, "--config", help="INI file with [smtp]/[mail] sections (default: config.ini)"),
    sink: str = typer.Option(
        None, "--sink", callback=_check_sink, help="Alert sink: email or log (default: HOST_WATCH_ALERT_SINK)"
    ),
) -> None:
    """Ping a host and alert when timeouts cluster."""
    if ctx.invoked_subcommand is not None:
        ctx.obj = {"config": config, "sink": sink}
        return

    if not host:
        host = typer.prompt("Enter host ip address", prompt_suffix=":")
    raise SystemExit(main(host, config_file=config, alert_sink=sink, echo=typer.echo))


@app.command("test-alert")
def test_alert(
    ctx: typer.Context,
    host: str = typer.Argument("127.0.0.1", help="Host name used to render the alert"),
) -> None:
    """Render one alert and send it through the configured sink."""
    opts = ctx.obj or {}
    settings = AppSettings()
    configure_logging(settings.log_level)
    settings = load_settings(opts.get("config"), settings=settings)
    if opts.get("sink"):
        settings = settings.model_copy(update={"alert_sink": opts["sink"]})

    event = render_alert(host)
    sink = build_alert_sink(settings)
    ok = sink.send(event)
    typer.echo("%s alert %s." % (sink.name, "sent" if ok else "failed"))
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    app()
