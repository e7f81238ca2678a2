from host_watch.core.logging import _pretty_rich_renderer


def test_renderer_puts_host_first_and_sorts_the_rest() -> None:
    line = _pretty_rich_renderer(
        None, "info", {"event": "reconnecting", "level": "info", "zeta": 1, "host": "10.0.0.1", "alpha": "a"}
    )
    assert line == "[bold cyan]🔁 reconnecting[/bold cyan]  host=10.0.0.1 alpha='a' zeta=1"


def test_renderer_styles_by_level() -> None:
    line = _pretty_rich_renderer(None, "error", {"event": "probe_failed", "level": "error"})
    assert line == "[bold red]❌ probe_failed[/bold red]"
