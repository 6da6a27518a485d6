"""hourlog CLI -- typer-based command interface.

Commands:
    hourlog pipe       Copy stdin lines into the hourly files
    hourlog current    Print the file text.log points at
    hourlog alert MSG  Send one alert to the configured webhook
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from hourlog.alerts import AlertForwarder
from hourlog.config import SinkConfig
from hourlog.errors import HourlogError
from hourlog.levels import parse_level
from hourlog.logging import setup_logging, shutdown_logging
from hourlog.sink import RotatingFileSink

app = typer.Typer(
    name="hourlog",
    help="Write logs into hourly files and forward errors to a webhook.",
    no_args_is_help=True,
)

_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="YAML settings file.")


def handle_error(msg: str) -> NoReturn:
    """Print an error message and exit."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def _load_config(config_path: Optional[Path], **overrides: object) -> SinkConfig:
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        return SinkConfig.load(config_path, **overrides)
    except HourlogError as err:
        handle_error(str(err))


@app.command()
def pipe(
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="Log directory."),
    level: str = typer.Option("info", help="Level assigned to every piped line."),
    config_path: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Copy stdin into the hourly log files, one write per line."""
    config = _load_config(config_path, directory=directory)
    setup_logging(config)
    try:
        line_level = parse_level(level)
        sink = RotatingFileSink.from_config(config)
        sink.init()
    except HourlogError as err:
        shutdown_logging()
        handle_error(str(err))

    count = 0
    try:
        for line in sys.stdin:
            try:
                sink.write(line, line_level)
            except HourlogError as err:
                typer.echo(f"Warning: {err}", err=True)
            count += 1
    finally:
        sink.close()
        shutdown_logging()
    typer.echo(f"Wrote {count} line(s) to {sink.directory}", err=True)


@app.command()
def current(
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="Log directory."),
    config_path: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Print the hourly file the current-log link resolves to."""
    config = _load_config(config_path, directory=directory)
    link = Path(config.directory) / config.link_name
    if not link.is_symlink():
        handle_error(f"{link} is not a symlink; has the sink been initialized?")
    target = link.parent / os.readlink(link)
    if not target.exists():
        handle_error(f"{link} points at missing file {target}")
    typer.echo(str(target.resolve()))


@app.command()
def alert(
    message: str = typer.Argument(..., help="Alert text."),
    url: Optional[str] = typer.Option(None, "--url", help="Webhook URL."),
    channel: Optional[str] = typer.Option(None, "--channel", help="Destination channel."),
    config_path: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Send one alert synchronously (useful to check webhook settings)."""
    config = _load_config(config_path, webhook_url=url, channel=channel)
    if not config.webhook_url:
        handle_error("no webhook URL configured (set HOURLOG_WEBHOOK_URL or pass --url)")
    forwarder = AlertForwarder(
        config.webhook_url,  # type: ignore[arg-type]
        username=config.bot_name,
        channel=config.channel,
        timeout=config.alert_timeout,
        autostart=False,
    )
    try:
        forwarder.forward(message)
    except HourlogError as err:
        handle_error(str(err))
    finally:
        forwarder.stop()
    typer.echo("Alert sent.")


def main() -> None:
    """Entry point for the hourlog CLI."""
    app()
