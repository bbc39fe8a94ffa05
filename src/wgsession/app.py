"""Typer application and CLI entry point for wgsession.

This module wires together the top-level Typer application: the session
commands (``connect``, ``status``, ``probe``, ``logout``) and the
``clients`` and ``config`` sub-command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`wgsession.config`: Configuration resolution.
    :mod:`wgsession.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from wgsession import __version__
from wgsession.commands.clients import clients_app
from wgsession.commands.config import config_app
from wgsession.commands.session import (
    connect_command,
    logout_command,
    probe_command,
    status_command,
)
from wgsession.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="wgsession",
    help="Negotiate, cache, and reuse wg-easy sessions.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("connect")(connect_command)
app.command("status")(status_command)
app.command("probe")(probe_command)
app.command("logout")(logout_command)
app.add_typer(clients_app, name="clients", help="Manage WireGuard peers.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"wgsession {__version__}")
        raise typer.Exit()


def _configured_format() -> str:
    from wgsession.config import load_global_config
    from wgsession.exceptions import ConfigError

    try:
        return load_global_config().output.format
    except ConfigError:
        # The command itself reports the broken file.
        return "auto"


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    server: Optional[str] = typer.Option(
        None, "--server", "-s", help="Server URL (overrides WGSESSION_URL and config)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show every negotiation attempt."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~wgsession.output.OutputManager` from
    CLI flags (falling back to ``output.format`` from the config file) and
    stores ``server`` and ``timeout`` in ``ctx.obj`` for the commands.
    """
    from wgsession.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(_configured_format())
        except ValueError:
            fmt = OutputFormat.AUTO

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["server"] = server
    ctx.obj["timeout"] = timeout


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from wgsession.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``wgsession`` console script.

    Unhandled :class:`~wgsession.exceptions.WgSessionError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from wgsession.exceptions import WgSessionError
        from wgsession.output import error

        if isinstance(exc, WgSessionError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
