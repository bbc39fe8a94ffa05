"""Session commands -- connect, inspect, probe, and forget a server.

Registered directly on the root app:

* ``wgsession connect URL`` -- negotiate (or reuse) a session and cache it.
* ``wgsession status`` -- show the cached server and session validity.
* ``wgsession probe URL`` -- run a negotiation without caching it and
  print every attempt.
* ``wgsession logout`` -- erase the session cache.

Typical workflow::

    wgsession connect https://vpn.example --password-source env:WG_PASSWORD
    wgsession status
    wgsession clients list
"""

from __future__ import annotations

from typing import Optional

import typer

from wgsession.exceptions import WgSessionError
from wgsession.exit_codes import EXIT_AUTH_FAILURE, EXIT_INVALID_USAGE
from wgsession.facade import NegotiatedApiFacade
from wgsession.models import GlobalConfig
from wgsession.output import error, format_response, info, print_table, success, suggest


def build_facade(config: GlobalConfig) -> NegotiatedApiFacade:
    """Create the facade used by CLI commands (patched in tests)."""
    return NegotiatedApiFacade.from_config(config)


def resolve_context_config(ctx: typer.Context, url: Optional[str] = None) -> GlobalConfig:
    """Resolve configuration from the root callback options and an optional URL argument."""
    from wgsession.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_server=url or obj.get("server"),
        cli_timeout=obj.get("timeout"),
    )


def _password_from(source: Optional[str]) -> Optional[str]:
    if source is None:
        return None
    from wgsession.config import resolve_credential

    return resolve_credential(source)


def connect_command(
    ctx: typer.Context,
    url: Optional[str] = typer.Argument(None, help="Server URL (defaults to the configured server)."),
    password_source: Optional[str] = typer.Option(
        None,
        "--password-source",
        "-p",
        help="Password source: env:VAR, file:/path, or prompt. Omit for servers without auth.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Ignore the cached session and negotiate again."
    ),
) -> None:
    """Connect to a server, reusing a cached session when it still works.

    Example::

        wgsession connect https://vpn.example -p env:WG_PASSWORD
        wgsession connect https://open.example
    """
    try:
        config = resolve_context_config(ctx, url)
        if not config.default_server:
            error("No server URL given.")
            suggest("Pass one: wgsession connect https://vpn.example")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        password = _password_from(password_source)

        with build_facade(config) as facade:
            facade.configure(config.default_server, password, force_reauth=force)
            success(f"Connected to {facade.base_url} ({facade.get_successful_format()})")
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    suggest("List peers: wgsession clients list")


def status_command(ctx: typer.Context) -> None:
    """Show the cached server, its login format, and whether the session is still valid."""
    try:
        config = resolve_context_config(ctx)
        with build_facade(config) as facade:
            url = facade.get_cached_server_url()
            if url is None:
                info("No cached session.")
                suggest("Connect first: wgsession connect <url>")
                return
            record = facade.cache.peek(url)
            format_response(
                {
                    "server_url": url,
                    "session_valid": facade.has_valid_session(),
                    "login_format": facade.get_successful_format(),
                    "login_endpoint": record.login_endpoint if record else None,
                    "last_login": record.last_login.isoformat() if record and record.last_login else None,
                    "cookies": len(record.cookies) if record else 0,
                }
            )
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def probe_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Server URL to probe."),
    password_source: Optional[str] = typer.Option(
        None,
        "--password-source",
        "-p",
        help="Password source: env:VAR, file:/path, or prompt. Omit to probe without auth.",
    ),
) -> None:
    """Run a negotiation without caching it and print every attempt.

    Example::

        wgsession probe https://vpn.example -p prompt
    """
    try:
        config = resolve_context_config(ctx, url)
        password = _password_from(password_source)
        with build_facade(config) as facade:
            outcome = facade.probe(url, password)
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [
        [
            str(i),
            attempt.method,
            attempt.endpoint,
            attempt.login_format.value if attempt.login_format else "-",
            str(attempt.status_code) if attempt.status_code is not None else "-",
            attempt.outcome,
        ]
        for i, attempt in enumerate(outcome.trace, 1)
    ]
    print_table(["#", "Method", "Endpoint", "Format", "Status", "Outcome"], rows, title="Probe attempts")

    if outcome.ok:
        success(f"Working strategy: {outcome.successful_format} at {outcome.endpoint}")
    else:
        error(outcome.detail)
        raise typer.Exit(code=EXIT_AUTH_FAILURE)


def logout_command(ctx: typer.Context) -> None:
    """Forget every cached session and cookie."""
    try:
        config = resolve_context_config(ctx)
        with build_facade(config) as facade:
            facade.logout()
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success("Session cache cleared.")
