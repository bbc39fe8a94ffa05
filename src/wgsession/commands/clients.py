"""Client commands -- manage WireGuard peers through the cached session.

Every command resumes the last cached server (validating the cached
session, re-negotiating with the cached password if needed) and then
calls the wg-easy API through
:class:`~wgsession.client.service.WgEasyService`. A 401/403 from the API
invalidates the cached session so the next command re-negotiates.

Example::

    wgsession clients list
    wgsession clients create laptop
    wgsession clients config 6a1f... > laptop.conf
"""

from __future__ import annotations

from typing import Callable, TypeVar

import typer

from wgsession.client.service import WgEasyService
from wgsession.commands.session import build_facade, resolve_context_config
from wgsession.exceptions import AuthError, WgSessionError
from wgsession.output import error, get_output, print_table, success, suggest

clients_app = typer.Typer(no_args_is_help=True)

T = TypeVar("T")


def _with_service(ctx: typer.Context, action: Callable[[WgEasyService], T]) -> T:
    """Resume the cached session, run *action*, and map errors to exit codes."""
    try:
        config = resolve_context_config(ctx)
        with build_facade(config) as facade:
            facade.resume()
            try:
                return action(facade.get_service())
            except AuthError:
                facade.invalidate_session()
                raise
    except AuthError as exc:
        error(str(exc))
        suggest("Reconnect: wgsession connect <url> --password-source prompt")
        raise typer.Exit(code=exc.exit_code) from None
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@clients_app.command("list")
def clients_list(ctx: typer.Context) -> None:
    """List all peers."""
    clients = _with_service(ctx, lambda service: service.list_clients())
    rows = [
        [c.id, c.name, c.address, "yes" if c.enabled else "no", c.latest_handshake_at or "-"]
        for c in clients
    ]
    print_table(["ID", "Name", "Address", "Enabled", "Last handshake"], rows, title="Peers")


@clients_app.command("create")
def clients_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name of the new peer."),
) -> None:
    """Create a peer."""
    created = _with_service(ctx, lambda service: service.create_client(name))
    if created is not None:
        success(f'Created peer "{created.name}" ({created.id}).')
    else:
        success(f'Created peer "{name}".')


@clients_app.command("delete")
def clients_delete(
    ctx: typer.Context,
    client_id: str = typer.Argument(help="Peer ID."),
) -> None:
    """Delete a peer."""
    _with_service(ctx, lambda service: service.delete_client(client_id))
    success(f"Deleted peer {client_id}.")


@clients_app.command("enable")
def clients_enable(
    ctx: typer.Context,
    client_id: str = typer.Argument(help="Peer ID."),
) -> None:
    """Enable a peer."""
    _with_service(ctx, lambda service: service.enable_client(client_id))
    success(f"Enabled peer {client_id}.")


@clients_app.command("disable")
def clients_disable(
    ctx: typer.Context,
    client_id: str = typer.Argument(help="Peer ID."),
) -> None:
    """Disable a peer."""
    _with_service(ctx, lambda service: service.disable_client(client_id))
    success(f"Disabled peer {client_id}.")


@clients_app.command("config")
def clients_config(
    ctx: typer.Context,
    client_id: str = typer.Argument(help="Peer ID."),
) -> None:
    """Print a peer's WireGuard configuration to stdout."""
    text = _with_service(ctx, lambda service: service.get_client_configuration(client_id))
    get_output().print_data(text.rstrip("\n"))


@clients_app.command("qrcode")
def clients_qrcode(
    ctx: typer.Context,
    client_id: str = typer.Argument(help="Peer ID."),
) -> None:
    """Print a peer's configuration QR code (SVG) to stdout."""
    svg = _with_service(ctx, lambda service: service.get_client_qrcode(client_id))
    get_output().print_data(svg)
