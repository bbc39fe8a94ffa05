"""Config commands -- view and modify global configuration.

Provides the ``wgsession config`` sub-command group for reading and
updating the user's global configuration file
(:class:`~wgsession.models.GlobalConfig`): the default server, request
timeout and TLS verification, session lifetime, and output format.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from wgsession.exceptions import WgSessionError
from wgsession.exit_codes import EXIT_INVALID_USAGE
from wgsession.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        wgsession config show
        wgsession --json config show
    """
    from wgsession.config import get_config_dir, load_global_config

    try:
        config = load_global_config()
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


def _coerce(key: str, current: Any, value: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, (int, float)):
        try:
            return type(current)(value)
        except ValueError:
            error(f"Expected a number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if current is None and value.lower() in ("", "none", "null"):
        return None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'session.ttl_hours')."
    ),
    value: str = typer.Argument(help="Value to set ('none' clears default_server)."),
) -> None:
    """Set a configuration value.

    The value is coerced to the existing field's type (bool, int, float,
    or str) and the result is validated before saving.

    Example::

        wgsession config set default_server https://vpn.example
        wgsession config set request.timeout 10
        wgsession config set session.persist_password false
    """
    from wgsession.config import load_global_config, save_global_config
    from wgsession.models import GlobalConfig

    try:
        data = load_global_config().model_dump(mode="json")
    except WgSessionError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")
