"""Where wgsession keeps its files and how a run's settings are resolved.

``config.json`` lives in :func:`get_config_dir` and deserialises to
:class:`~wgsession.models.GlobalConfig`. :func:`resolve_config` layers
``WGSESSION_*`` environment variables and CLI flags on top of it. The
session cache is kept apart, under :func:`get_cache_dir`, by
:class:`~wgsession.cache.SessionCacheStore`.

Passwords are never part of ``config.json``: :func:`resolve_credential`
reads them from an environment variable, a file, or a prompt.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from wgsession.exceptions import ConfigError, InvalidUsageError
from wgsession.models import GlobalConfig

_APP_NAME = "wgsession"
_CONFIG_FILENAME = "config.json"


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG base directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Resolve and create one of wgsession's directories.

    On XDG platforms this is ``$<xdg_var>/wgsession`` (``~/<xdg_default>``
    when the variable is unset or empty). Elsewhere it is
    ``~/.wgsession/<fallback>``.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``."""
    return _app_dir("XDG_CONFIG_HOME", ".config", "")


def get_cache_dir() -> Path:
    """Directory holding the negotiated session cache.

    Deleting it forces a full re-negotiation on the next connect.
    """
    return _app_dir("XDG_CACHE_HOME", ".cache", "cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("XDG_DATA_HOME", ".local/share", "logs")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


# --- config.json ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``; a missing file yields the defaults.

    Raises:
        ConfigError: If the file is not JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json"), indent=2)
    _atomic_write(_global_config_path(), payload + "\n")


def resolve_config(
    cli_server: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> GlobalConfig:
    """Build the effective config for one run.

    CLI flags beat ``WGSESSION_URL``/``WGSESSION_TIMEOUT``, which beat
    ``config.json``, which beats the model defaults.

    Raises:
        ConfigError: If ``WGSESSION_TIMEOUT`` is not a number.
    """
    config = load_global_config()

    server = cli_server or os.environ.get("WGSESSION_URL")
    if server:
        config.default_server = server

    env_timeout = os.environ.get("WGSESSION_TIMEOUT")
    if cli_timeout is not None:
        config.request.timeout = cli_timeout
    elif env_timeout:
        try:
            config.request.timeout = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"WGSESSION_TIMEOUT must be a number of seconds, got {env_timeout!r}"
            ) from exc

    return config


# --- Passwords ---


def resolve_credential(source: str) -> str:
    """Read the server password from *source*.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a
    file (surrounding whitespace stripped), and ``prompt`` asks on the
    terminal.

    Raises:
        ConfigError: If the source is unknown or yields nothing.
    """
    kind, _, target = source.partition(":")

    if kind == "env" and target:
        password = os.environ.get(target)
        if password is None:
            raise ConfigError(f"Environment variable '{target}' is not set (source: {source})")
        return password

    if kind == "file" and target:
        path = Path(target).expanduser()
        if not path.is_file():
            raise ConfigError(f"Password file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read password file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for password: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Server password: ")

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Server URL ---


def normalize_server_url(url: str) -> str:
    """Return *url* stripped of whitespace and guaranteed to end with ``/``.

    Raises:
        InvalidUsageError: If the URL has no ``http``/``https`` scheme or
            no host.
    """
    clean = url.strip()
    parts = urlsplit(clean)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidUsageError(
            f"Invalid server URL {url!r}: expected http(s)://host[:port][/path]"
        )
    return clean if clean.endswith("/") else f"{clean}/"
