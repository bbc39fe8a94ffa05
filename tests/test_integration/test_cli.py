"""End-to-end CLI tests: typer app -> facade -> mock wg-easy server."""

from __future__ import annotations

import json

import httpx
import pytest

from wgsession import __version__
from wgsession.app import app
from wgsession.cache.session_cache import SessionCacheStore
from wgsession.config import load_global_config
from wgsession.facade import NegotiatedApiFacade

URL = "https://vpn.example"
PEER = {"id": "6a1f", "name": "laptop", "address": "10.8.0.2", "publicKey": "pub=", "enabled": True}
FLAGS = ["--plain", "--no-color"]


def _accepts_pass(request: httpx.Request) -> httpx.Response:
    if request.headers.get("content-type") == "application/json":
        if json.loads(request.content) == {"pass": "hunter2"}:
            return httpx.Response(200, headers={"Set-Cookie": "sid=abc123"})
    return httpx.Response(401)


def _authenticated(body):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers.get("cookie") == "sid=abc123":
            return httpx.Response(200, **body)
        return httpx.Response(401)

    return handler


@pytest.fixture
def server(isolated_config, fake_server, clock, monkeypatch):
    """Wire the CLI to a fake wg-easy through a patched facade factory."""
    fake_server.route("POST", "/api/auth", _accepts_pass)
    fake_server.route("GET", "/api/wireguard/client", _authenticated({"json": [PEER]}))
    fake_server.route(
        "GET",
        "/api/wireguard/client/6a1f/configuration",
        _authenticated({"text": "[Interface]\nAddress = 10.8.0.2/24\n"}),
    )

    def build(config):
        cache = SessionCacheStore(isolated_config / "sessions", clock=clock)
        return NegotiatedApiFacade(cache, config.request, transport=fake_server.transport)

    monkeypatch.setattr("wgsession.commands.session.build_facade", build)
    monkeypatch.setattr("wgsession.commands.clients.build_facade", build)
    monkeypatch.setenv("WG_PASSWORD", "hunter2")
    return fake_server


def _run(cli_runner, *args: str):
    return cli_runner.invoke(app, [*FLAGS, *args])


def _connect(cli_runner):
    result = _run(cli_runner, "connect", URL, "-p", "env:WG_PASSWORD")
    assert result.exit_code == 0, result.output
    return result


# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"wgsession {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, [])
        assert "connect" in result.output
        assert "clients" in result.output


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


class TestConnect:
    def test_connect_reports_format(self, cli_runner, server) -> None:
        result = _connect(cli_runner)
        assert "Connected to https://vpn.example/ (JSON_PASS)" in result.output

    def test_second_connect_reuses_session(self, cli_runner, server) -> None:
        _connect(cli_runner)
        server.requests.clear()

        _connect(cli_runner)
        assert server.calls("POST") == []

    def test_wrong_password_exits_auth_failure(self, cli_runner, server, monkeypatch) -> None:
        monkeypatch.setenv("WG_PASSWORD", "wrong")
        result = _run(cli_runner, "connect", URL, "-p", "env:WG_PASSWORD")
        assert result.exit_code == 3
        assert "All login formats failed" in result.output

    def test_missing_url(self, cli_runner, server) -> None:
        result = _run(cli_runner, "connect")
        assert result.exit_code == 2
        assert "No server URL" in result.output

    def test_url_from_env(self, cli_runner, server, monkeypatch) -> None:
        monkeypatch.setenv("WGSESSION_URL", URL)
        result = _run(cli_runner, "connect", "-p", "env:WG_PASSWORD")
        assert result.exit_code == 0, result.output

    def test_invalid_url(self, cli_runner, server) -> None:
        result = _run(cli_runner, "connect", "vpn.example", "-p", "env:WG_PASSWORD")
        assert result.exit_code == 2

    def test_bad_password_source(self, cli_runner, server) -> None:
        result = _run(cli_runner, "connect", URL, "-p", "vault:wg")
        assert result.exit_code == 1
        assert "Unknown credential source" in result.output


class TestStatusLogout:
    def test_status_without_session(self, cli_runner, server) -> None:
        result = _run(cli_runner, "status")
        assert result.exit_code == 0
        assert "No cached session" in result.output

    def test_status_after_connect(self, cli_runner, server) -> None:
        _connect(cli_runner)
        result = _run(cli_runner, "status")
        assert result.exit_code == 0
        assert "server_url\thttps://vpn.example/" in result.output
        assert "session_valid\tTrue" in result.output
        assert "login_format\tJSON_PASS" in result.output
        assert "login_endpoint\tapi/auth" in result.output

    def test_status_after_ttl(self, cli_runner, server, clock) -> None:
        _connect(cli_runner)
        clock.advance(hours=25)
        result = _run(cli_runner, "status")
        assert "session_valid\tFalse" in result.output

    def test_logout(self, cli_runner, server) -> None:
        _connect(cli_runner)
        result = _run(cli_runner, "logout")
        assert result.exit_code == 0
        assert "No cached session" in _run(cli_runner, "status").output


class TestProbe:
    def test_probe_prints_trace(self, cli_runner, server) -> None:
        result = _run(cli_runner, "probe", URL, "-p", "env:WG_PASSWORD")
        assert result.exit_code == 0, result.output
        assert "api/auth\tJSON_PASS\t200\tsuccess" in result.output
        assert "Working strategy: JSON_PASS at api/auth" in result.output
        assert "No cached session" in _run(cli_runner, "status").output

    def test_probe_failure(self, cli_runner, server) -> None:
        result = _run(cli_runner, "probe", URL)
        assert result.exit_code == 3
        assert "api/clients" in result.output


# ---------------------------------------------------------------------------
# Client commands
# ---------------------------------------------------------------------------


class TestClients:
    def test_list_requires_connection(self, cli_runner, server) -> None:
        result = _run(cli_runner, "clients", "list")
        assert result.exit_code == 8
        assert "No cached server" in result.output

    def test_list(self, cli_runner, server) -> None:
        _connect(cli_runner)
        server.requests.clear()

        result = _run(cli_runner, "clients", "list")
        assert result.exit_code == 0, result.output
        assert "6a1f\tlaptop\t10.8.0.2\tyes\t-" in result.output
        assert server.calls("POST") == []

    def test_config_goes_to_stdout(self, cli_runner, server) -> None:
        _connect(cli_runner)
        result = _run(cli_runner, "clients", "config", "6a1f")
        assert result.exit_code == 0, result.output
        assert "[Interface]" in result.stdout

    def test_missing_peer(self, cli_runner, server) -> None:
        server.respond("POST", "/api/wireguard/client/nope/enable", 404, json={"error": "Client Not Found"})
        _connect(cli_runner)
        result = _run(cli_runner, "clients", "enable", "nope")
        assert result.exit_code == 4
        assert "Client Not Found" in result.output

    def test_rejected_session_is_invalidated(self, cli_runner, server) -> None:
        _connect(cli_runner)
        server.respond("GET", "/api/wireguard/client/6a1f/qrcode.svg", 401)

        result = _run(cli_runner, "clients", "qrcode", "6a1f")
        assert result.exit_code == 3
        assert "Reconnect" in result.output

        server.requests.clear()
        _run(cli_runner, "clients", "list")
        assert len(server.calls("POST")) == 7

    def test_expired_session_renegotiates_with_cached_password(self, cli_runner, server, clock, monkeypatch) -> None:
        _connect(cli_runner)
        monkeypatch.delenv("WG_PASSWORD")
        clock.advance(hours=25)
        server.requests.clear()

        result = _run(cli_runner, "clients", "list")
        assert result.exit_code == 0, result.output
        assert len(server.calls("POST")) == 7


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_show(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0
        assert '"ttl_hours": 24.0' in result.output

    def test_set_number_and_bool(self, cli_runner, isolated_config) -> None:
        assert _run(cli_runner, "config", "set", "request.timeout", "10").exit_code == 0
        assert _run(cli_runner, "config", "set", "session.persist_password", "false").exit_code == 0
        config = load_global_config()
        assert config.request.timeout == 10.0
        assert config.session.persist_password is False

    def test_set_default_server(self, cli_runner, isolated_config) -> None:
        assert _run(cli_runner, "config", "set", "default_server", URL).exit_code == 0
        assert load_global_config().default_server == URL

    def test_set_unknown_key(self, cli_runner, isolated_config) -> None:
        result = _run(cli_runner, "config", "set", "session.nope", "1")
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_bad_number(self, cli_runner, isolated_config) -> None:
        result = _run(cli_runner, "config", "set", "request.timeout", "soon")
        assert result.exit_code == 2
