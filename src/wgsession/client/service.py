"""Ready-to-use wg-easy API handle returned by the negotiated facade.

:class:`WgEasyService` is built lazily by
:meth:`~wgsession.facade.NegotiatedApiFacade.get_service` once a session
has been negotiated or restored. It is bound to one base URL and one
cookie store and is never mutated afterwards; reconfiguring the facade
discards it and builds a new one.

The methods are plain REST pass-through calls. Unlike the probe engine,
this layer maps HTTP error statuses to typed exceptions:

- 401 / 403 -> :class:`~wgsession.exceptions.AuthError`
- 404 -> :class:`~wgsession.exceptions.NotFoundError`
- other 4xx and 5xx -> :class:`~wgsession.exceptions.ServerError`
- transport failures -> :class:`~wgsession.exceptions.ConnectionError_`
"""

from __future__ import annotations

from typing import Any

import httpx

from wgsession.client.transport import ProbeClient
from wgsession.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from wgsession.models import CreateClientRequest, ServerInfo, WireguardClient
from wgsession.output import debug

_CLIENTS_PATH = "api/wireguard/client"


class WgEasyService:
    """Typed access to the wg-easy REST API over an authenticated :class:`ProbeClient`.

    Args:
        client: An opened probe client whose ``base_url`` is the server
            root and whose cookie store holds the negotiated session.
    """

    def __init__(self, client: ProbeClient) -> None:
        self._client = client

    @property
    def base_url(self) -> str:
        return self._client.base_url

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def list_clients(self) -> list[WireguardClient]:
        """Return every configured peer."""
        data = self._request("GET", _CLIENTS_PATH).json()
        if isinstance(data, dict):
            # some deployments wrap the list: {"clients": [...]}
            data = data.get("clients", [])
        return [WireguardClient.model_validate(item) for item in data]

    def create_client(self, name: str) -> WireguardClient | None:
        """Create a peer called *name*.

        Returns:
            The created peer, or ``None`` when the server answers with an
            empty body (older wg-easy releases do).
        """
        body = CreateClientRequest(name=name).model_dump()
        response = self._request("POST", _CLIENTS_PATH, json=body)
        if not response.content:
            return None
        data = response.json()
        if isinstance(data, dict) and "client" in data:
            data = data["client"]
        if not isinstance(data, dict) or "id" not in data:
            return None
        return WireguardClient.model_validate(data)

    def delete_client(self, client_id: str) -> None:
        self._request("DELETE", f"{_CLIENTS_PATH}/{client_id}")

    def enable_client(self, client_id: str) -> None:
        self._request("POST", f"{_CLIENTS_PATH}/{client_id}/enable")

    def disable_client(self, client_id: str) -> None:
        self._request("POST", f"{_CLIENTS_PATH}/{client_id}/disable")

    def get_client_configuration(self, client_id: str) -> str:
        """Return the peer's WireGuard ``.conf`` text."""
        return self._request("GET", f"{_CLIENTS_PATH}/{client_id}/configuration").text

    def get_client_qrcode(self, client_id: str) -> str:
        """Return the peer's configuration QR code as SVG markup."""
        return self._request("GET", f"{_CLIENTS_PATH}/{client_id}/qrcode.svg").text

    def get_session(self) -> ServerInfo:
        """Return server version information from ``api/session``."""
        response = self._request("GET", "api/session")
        if not response.content:
            return ServerInfo()
        data = response.json()
        return ServerInfo.model_validate(data if isinstance(data, dict) else {})

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        debug(f"{method} {self.base_url}{path}")
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"{method} {path} failed: {exc}") from exc
        _map_response_error(response)
        return response


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)
