"""Thin HTTP transport shared by negotiation, validation, and API calls.

:class:`ProbeClient` wraps :class:`httpx.Client` with fixed timeouts and
binds it to a :class:`~wgsession.client.cookie_store.CookieStore` through
httpx event hooks:

- **request hook** -- replaces any ``Cookie`` header with the one built
  from the store for the request host, so cookies never leak in from
  httpx's own jar.
- **response hook** -- parses every ``Set-Cookie`` header and saves the
  result in the store under the request host. httpx fires response
  hooks for each redirect hop, so cookies set on a ``302`` after login
  are captured too.

Unlike :class:`~wgsession.client.service.WgEasyService`, the probe client
never maps status codes to exceptions: callers classify responses
themselves and only see :class:`httpx.HTTPError` for transport failures.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from wgsession.client.cookie_store import CookieStore, parse_set_cookie
from wgsession.models import RequestConfig


class ProbeClient:
    """HTTP client with a fixed timeout policy and a host-keyed cookie store.

    Must be opened before use, either as a context manager or through
    :meth:`open` / :meth:`close`.

    Args:
        cookie_store: Store that supplies outgoing cookies and receives
            ``Set-Cookie`` results.
        config: Timeout and TLS settings. The single ``timeout`` value is
            applied to connect, read, write, and pool acquisition.
        transport: Optional custom :class:`httpx.BaseTransport` (tests pass
            an :class:`httpx.MockTransport`).
        base_url: Optional base URL for relative request paths.

    Example::

        with ProbeClient(CookieStore()) as client:
            response = client.get("https://vpn.example/api/clients")
    """

    def __init__(
        self,
        cookie_store: CookieStore,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        base_url: str = "",
    ) -> None:
        self._cookie_store = cookie_store
        self._config = config or RequestConfig()
        self._transport = transport
        self._base_url = base_url
        self._client: Optional[httpx.Client] = None

    @property
    def cookie_store(self) -> CookieStore:
        return self._cookie_store

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> ProbeClient:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._config.timeout),
                verify=self._config.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
                event_hooks={
                    "request": [self._attach_cookies],
                    "response": [self._capture_cookies],
                },
            )
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> ProbeClient:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and return the response, whatever its status.

        Raises:
            httpx.HTTPError: On transport failures (timeout, refused
                connection, unresolved host).
        """
        assert self._client is not None, "Client not opened -- use as context manager"
        return self._client.request(method, url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Cookie hooks
    # ------------------------------------------------------------------ #

    def _attach_cookies(self, request: httpx.Request) -> None:
        if "Cookie" in request.headers:
            del request.headers["Cookie"]
        header = self._cookie_store.header_for(request.url.host)
        if header:
            request.headers["Cookie"] = header

    def _capture_cookies(self, response: httpx.Response) -> None:
        host = response.request.url.host
        cookies = [
            cookie
            for cookie in (
                parse_set_cookie(raw, host) for raw in response.headers.get_list("set-cookie")
            )
            if cookie is not None
        ]
        if cookies:
            self._cookie_store.save(host, cookies)
