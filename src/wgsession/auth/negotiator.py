"""Credential probe engine -- discovers how a server wants to be logged into.

The engine runs a bounded, strictly sequential search and stops at the
first 2xx response:

1. **No password** (``None`` or blank): ``GET`` each probe endpoint
   (``api/wireguard/client``, ``api/clients``). A 2xx means the server
   needs no authentication. Login endpoints are never contacted.
2. **Password given**: ``POST`` every login endpoint × payload format,
   endpoint in the outer loop, so all five formats are tried against
   ``api/session`` before ``api/auth`` is touched.

Every non-2xx status and every transport error is classified, logged at
debug level, recorded in the attempt trace, and skipped. There is no
retry or backoff and no short-circuit after a 404: the search stays
exhaustive and deterministic. Only exhaustion of the whole search space
is reported, as a :class:`~wgsession.models.NegotiationFailure`.

The engine never touches the session cache. The caller persists the
returned :class:`~wgsession.models.NegotiationSuccess`, whose ``cookies``
are a snapshot of the client's cookie store taken at the moment of
success.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from wgsession.auth.formats import build_login_request
from wgsession.client.transport import ProbeClient
from wgsession.models import (
    LOGIN_ENDPOINTS,
    PROBE_ENDPOINTS,
    FailureKind,
    LoginFormat,
    NegotiationFailure,
    NegotiationOutcome,
    NegotiationSuccess,
    ProbeAttempt,
)
from wgsession.output import debug


def classify_status(status_code: int) -> str:
    """Map an HTTP status to the short outcome label used in attempt traces."""
    if 200 <= status_code < 300:
        return "success"
    if status_code == 401:
        return "rejected"
    if status_code == 403:
        return "forbidden"
    if status_code == 404:
        return "not_found"
    if status_code == 405:
        return "method_not_allowed"
    if status_code >= 500:
        return "server_error"
    return "unexpected_status"


def send_probe(
    client: ProbeClient,
    method: str,
    url: str,
    endpoint: str,
    login_format: Optional[LoginFormat] = None,
    **kwargs: Any,
) -> ProbeAttempt:
    """Issue one request and describe its result without raising.

    Transport failures (timeouts, refused connections, unresolved hosts,
    malformed URLs) are captured in :attr:`ProbeAttempt.error`.
    """
    try:
        response = client.request(method, url, **kwargs)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return ProbeAttempt(
            method=method,
            url=url,
            endpoint=endpoint,
            login_format=login_format,
            error=f"{type(exc).__name__}: {exc}",
            outcome="transport_error",
        )
    return ProbeAttempt(
        method=method,
        url=url,
        endpoint=endpoint,
        login_format=login_format,
        status_code=response.status_code,
        outcome=classify_status(response.status_code),
    )


def _describe(attempt: ProbeAttempt) -> str:
    if attempt.error is not None:
        return attempt.error
    return f"HTTP {attempt.status_code} ({attempt.outcome})"


class CredentialProbeEngine:
    """Search endpoint × format combinations for a working login.

    Args:
        client: An opened :class:`ProbeClient`. Its cookie store receives
            the session cookies of the winning response.
        login_endpoints: Candidate login paths, relative to the base URL,
            in priority order.
        probe_endpoints: Data paths used for the unauthenticated probe.
        formats: Payload formats in priority order.

    Example::

        with ProbeClient(CookieStore()) as client:
            outcome = CredentialProbeEngine(client).negotiate("https://vpn.example/", "secret")
            if outcome.ok:
                print(outcome.endpoint, outcome.login_format)
    """

    def __init__(
        self,
        client: ProbeClient,
        login_endpoints: Sequence[str] = LOGIN_ENDPOINTS,
        probe_endpoints: Sequence[str] = PROBE_ENDPOINTS,
        formats: Sequence[LoginFormat] = tuple(LoginFormat),
    ) -> None:
        self._client = client
        self._login_endpoints = tuple(login_endpoints)
        self._probe_endpoints = tuple(probe_endpoints)
        self._formats = tuple(formats)

    @property
    def max_attempts(self) -> int:
        """Size of the authenticated search space."""
        return len(self._login_endpoints) * len(self._formats)

    def negotiate(self, base_url: str, password: Optional[str] = None) -> NegotiationOutcome:
        """Find a working strategy for the server at *base_url*.

        Args:
            base_url: Normalised server URL ending with ``/``.
            password: Login password. ``None`` or blank selects the
                unauthenticated probe.

        Returns:
            :class:`NegotiationSuccess` for the first 2xx response, or
            :class:`NegotiationFailure` with kind ``ALL_PROBES_FAILED`` /
            ``ALL_FORMATS_FAILED`` when every attempt failed.
        """
        if password is None or not password.strip():
            return self._probe_without_auth(base_url)
        return self._search_login(base_url, password)

    # ------------------------------------------------------------------ #
    # Search strategies
    # ------------------------------------------------------------------ #

    def _probe_without_auth(self, base_url: str) -> NegotiationOutcome:
        debug(f"Probing {base_url} without authentication")
        trace: list[ProbeAttempt] = []

        for endpoint in self._probe_endpoints:
            attempt = send_probe(self._client, "GET", f"{base_url}{endpoint}", endpoint)
            trace.append(attempt)
            debug(f"GET {endpoint}: {_describe(attempt)}")
            if attempt.succeeded:
                return NegotiationSuccess(
                    no_auth_required=True,
                    endpoint=endpoint,
                    cookies=self._client.cookie_store.export_all(),
                    attempts=len(trace),
                    trace=trace,
                )

        return NegotiationFailure(
            kind=FailureKind.ALL_PROBES_FAILED,
            attempts=len(trace),
            detail=(
                f"No endpoint of {base_url} answered without authentication "
                f"({len(trace)} probes failed)"
            ),
            trace=trace,
        )

    def _search_login(self, base_url: str, password: str) -> NegotiationOutcome:
        total = self.max_attempts
        debug(f"Searching login strategy for {base_url} (password length {len(password)})")
        trace: list[ProbeAttempt] = []

        for endpoint in self._login_endpoints:
            url = f"{base_url}{endpoint}"
            for login_format in self._formats:
                attempt = send_probe(
                    self._client,
                    "POST",
                    url,
                    endpoint,
                    login_format,
                    **build_login_request(login_format, password),
                )
                trace.append(attempt)
                debug(f"[{len(trace)}/{total}] {endpoint} + {login_format.value}: {_describe(attempt)}")
                if attempt.succeeded:
                    return NegotiationSuccess(
                        login_format=login_format,
                        endpoint=endpoint,
                        cookies=self._client.cookie_store.export_all(),
                        attempts=len(trace),
                        trace=trace,
                    )

        return NegotiationFailure(
            kind=FailureKind.ALL_FORMATS_FAILED,
            attempts=len(trace),
            detail=(
                f"All login formats failed against {base_url} after {len(trace)} attempts; "
                "check the server URL and password"
            ),
            trace=trace,
        )
