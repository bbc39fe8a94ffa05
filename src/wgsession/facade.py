"""Negotiated API facade -- the single entry point for application code.

:class:`NegotiatedApiFacade` owns the state that a process needs to talk
to one wg-easy server: the normalised base URL, the live cookie store,
and the memoized :class:`~wgsession.client.service.WgEasyService`. There
are no module-level singletons; construct one facade per process and
pass it to whoever needs API access.

Control flow of :meth:`NegotiatedApiFacade.configure`::

    normalise URL
      -> (password given and not force_reauth) cached record usable?
           -> restore cookies -> SessionValidator ok?  -> commit, done
           -> validator failed                          -> invalidate record
      -> CredentialProbeEngine.negotiate
           -> success -> SessionCacheStore.save -> commit
           -> failure -> raise NegotiationError (facade state untouched)

State is only committed after success, so a failed ``configure`` leaves
the facade exactly as it was (unconfigured, or still bound to the
previous server).
"""

from __future__ import annotations

from typing import Optional

import httpx

from wgsession.auth.negotiator import CredentialProbeEngine
from wgsession.auth.validator import SessionValidator
from wgsession.cache.session_cache import SessionCacheStore
from wgsession.client.cookie_store import CookieStore
from wgsession.client.service import WgEasyService
from wgsession.client.transport import ProbeClient
from wgsession.config import get_cache_dir, load_global_config, normalize_server_url
from wgsession.exceptions import NegotiationError, NotConfiguredError
from wgsession.models import (
    AuthRecord,
    GlobalConfig,
    NegotiationOutcome,
    NegotiationSuccess,
    RequestConfig,
)
from wgsession.output import debug, info


class NegotiatedApiFacade:
    """Negotiate, cache, and expose an authenticated wg-easy service handle.

    Callers must serialise :meth:`configure` calls; concurrent reads of
    an already built service handle are safe.

    Args:
        cache: Persistent session cache.
        request_config: Timeout and TLS settings for every request.
        transport: Optional custom :class:`httpx.BaseTransport` shared by
            every client the facade creates (tests pass a mock transport).

    Example::

        facade = NegotiatedApiFacade.from_config()
        facade.configure("https://vpn.example", "secret")
        facade.get_successful_format()      # e.g. "JSON_PASS"
        facade.get_service().list_clients()
    """

    def __init__(
        self,
        cache: SessionCacheStore,
        request_config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._cache = cache
        self._request_config = request_config or RequestConfig()
        self._transport = transport
        self._validator = SessionValidator(self._make_client)

        self._base_url: Optional[str] = None
        self._cookie_store = CookieStore()
        self._service: Optional[WgEasyService] = None
        self._last_result: Optional[NegotiationSuccess] = None

    @classmethod
    def from_config(
        cls,
        config: Optional[GlobalConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> NegotiatedApiFacade:
        """Build a facade whose cache lives in the XDG cache directory."""
        config = config or load_global_config()
        cache = SessionCacheStore(
            get_cache_dir(),
            ttl=config.session.ttl,
            persist_password=config.session.persist_password,
        )
        return cls(cache, config.request, transport)

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def is_configured(self) -> bool:
        return self._base_url is not None

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def cookie_store(self) -> CookieStore:
        """The live cookie store (authoritative while the process runs)."""
        return self._cookie_store

    @property
    def cache(self) -> SessionCacheStore:
        return self._cache

    @property
    def last_result(self) -> Optional[NegotiationSuccess]:
        """Outcome of the last negotiation, or ``None`` if the session came from the cache."""
        return self._last_result

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def configure(
        self,
        base_url: str,
        password: Optional[str] = None,
        force_reauth: bool = False,
    ) -> None:
        """Bind the facade to *base_url*, reusing a cached session when possible.

        Args:
            base_url: Server URL; a trailing ``/`` is added if missing.
            password: Login password. ``None`` skips the cache check and
                probes for a server without authentication, as does a
                blank password once the cache check misses.
            force_reauth: Ignore any cached session and negotiate afresh.

        Raises:
            InvalidUsageError: If *base_url* is not an http(s) URL.
            NegotiationError: If no strategy worked. The facade keeps its
                previous state.
        """
        url = normalize_server_url(base_url)
        debug(f"Configuring server {url}")

        if not force_reauth and password is not None:
            if self._try_cached_session(url):
                return

        cookie_store = CookieStore()
        with self._make_client(cookie_store) as client:
            outcome = CredentialProbeEngine(client).negotiate(url, password)

        if not outcome.ok:
            raise NegotiationError(outcome)

        self._cache.save(
            AuthRecord(
                server_url=url,
                password=None if outcome.no_auth_required else password,
                login_format=outcome.login_format,
                login_endpoint=None if outcome.no_auth_required else outcome.endpoint,
                no_auth_required=outcome.no_auth_required,
                cookies=outcome.cookies,
            )
        )
        debug(f"Negotiated {url}: {outcome.successful_format} after {outcome.attempts} attempts")
        self._commit(url, cookie_store, outcome)

    def resume(self, password: Optional[str] = None) -> None:
        """Reconfigure against the last cached server.

        Uses the password kept in the cache unless *password* is given.
        A record invalidated earlier still provides its URL and password,
        so this re-negotiates without asking the user again.

        Raises:
            NotConfiguredError: If no server was ever cached.
            NegotiationError: If re-negotiation fails.
        """
        url = self._cache.last_server_url()
        if url is None:
            raise NotConfiguredError("No cached server. Connect to a server first.")
        if password is None:
            record = self._cache.peek(url)
            password = (record.password if record else None) or ""
        self.configure(url, password)

    def probe(self, base_url: str, password: Optional[str] = None) -> NegotiationOutcome:
        """Run a negotiation for diagnostics only.

        Nothing is cached and the facade's state is left untouched; the
        returned outcome carries the full attempt trace either way.
        """
        url = normalize_server_url(base_url)
        with self._make_client(CookieStore()) as client:
            return CredentialProbeEngine(client).negotiate(url, password)

    def _try_cached_session(self, url: str) -> bool:
        record = self._cache.load(url)
        if record is None:
            return False

        restored = CookieStore()
        restored.restore(record.cookies, host=httpx.URL(url).host)
        debug(f"Restored {len(record.cookies)} cached cookies for {url}")

        if self._validator.validate(url, restored):
            info(f"Reusing cached session for {url}")
            self._commit(url, restored, None)
            return True

        debug(f"Cached session for {url} no longer works; invalidating")
        self._cache.invalidate(url)
        return False

    def _commit(
        self,
        url: str,
        cookie_store: CookieStore,
        result: Optional[NegotiationSuccess],
    ) -> None:
        self._drop_service()
        self._base_url = url
        self._cookie_store = cookie_store
        self._last_result = result

    # ------------------------------------------------------------------ #
    # Service access
    # ------------------------------------------------------------------ #

    def get_service(self) -> WgEasyService:
        """Return the memoized service handle for the configured server.

        Never triggers negotiation.

        Raises:
            NotConfiguredError: If :meth:`configure` never succeeded.
        """
        if self._base_url is None:
            raise NotConfiguredError("Server URL not configured. Call configure() first.")
        if self._service is None:
            client = self._make_client(self._cookie_store, base_url=self._base_url)
            self._service = WgEasyService(client.open())
        return self._service

    # ------------------------------------------------------------------ #
    # Session queries and teardown
    # ------------------------------------------------------------------ #

    def has_valid_session(self) -> bool:
        """Whether the current (or last cached) server has a usable cached session."""
        url = self._base_url or self._cache.last_server_url()
        return url is not None and self._cache.has_valid_session(url)

    def get_cached_server_url(self) -> Optional[str]:
        return self._cache.last_server_url()

    def get_successful_format(self) -> Optional[str]:
        """``NO_AUTH_REQUIRED``, the winning format name, or ``None`` without a usable session."""
        url = self._base_url or self._cache.last_server_url()
        if url is None:
            return None
        record = self._cache.load(url)
        return record.successful_format if record else None

    def invalidate_session(self) -> None:
        """Drop the live session after the server rejected it.

        The cached record keeps its URL and password for :meth:`resume`.
        """
        if self._base_url is not None:
            self._cache.invalidate(self._base_url)
        self._reset()

    def logout(self) -> None:
        """Erase all cached state and return to the unconfigured state."""
        self._cache.clear()
        self._reset()
        debug("Logged out; session cache cleared")

    def close(self) -> None:
        self._drop_service()
        self._cache.close()

    def __enter__(self) -> NegotiatedApiFacade:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _make_client(self, cookie_store: CookieStore, base_url: str = "") -> ProbeClient:
        return ProbeClient(cookie_store, self._request_config, self._transport, base_url=base_url)

    def _drop_service(self) -> None:
        if self._service is not None:
            self._service.close()
            self._service = None

    def _reset(self) -> None:
        self._drop_service()
        self._cookie_store.clear()
        self._base_url = None
        self._last_result = None
