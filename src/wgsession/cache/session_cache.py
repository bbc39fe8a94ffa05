"""Durable per-server session cache backed by :mod:`diskcache`.

Each configured server owns one :class:`~wgsession.models.AuthRecord`,
persisted as a flat set of scalar keys under a namespace derived from the
normalised server URL::

    <ns>:schema_version       int
    <ns>:server_url           str
    <ns>:server_password      str   ("" when absent or not persisted)
    <ns>:login_format         str   ("" for no-auth servers)
    <ns>:login_endpoint       str
    <ns>:no_auth_required     bool
    <ns>:last_login_time      int   (epoch milliseconds, 0 after invalidation)
    <ns>:session_valid        bool
    <ns>:cookie_count         int
    <ns>:cookie_<i>_name      str   ... _value, _domain, _path,
    <ns>:cookie_<i>_expires   str   (ISO-8601, "" for session cookies)
    <ns>:cookie_<i>_secure    bool  ... _httponly

The namespace is ``server:`` plus the first 16 hex digits of the URL's
SHA-256, so arbitrary URLs never leak into key names. A global
``last_server_url`` key remembers the most recently saved server.

Validity rule, shared by :meth:`SessionCacheStore.load` and
:meth:`SessionCacheStore.has_valid_session`: a record is usable iff its
``session_valid`` flag is set and ``now - last_login_time < ttl``.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import diskcache

from wgsession.exceptions import CacheCorruptError
from wgsession.models import (
    CACHE_SCHEMA_VERSION,
    SESSION_TTL,
    AuthRecord,
    Cookie,
    LoginFormat,
)
from wgsession.output import debug

_LAST_SERVER_KEY = "last_server_url"
_COOKIE_FIELDS = ("name", "value", "domain", "path", "expires", "secure", "httponly")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionCacheStore:
    """Persist, expire, and invalidate negotiated sessions.

    Args:
        directory: Root directory for the cache. A ``sessions/``
            subdirectory is created inside it.
        ttl: Maximum session age before a record counts as expired.
        persist_password: When ``False`` the password is never written to
            disk; a later re-negotiation then needs the caller to supply
            it again.
        clock: Returns the current time as an aware ``datetime``.
            Defaults to UTC now.

    Example::

        store = SessionCacheStore(get_cache_dir())
        store.save(AuthRecord(server_url="https://vpn.example/", no_auth_required=True))
        record = store.load("https://vpn.example/")
    """

    def __init__(
        self,
        directory: str | Path,
        ttl: timedelta = SESSION_TTL,
        persist_password: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._directory = Path(directory) / "sessions"
        self._cache = diskcache.Cache(str(self._directory))
        self._ttl = ttl
        self._persist_password = persist_password
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def directory(self) -> Path:
        return self._directory

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def save(self, record: AuthRecord) -> None:
        """Upsert *record*, stamping ``last_login = now`` and ``session_valid = True``.

        Cookie entries left over from a previous, longer list are removed
        so that the indexed layout always holds exactly ``cookie_count``
        cookies.
        """
        url = record.server_url
        ns = _namespace(url)
        now = self._clock()
        password = record.password if self._persist_password else None

        with self._cache.transact():
            self._drop_cookies(ns)
            self._put(ns, "schema_version", CACHE_SCHEMA_VERSION)
            self._put(ns, "server_url", url)
            self._put(ns, "server_password", password or "")
            self._put(ns, "login_format", record.login_format.value if record.login_format else "")
            self._put(ns, "login_endpoint", record.login_endpoint or "")
            self._put(ns, "no_auth_required", record.no_auth_required)
            self._put(ns, "last_login_time", _to_millis(now))
            self._put(ns, "session_valid", True)
            self._put(ns, "cookie_count", len(record.cookies))
            for index, cookie in enumerate(record.cookies):
                self._write_cookie(ns, index, cookie)
            self._cache.set(_LAST_SERVER_KEY, url)

        debug(f"Session cached for {url} ({len(record.cookies)} cookies)")

    def load(self, server_url: str) -> Optional[AuthRecord]:
        """Return the usable record for *server_url*, or ``None``.

        An expired record is invalidated as a side effect before ``None``
        is returned. Invalidated records are never returned; use
        :meth:`peek` to read their remaining configuration.
        """
        record = self.peek(server_url)
        if record is None:
            return None
        if record.session_valid:
            return record
        if self._get(_namespace(server_url), "session_valid", False):
            debug(f"Cached session for {server_url} expired; invalidating")
            self.invalidate(server_url)
        return None

    def peek(self, server_url: str) -> Optional[AuthRecord]:
        """Return the stored configuration for *server_url* without side effects.

        The URL, password, and login strategy are always returned so that an
        expired or invalidated session can be re-negotiated. Cookies are only
        returned while the session is usable; otherwise the record comes back
        with no cookies and ``session_valid`` cleared. Malformed cookie
        entries are skipped. A record written with an unknown schema version
        is treated as absent.
        """
        ns = _namespace(server_url)
        if self._get(ns, "server_url") != server_url:
            return None
        version = self._get(ns, "schema_version")
        if version != CACHE_SCHEMA_VERSION:
            debug(f"Ignoring cached record for {server_url}: schema version {version!r}")
            return None

        cookies: list[Cookie] = []
        for index in range(self._get(ns, "cookie_count", 0)):
            try:
                cookies.append(self._read_cookie(ns, index))
            except CacheCorruptError as exc:
                debug(f"Skipping cached cookie #{exc.index}: {exc}")

        record = AuthRecord(
            server_url=server_url,
            password=self._get(ns, "server_password") or None,
            login_format=_parse_format(self._get(ns, "login_format")),
            login_endpoint=self._get(ns, "login_endpoint") or None,
            no_auth_required=bool(self._get(ns, "no_auth_required", False)),
            cookies=cookies,
            last_login=_from_millis(self._get(ns, "last_login_time", 0)),
            session_valid=bool(self._get(ns, "session_valid", False)),
        )
        if not record.is_usable(self._clock(), self._ttl):
            record = record.model_copy(update={"cookies": [], "session_valid": False})
        return record

    def invalidate(self, server_url: str) -> None:
        """Mark the session broken while keeping the server configuration.

        Clears ``session_valid``, resets the timestamp, and drops every
        stored cookie. ``server_url``, ``server_password``, and
        ``login_format`` survive for a later re-negotiation.
        """
        ns = _namespace(server_url)
        with self._cache.transact():
            self._drop_cookies(ns)
            self._put(ns, "cookie_count", 0)
            self._put(ns, "session_valid", False)
            self._put(ns, "last_login_time", 0)

    def clear(self) -> None:
        """Erase every record and the last-server marker."""
        self._cache.clear()

    def has_valid_session(self, server_url: str) -> bool:
        """Side-effect-free validity check, same rule as :meth:`load`."""
        ns = _namespace(server_url)
        if self._get(ns, "server_url") != server_url:
            return False
        if self._get(ns, "schema_version") != CACHE_SCHEMA_VERSION:
            return False
        if not self._get(ns, "session_valid", False):
            return False
        last_login = _from_millis(self._get(ns, "last_login_time", 0))
        return last_login is not None and self._clock() - last_login < self._ttl

    def last_server_url(self) -> Optional[str]:
        """URL of the most recently saved server, or ``None``."""
        return self._cache.get(_LAST_SERVER_KEY)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get(self, ns: str, field: str, default: Any = None) -> Any:
        return self._cache.get(f"{ns}:{field}", default)

    def _put(self, ns: str, field: str, value: Any) -> None:
        self._cache.set(f"{ns}:{field}", value)

    def _write_cookie(self, ns: str, index: int, cookie: Cookie) -> None:
        prefix = f"cookie_{index}_"
        self._put(ns, prefix + "name", cookie.name)
        self._put(ns, prefix + "value", cookie.value)
        self._put(ns, prefix + "domain", cookie.domain)
        self._put(ns, prefix + "path", cookie.path)
        self._put(ns, prefix + "expires", cookie.expires_at.isoformat() if cookie.expires_at else "")
        self._put(ns, prefix + "secure", cookie.secure)
        self._put(ns, prefix + "httponly", cookie.http_only)

    def _read_cookie(self, ns: str, index: int) -> Cookie:
        values = {field: self._get(ns, f"cookie_{index}_{field}") for field in _COOKIE_FIELDS}
        missing = [f for f in ("name", "value", "domain", "path") if not isinstance(values[f], str)]
        if missing:
            raise CacheCorruptError(f"missing {', '.join(missing)}", index=index)
        try:
            expires = values["expires"]
            return Cookie(
                name=values["name"],
                value=values["value"],
                domain=values["domain"],
                path=values["path"],
                expires_at=datetime.fromisoformat(expires) if expires else None,
                secure=bool(values["secure"]),
                http_only=bool(values["httponly"]),
            )
        except (TypeError, ValueError) as exc:
            raise CacheCorruptError(str(exc), index=index) from exc

    def _drop_cookies(self, ns: str) -> None:
        for index in range(self._get(ns, "cookie_count", 0)):
            for field in _COOKIE_FIELDS:
                self._cache.delete(f"{ns}:cookie_{index}_{field}")


def _namespace(server_url: str) -> str:
    return "server:" + hashlib.sha256(server_url.encode()).hexdigest()[:16]


def _parse_format(value: Any) -> Optional[LoginFormat]:
    if not value:
        return None
    try:
        return LoginFormat(value)
    except ValueError:
        return None


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_millis(value: Any) -> Optional[datetime]:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
