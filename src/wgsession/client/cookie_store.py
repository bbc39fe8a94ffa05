"""Host-keyed in-memory cookie store.

The store maps a request host to the list of cookies last received from
that host. It is intentionally simpler than a general-purpose cookie jar:
cookies are matched by host only (no domain suffix or path matching), and
every response that carries ``Set-Cookie`` headers replaces the host's
whole list.

:class:`~wgsession.client.transport.ProbeClient` attaches a store to its
:class:`httpx.Client` through event hooks, so the store is the single
source of truth for what is sent. The session cache exports the store
with :meth:`CookieStore.export_all` after a successful negotiation and
rehydrates it with :meth:`CookieStore.restore` on the next start.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from typing import Iterable, Optional

from wgsession.models import Cookie

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class CookieStore:
    """In-memory map from host to the cookies for that host.

    Example::

        store = CookieStore()
        store.save("vpn.example", [Cookie(name="sid", value="abc", domain="vpn.example")])
        store.header_for("vpn.example")   # "sid=abc"
    """

    def __init__(self) -> None:
        self._cookies: dict[str, list[Cookie]] = {}

    def save(self, host: str, cookies: Iterable[Cookie]) -> None:
        """Replace the cookies stored for *host*."""
        self._cookies[host.lower()] = list(cookies)

    def load(self, host: str) -> list[Cookie]:
        """Return the cookies stored for *host* (empty list if none)."""
        return list(self._cookies.get(host.lower(), ()))

    def restore(self, cookies: Iterable[Cookie], host: Optional[str] = None) -> None:
        """Merge persisted cookies back into the store.

        With *host* every cookie is filed under that host. Without it each
        cookie is keyed by its own domain, which only matches the live
        layout when the cookie carried no ``Domain`` attribute: a cookie
        set by ``vpn.example.com`` with ``Domain=.example.com`` is then
        filed under ``example.com`` and never sent back to
        ``vpn.example.com``.

        Existing entries are kept; restoring the same cookie twice yields
        a duplicate, which is harmless because the next ``Set-Cookie``
        from that host replaces the list anyway.
        """
        for cookie in cookies:
            key = host or cookie.domain
            self._cookies.setdefault(key.lower(), []).append(cookie)

    def export_all(self) -> list[Cookie]:
        """Return every stored cookie across all hosts, in insertion order."""
        return [cookie for cookies in self._cookies.values() for cookie in cookies]

    def clear(self) -> None:
        self._cookies.clear()

    def header_for(self, host: str, now: Optional[datetime] = None) -> Optional[str]:
        """Build a ``Cookie`` header value for *host*, skipping expired cookies.

        Returns:
            ``"name=value; name2=value2"``, or ``None`` when nothing is
            left to send.
        """
        now = now or datetime.now(timezone.utc)
        pairs = [f"{c.name}={c.value}" for c in self.load(host) if not c.is_expired(now)]
        return "; ".join(pairs) if pairs else None

    def __len__(self) -> int:
        return sum(len(cookies) for cookies in self._cookies.values())

    def __repr__(self) -> str:
        return f"CookieStore(hosts={sorted(self._cookies)}, cookies={len(self)})"


def parse_set_cookie(
    header: str,
    request_host: str,
    now: Optional[datetime] = None,
) -> Optional[Cookie]:
    """Parse a single ``Set-Cookie`` header value into a :class:`Cookie`.

    ``Domain`` defaults to *request_host* (a leading dot is dropped),
    ``Path`` defaults to ``/``, and ``Max-Age`` takes precedence over
    ``Expires``. Unparseable dates are ignored, leaving a session cookie.
    A lifetime too large to represent is capped at the latest
    representable time.

    Returns:
        The first cookie in the header, or ``None`` if the header holds no
        valid ``name=value`` pair.
    """
    now = now or datetime.now(timezone.utc)
    parsed: SimpleCookie[str] = SimpleCookie()
    try:
        parsed.load(header)
    except CookieError:
        return None
    if not parsed:
        return None
    morsel = next(iter(parsed.values()))

    domain = morsel["domain"].lstrip(".").lower() or request_host.lower()
    path = morsel["path"] if morsel["path"].startswith("/") else "/"
    expires_at = _parse_http_date(morsel["expires"]) if morsel["expires"] else None
    max_age = morsel["max-age"].strip()
    if max_age.lstrip("-").isdecimal():
        expires_at = _expires_after(now, max_age)

    return Cookie(
        name=morsel.key,
        value=morsel.value,
        domain=domain,
        path=path,
        expires_at=expires_at,
        secure=bool(morsel["secure"]),
        http_only=bool(morsel["httponly"]),
    )


def _expires_after(now: datetime, max_age: str) -> datetime:
    if max_age.startswith("-"):
        return now
    try:
        return now + timedelta(seconds=int(max_age))
    except (OverflowError, ValueError):
        return _FAR_FUTURE


def _parse_http_date(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
