"""HTTP layer for wgsession.

Classes:
    :class:`CookieStore` -- host-keyed in-memory cookie store.
    :class:`ProbeClient` -- :mod:`httpx` client with fixed timeouts bound
    to a cookie store; used for probing, validation, and API calls.
    :class:`WgEasyService` -- typed wg-easy API handle built on top of an
    authenticated :class:`ProbeClient`.

Example::

    from wgsession.client import CookieStore, ProbeClient

    with ProbeClient(CookieStore()) as client:
        resp = client.get("https://vpn.example/api/wireguard/client")
"""

from wgsession.client.cookie_store import CookieStore, parse_set_cookie
from wgsession.client.service import WgEasyService
from wgsession.client.transport import ProbeClient

__all__ = ["CookieStore", "ProbeClient", "WgEasyService", "parse_set_cookie"]
