"""Session validator -- decides whether a restored session can be trusted.

After cookies are rehydrated from the session cache, the facade asks
:class:`SessionValidator` to ``GET`` each probe endpoint with those
cookies. The first 2xx confirms the session; if every probe fails
(non-2xx or transport error) the cached session is considered broken.

The validator only answers the question. Invalidating the cache on a
negative answer is the caller's job.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from wgsession.auth.negotiator import send_probe
from wgsession.client.cookie_store import CookieStore
from wgsession.client.transport import ProbeClient
from wgsession.models import PROBE_ENDPOINTS, ProbeAttempt
from wgsession.output import debug

ClientFactory = Callable[[CookieStore], ProbeClient]


class SessionValidator:
    """Probe data endpoints with restored cookies.

    Args:
        client_factory: Builds an unopened :class:`ProbeClient` around a
            cookie store. The facade passes one that carries its request
            config and transport.
        probe_endpoints: Paths tried in order, relative to the base URL.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        probe_endpoints: Sequence[str] = PROBE_ENDPOINTS,
    ) -> None:
        self._client_factory = client_factory or ProbeClient
        self._probe_endpoints = tuple(probe_endpoints)
        self.last_trace: list[ProbeAttempt] = []

    def validate(self, base_url: str, cookie_store: CookieStore) -> bool:
        """Return ``True`` on the first 2xx probe, ``False`` if all fail."""
        self.last_trace = []
        with self._client_factory(cookie_store) as client:
            for endpoint in self._probe_endpoints:
                attempt = send_probe(client, "GET", f"{base_url}{endpoint}", endpoint)
                self.last_trace.append(attempt)
                if attempt.succeeded:
                    debug(f"Cached session accepted by {endpoint}")
                    return True
                debug(f"Cached session check on {endpoint}: {attempt.error or attempt.status_code}")
        return False
