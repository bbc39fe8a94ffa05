"""Authentication negotiation for wgsession.

The two halves of the auth subsystem:

- :class:`CredentialProbeEngine` -- searches for a working login strategy
  (no auth, or login endpoint × payload format) and returns a tagged
  :class:`~wgsession.models.NegotiationSuccess` /
  :class:`~wgsession.models.NegotiationFailure`.
- :class:`SessionValidator` -- checks whether a session restored from the
  cache still authorises access.

:func:`build_login_request` encodes a password for one
:class:`~wgsession.models.LoginFormat`.

Typical usage::

    from wgsession.auth import CredentialProbeEngine
    from wgsession.client import CookieStore, ProbeClient

    with ProbeClient(CookieStore()) as client:
        outcome = CredentialProbeEngine(client).negotiate(base_url, password)
"""

from wgsession.auth.formats import build_login_request
from wgsession.auth.negotiator import CredentialProbeEngine, classify_status
from wgsession.auth.validator import SessionValidator

__all__ = [
    "CredentialProbeEngine",
    "SessionValidator",
    "build_login_request",
    "classify_status",
]
