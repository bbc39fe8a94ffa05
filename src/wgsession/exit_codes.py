"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~wgsession.exceptions.WgSessionError` subclass.
Shell wrappers can inspect the exit code to tell a rejected password
from an unreachable server without parsing stderr.

Example::

    $ wgsession connect https://vpn.example/ --password-source env:WG_PASS
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no login strategy was accepted
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. a malformed server URL)."""

EXIT_AUTH_FAILURE = 3
"""Negotiation was exhausted or the server rejected the session."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_NOT_CONFIGURED = 8
"""A service call was attempted before a server was successfully configured."""
