"""Exception hierarchy for wgsession.

All exceptions inherit from :class:`WgSessionError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`wgsession.exit_codes`.
The top-level error handler in :func:`wgsession.app.main` catches
``WgSessionError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    WgSessionError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    |   +-- NegotiationError    (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- NotConfiguredError  (exit 8)
    +-- ConfigError         (exit 1)
    +-- CacheCorruptError   (exit 1)

Per-attempt transport failures during negotiation never surface as
exceptions; only exhaustion of the whole search does, as
:class:`NegotiationError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from wgsession.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_CONFIGURED,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from wgsession.models import FailureKind, NegotiationFailure


class WgSessionError(Exception):
    """Base exception for all wgsession errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`wgsession.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(WgSessionError):
    """Raised for invalid CLI arguments or a malformed server URL."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(WgSessionError):
    """Raised when the server rejects the session (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NegotiationError(AuthError):
    """Raised by :meth:`~wgsession.facade.NegotiatedApiFacade.configure` when negotiation is exhausted.

    Wraps the :class:`~wgsession.models.NegotiationFailure` returned by
    the probe engine so that callers can inspect the kind of failure, the
    number of attempts, and the full attempt trace.

    Args:
        failure: The failure result produced by the probe engine.
    """

    def __init__(self, failure: NegotiationFailure):
        super().__init__(failure.detail)
        self.failure = failure

    @property
    def kind(self) -> FailureKind:
        """The :class:`~wgsession.models.FailureKind` of the exhausted search."""
        return self.failure.kind

    @property
    def attempts(self) -> int:
        """Number of requests issued before giving up."""
        return self.failure.attempts


class NotFoundError(WgSessionError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(WgSessionError):
    """Raised when the API returns an HTTP 5xx server error or an unexpected 4xx."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(WgSessionError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class NotConfiguredError(WgSessionError):
    """Raised when the service handle is requested before a successful ``configure``."""

    exit_code = EXIT_NOT_CONFIGURED


class ConfigError(WgSessionError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheCorruptError(WgSessionError):
    """Raised internally when a persisted cookie entry cannot be reconstructed.

    The session cache catches this per entry and skips the malformed
    cookie instead of failing the whole load.

    Args:
        message: Description of the malformed entry.
        index: Position of the cookie in the persisted list, if known.
    """

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index
