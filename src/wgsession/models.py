"""Canonical Pydantic models shared across all wgsession modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Negotiation constants** -- the closed, ordered search space:
    :class:`LoginFormat`, :data:`LOGIN_ENDPOINTS`, :data:`PROBE_ENDPOINTS`,
    and :data:`SESSION_TTL`.

**Session state** -- persisted by the session cache:
    :class:`Cookie` and :class:`AuthRecord`.

**Negotiation results** -- a tagged result instead of exceptions:
    :class:`ProbeAttempt`, :class:`NegotiationSuccess`,
    :class:`NegotiationFailure`, and :class:`FailureKind`.

**Configuration and API resources**:
    :class:`RequestConfig`, :class:`SessionConfig`, :class:`OutputConfig`,
    :class:`GlobalConfig`, :class:`WireguardClient`,
    :class:`CreateClientRequest`, :class:`ServerInfo`, and :class:`Release`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Negotiation constants ---


class LoginFormat(str, enum.Enum):
    """Login payload encodings, declared in the order they are tried.

    The member order is significant: the probe engine iterates the enum
    as-is, so the first member is the first format sent to every
    candidate endpoint.
    """

    JSON_PASSWORD = "JSON_PASSWORD"
    JSON_PASS = "JSON_PASS"
    FORM_PASSWORD = "FORM_PASSWORD"
    FORM_PASS = "FORM_PASS"
    PLAIN_TEXT = "PLAIN_TEXT"


LOGIN_ENDPOINTS: tuple[str, ...] = (
    "api/session",
    "api/auth",
    "api/login",
    "session",
    "auth",
    "login",
)
"""Candidate login endpoints, relative to the server base URL, in priority order."""

PROBE_ENDPOINTS: tuple[str, ...] = (
    "api/wireguard/client",
    "api/clients",
)
"""Data endpoints used to detect "no authentication" and to validate restored sessions."""

SESSION_TTL = timedelta(hours=24)
"""Maximum age of a cached session, regardless of its validity flag."""

NO_AUTH_REQUIRED = "NO_AUTH_REQUIRED"
"""Value reported as the successful format for servers without authentication."""

CACHE_SCHEMA_VERSION = 1
"""Version of the persisted key layout written by the session cache."""


# --- Session state ---


class Cookie(BaseModel):
    """A single HTTP cookie as captured from a ``Set-Cookie`` header.

    ``expires_at`` is ``None`` for session cookies (no ``Expires`` or
    ``Max-Age`` attribute).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    domain: str
    path: str = "/"
    expires_at: Optional[datetime] = None
    secure: bool = False
    http_only: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` if the cookie carries an expiry that has passed."""
        return self.expires_at is not None and self.expires_at <= now


class AuthRecord(BaseModel):
    """Persisted negotiation outcome for one server.

    Identified by :attr:`server_url`, which is always normalised to end
    with ``/``. A record is *usable* only while :attr:`session_valid` is
    set **and** :attr:`last_login` is younger than the session TTL; see
    :meth:`is_usable`.
    """

    server_url: str = Field(description="Normalised base URL, always ending with '/'")
    password: Optional[str] = Field(
        default=None, description="Login password; None when no auth is required"
    )
    login_format: Optional[LoginFormat] = Field(
        default=None, description="Winning payload format; None when no auth is required"
    )
    login_endpoint: Optional[str] = Field(
        default=None, description="Winning login endpoint, relative to server_url"
    )
    no_auth_required: bool = False
    cookies: list[Cookie] = Field(default_factory=list)
    last_login: Optional[datetime] = Field(
        default=None, description="When the session was negotiated (None = never / reset)"
    )
    session_valid: bool = False
    schema_version: int = CACHE_SCHEMA_VERSION

    def is_usable(self, now: datetime, ttl: timedelta = SESSION_TTL) -> bool:
        """Check the validity flag and the age of the session together."""
        if not self.session_valid or self.last_login is None:
            return False
        return now - self.last_login < ttl

    @property
    def successful_format(self) -> Optional[str]:
        """The format label reported to callers (``NO_AUTH_REQUIRED`` or a format name)."""
        if self.no_auth_required:
            return NO_AUTH_REQUIRED
        if self.login_format is not None:
            return self.login_format.value
        return None


# --- Negotiation results ---


class FailureKind(str, enum.Enum):
    """Why a negotiation run ended without a working strategy."""

    ALL_PROBES_FAILED = "all_probes_failed"
    ALL_FORMATS_FAILED = "all_formats_failed"


class ProbeAttempt(BaseModel):
    """One request issued during negotiation or validation.

    Exactly one of :attr:`status_code` and :attr:`error` is set:
    ``status_code`` when the server answered, ``error`` when the
    transport failed (timeout, refused connection, unresolved host).
    """

    method: str
    url: str
    endpoint: str
    login_format: Optional[LoginFormat] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    outcome: str = Field(description="Short classification, e.g. 'success', 'rejected', 'not_found'")

    @property
    def succeeded(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


class NegotiationSuccess(BaseModel):
    """A working strategy was found.

    For servers without authentication :attr:`no_auth_required` is set and
    :attr:`login_format` is ``None``; otherwise both :attr:`login_format`
    and :attr:`endpoint` name the first combination that returned 2xx.
    """

    ok: Literal[True] = True
    no_auth_required: bool = False
    login_format: Optional[LoginFormat] = None
    endpoint: str
    cookies: list[Cookie] = Field(default_factory=list)
    attempts: int
    trace: list[ProbeAttempt] = Field(default_factory=list)

    @property
    def successful_format(self) -> str:
        if self.no_auth_required or self.login_format is None:
            return NO_AUTH_REQUIRED
        return self.login_format.value


class NegotiationFailure(BaseModel):
    """The whole search space was exhausted without a 2xx response."""

    ok: Literal[False] = False
    kind: FailureKind
    attempts: int
    detail: str
    trace: list[ProbeAttempt] = Field(default_factory=list)


NegotiationOutcome = Union[NegotiationSuccess, NegotiationFailure]
"""Tagged result returned by :meth:`~wgsession.auth.negotiator.CredentialProbeEngine.negotiate`."""


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every probe and API call."""

    timeout: float = Field(
        default=30.0, description="Connect/read/write timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class SessionConfig(BaseModel):
    """Session cache behaviour."""

    ttl_hours: float = Field(default=24.0, description="Session lifetime in hours")
    persist_password: bool = Field(
        default=True,
        description="Store the password in the session cache (disable to rely on cookies only)",
    )

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/wgsession/config.json``.

    Loaded and saved by :func:`~wgsession.config.load_global_config` and
    :func:`~wgsession.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or
    CLI flags. See :func:`~wgsession.config.resolve_config`.
    """

    default_server: Optional[str] = Field(
        default=None, description="Server URL used when none is given on the command line"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- wg-easy API resources ---


class WireguardClient(BaseModel):
    """A peer as returned by ``GET api/wireguard/client``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    address: str
    public_key: str = Field(alias="publicKey")
    private_key: Optional[str] = Field(default=None, alias="privateKey")
    enabled: bool = True
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    latest_handshake_at: Optional[str] = Field(default=None, alias="latestHandshakeAt")
    transfer_rx: int = Field(default=0, alias="transferRx")
    transfer_tx: int = Field(default=0, alias="transferTx")
    transfer_rx_current: float = Field(default=0.0, alias="transferRxCurrent")
    transfer_tx_current: float = Field(default=0.0, alias="transferTxCurrent")


class CreateClientRequest(BaseModel):
    """Body for ``POST api/wireguard/client``."""

    name: str


class Release(BaseModel):
    version: str
    changelog: str = ""


class ServerInfo(BaseModel):
    """Body of ``GET api/session``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: Optional[str] = None
    latest_release: Optional[Release] = Field(default=None, alias="latestRelease")
