"""wgsession -- adaptive authentication and session caching for WireGuard management APIs.

wg-easy style management servers disagree on how (and whether) a client
must log in: some need no authentication at all, others expect a POST to
one of several login endpoints with a JSON, form-encoded, or plain-text
password. This package discovers a working login strategy, remembers it
on disk together with the session cookies, and revalidates it on the
next start so that ordinary API calls never repeat the discovery.

Typical usage::

    from wgsession.facade import NegotiatedApiFacade

    facade = NegotiatedApiFacade.from_config()
    facade.configure("https://vpn.example/", "secret")
    clients = facade.get_service().list_clients()

Modules:
    facade: :class:`NegotiatedApiFacade`, the public entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
