"""Login payload encodings.

Each :class:`~wgsession.models.LoginFormat` maps to one way of putting
the password into a POST body. :func:`build_login_request` returns the
keyword arguments for :meth:`httpx.Client.request`, so the engine never
branches on the format itself.

===============  ==========================================  ===================================
Format           Body                                        Content-Type
===============  ==========================================  ===================================
JSON_PASSWORD    ``{"password": "<pwd>"}``                   application/json
JSON_PASS        ``{"pass": "<pwd>"}``                       application/json
FORM_PASSWORD    ``password=<pwd>``                          application/x-www-form-urlencoded
FORM_PASS        ``pass=<pwd>``                              application/x-www-form-urlencoded
PLAIN_TEXT       ``<pwd>``                                   text/plain; charset=utf-8
===============  ==========================================  ===================================
"""

from __future__ import annotations

from typing import Any

from wgsession.models import LoginFormat


def build_login_request(login_format: LoginFormat, password: str) -> dict[str, Any]:
    """Return httpx request kwargs carrying *password* in *login_format*.

    The password is trimmed of surrounding whitespace in every format.
    JSON and form bodies are serialised by httpx, so quotes and special
    characters in the password are escaped correctly.
    """
    clean = password.strip()
    if login_format is LoginFormat.JSON_PASSWORD:
        return {"json": {"password": clean}}
    if login_format is LoginFormat.JSON_PASS:
        return {"json": {"pass": clean}}
    if login_format is LoginFormat.FORM_PASSWORD:
        return {"data": {"password": clean}}
    if login_format is LoginFormat.FORM_PASS:
        return {"data": {"pass": clean}}
    if login_format is LoginFormat.PLAIN_TEXT:
        return {
            "content": clean.encode("utf-8"),
            "headers": {"Content-Type": "text/plain; charset=utf-8"},
        }
    raise ValueError(f"Unsupported login format: {login_format!r}")
