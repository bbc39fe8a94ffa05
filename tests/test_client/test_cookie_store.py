"""Tests for the host-keyed cookie store and Set-Cookie parsing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from wgsession.client.cookie_store import CookieStore, parse_set_cookie
from wgsession.models import Cookie

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _cookie(name: str = "sid", value: str = "abc", domain: str = "vpn.example", **kwargs) -> Cookie:
    return Cookie(name=name, value=value, domain=domain, **kwargs)


# ------------------------------------------------------------------ #
# CookieStore
# ------------------------------------------------------------------ #


class TestSaveLoad:
    def test_load_unknown_host_is_empty(self) -> None:
        assert CookieStore().load("nowhere.example") == []

    def test_save_replaces_host_list(self) -> None:
        store = CookieStore()
        store.save("vpn.example", [_cookie("a"), _cookie("b")])
        store.save("vpn.example", [_cookie("c")])
        assert [c.name for c in store.load("vpn.example")] == ["c"]

    def test_hosts_are_independent(self) -> None:
        store = CookieStore()
        store.save("a.example", [_cookie("a", domain="a.example")])
        store.save("b.example", [_cookie("b", domain="b.example")])
        assert [c.name for c in store.load("a.example")] == ["a"]
        assert [c.name for c in store.load("b.example")] == ["b"]

    def test_host_is_case_insensitive(self) -> None:
        store = CookieStore()
        store.save("VPN.Example", [_cookie()])
        assert len(store.load("vpn.example")) == 1

    def test_load_returns_copy(self) -> None:
        store = CookieStore()
        store.save("vpn.example", [_cookie()])
        store.load("vpn.example").clear()
        assert len(store.load("vpn.example")) == 1


class TestRestoreExport:
    def test_restore_keys_by_cookie_domain(self) -> None:
        store = CookieStore()
        store.restore([_cookie("a", domain="a.example"), _cookie("b", domain="b.example")])
        assert [c.name for c in store.load("a.example")] == ["a"]
        assert [c.name for c in store.load("b.example")] == ["b"]

    def test_restore_under_request_host(self) -> None:
        store = CookieStore()
        store.restore([_cookie("sid", domain="example.com")], host="vpn.example.com")
        assert store.header_for("vpn.example.com", NOW) == "sid=abc"
        assert store.load("example.com") == []

    def test_restore_appends(self) -> None:
        store = CookieStore()
        store.save("vpn.example", [_cookie("a")])
        store.restore([_cookie("b")])
        assert [c.name for c in store.load("vpn.example")] == ["a", "b"]

    def test_export_all_flattens_in_order(self) -> None:
        store = CookieStore()
        store.save("a.example", [_cookie("a1", domain="a.example"), _cookie("a2", domain="a.example")])
        store.save("b.example", [_cookie("b1", domain="b.example")])
        assert [c.name for c in store.export_all()] == ["a1", "a2", "b1"]
        assert len(store) == 3

    def test_clear(self) -> None:
        store = CookieStore()
        store.save("vpn.example", [_cookie()])
        store.clear()
        assert store.export_all() == []
        assert len(store) == 0


class TestHeaderFor:
    def test_joins_pairs(self) -> None:
        store = CookieStore()
        store.save("vpn.example", [_cookie("a", "1"), _cookie("b", "2")])
        assert store.header_for("vpn.example", NOW) == "a=1; b=2"

    def test_skips_expired(self) -> None:
        store = CookieStore()
        store.save(
            "vpn.example",
            [
                _cookie("old", "1", expires_at=NOW - timedelta(seconds=1)),
                _cookie("new", "2", expires_at=NOW + timedelta(hours=1)),
            ],
        )
        assert store.header_for("vpn.example", NOW) == "new=2"

    def test_none_when_empty(self) -> None:
        assert CookieStore().header_for("vpn.example", NOW) is None


# ------------------------------------------------------------------ #
# parse_set_cookie
# ------------------------------------------------------------------ #


class TestParseSetCookie:
    def test_minimal(self) -> None:
        cookie = parse_set_cookie("sid=abc123", "vpn.example", NOW)
        assert cookie is not None
        assert (cookie.name, cookie.value, cookie.domain, cookie.path) == (
            "sid",
            "abc123",
            "vpn.example",
            "/",
        )
        assert cookie.expires_at is None
        assert not cookie.secure
        assert not cookie.http_only

    def test_attributes(self) -> None:
        cookie = parse_set_cookie(
            "connect.sid=s%3Axyz; Domain=.VPN.example; Path=/api; Secure; HttpOnly; SameSite=Strict",
            "vpn.example",
            NOW,
        )
        assert cookie is not None
        assert cookie.name == "connect.sid"
        assert cookie.value == "s%3Axyz"
        assert cookie.domain == "vpn.example"
        assert cookie.path == "/api"
        assert cookie.secure
        assert cookie.http_only

    def test_expires(self) -> None:
        cookie = parse_set_cookie(
            "sid=abc; Expires=Thu, 15 Jan 2026 13:00:00 GMT", "vpn.example", NOW
        )
        assert cookie is not None
        assert cookie.expires_at == NOW + timedelta(hours=1)

    def test_max_age_wins_over_expires(self) -> None:
        cookie = parse_set_cookie(
            "sid=abc; Max-Age=60; Expires=Thu, 15 Jan 2026 13:00:00 GMT", "vpn.example", NOW
        )
        assert cookie is not None
        assert cookie.expires_at == NOW + timedelta(seconds=60)

    def test_max_age_zero_is_expired(self) -> None:
        cookie = parse_set_cookie("sid=; Max-Age=0", "vpn.example", NOW)
        assert cookie is not None
        assert cookie.is_expired(NOW)

    def test_bad_expires_leaves_session_cookie(self) -> None:
        cookie = parse_set_cookie("sid=abc; Expires=whenever", "vpn.example", NOW)
        assert cookie is not None
        assert cookie.expires_at is None

    def test_quoted_value(self) -> None:
        cookie = parse_set_cookie('sid="abc"', "vpn.example", NOW)
        assert cookie is not None
        assert cookie.value == "abc"

    def test_no_pair_returns_none(self) -> None:
        assert parse_set_cookie("garbage", "vpn.example", NOW) is None
        assert parse_set_cookie("=value", "vpn.example", NOW) is None

    def test_huge_max_age_is_capped(self) -> None:
        cookie = parse_set_cookie("tmp=1; Max-Age=999999999999999", "vpn.example", NOW)
        assert cookie is not None
        assert cookie.expires_at == datetime.max.replace(tzinfo=timezone.utc)
        assert not cookie.is_expired(NOW)

    def test_bad_max_age_is_ignored(self) -> None:
        cookie = parse_set_cookie("sid=abc; Max-Age=soon", "vpn.example", NOW)
        assert cookie is not None
        assert cookie.expires_at is None
