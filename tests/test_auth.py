"""Tests for cookie parsing and g_tk derivation."""

import pytest

from qzone_sync.api.auth import CookieCredentials, compute_gtk
from qzone_sync.exceptions import AuthenticationError

COOKIE = "ptui_loginuin=123456; uin=o0123456; skey=@abc; p_skey=xyz=; other=1"


def test_compute_gtk_known_values():
    assert compute_gtk("") == 5381
    assert compute_gtk("a") == 177670
    assert compute_gtk("ab") == 5863208


def test_compute_gtk_stays_in_31_bits_for_long_keys():
    value = compute_gtk("x" * 200)

    assert 0 <= value < 2**31
    assert value == compute_gtk("x" * 200)


def test_cookie_header_is_parsed_once_into_mapping():
    credentials = CookieCredentials.from_cookie_header(COOKIE)

    assert credentials.get("skey") == "@abc"
    assert credentials.get("p_skey") == "xyz="
    assert credentials.get("missing") is None
    assert credentials.raw == COOKIE


def test_uin_prefers_ptui_loginuin():
    assert CookieCredentials.from_cookie_header(COOKIE).uin == "123456"


def test_uin_falls_back_to_uin_cookie():
    credentials = CookieCredentials.from_cookie_header("uin=o0012345; skey=k")

    assert credentials.uin == "12345"


def test_missing_uin_raises():
    with pytest.raises(AuthenticationError):
        CookieCredentials.from_cookie_header("skey=k").uin


def test_g_tk_uses_p_skey_for_qzone_hosts():
    credentials = CookieCredentials.from_cookie_header(COOKIE)

    assert credentials.g_tk("https://user.qzone.qq.com/proxy/x") == compute_gtk("xyz=")
    assert credentials.g_tk("https://h5.qzone.qq.com/proxy/x") == compute_gtk("xyz=")
    assert credentials.g_tk("https://qun.qzone.qq.com/x") == compute_gtk("@abc")
    assert credentials.g_tk() == compute_gtk("@abc")


def test_g_tk_falls_back_to_rv2():
    credentials = CookieCredentials.from_cookie_header("uin=o1; rv2=r")

    assert credentials.g_tk("https://qun.qzone.qq.com/x") == compute_gtk("r")
