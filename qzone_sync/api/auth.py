"""
Parses the QZone cookie blob into a structured credential and derives the
per-request ``g_tk`` token the photo endpoints expect.
"""

import logging
from urllib.parse import urlparse

from qzone_sync.exceptions import AuthenticationError

log = logging.getLogger(__name__)


def _to_int32(value: int) -> int:
    """Wraps an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def compute_gtk(key: str) -> int:
    """
    Hashes a session key into the ``g_tk`` request parameter.

    The web client shifts a signed 32-bit view of the running hash while the
    hash itself keeps growing, so the shift is wrapped explicitly.
    """
    gtk = 5381
    for char in key:
        gtk += _to_int32(_to_int32(gtk) << 5) + ord(char)
    return gtk & 0x7FFFFFFF


class CookieCredentials:
    """
    A logged-in QZone session, built once from a raw ``Cookie`` header value.
    """

    def __init__(self, cookies: dict[str, str], raw: str = ""):
        self.cookies = cookies
        self.raw = raw

    @classmethod
    def from_cookie_header(cls, raw: str) -> "CookieCredentials":
        """
        Splits a ``k1=v1; k2=v2`` header into a mapping. The first occurrence
        of a key wins, as in a browser-exported header.
        """
        cookies: dict[str, str] = {}
        for part in raw.split(";"):
            key, sep, value = part.strip().partition("=")
            if sep and key and key not in cookies:
                cookies[key] = value.strip()
        return cls(cookies, raw.strip())

    def get(self, key: str) -> str | None:
        return self.cookies.get(key) or None

    @property
    def uin(self) -> str:
        """The QQ number of the logged-in account."""
        if uin := self.get("ptui_loginuin"):
            return uin
        # The plain 'uin' cookie is formatted like 'o0123456789'.
        if (uin := self.get("uin")) and (uin := uin.lstrip("o").lstrip("0")):
            return uin
        raise AuthenticationError(
            "Cookie does not contain the account number (ptui_loginuin or uin)."
        )

    def g_tk(self, url: str | None = None) -> int:
        """Computes the ``g_tk`` token for a request to ``url``."""
        key = self.get("skey") or self.get("rv2") or ""
        if url:
            hostname = urlparse(url).hostname or ""
            if "qun.qq.com" in hostname or (
                "qzone.qq.com" in hostname and "qun.qzone.qq.com" not in hostname
            ):
                key = self.get("p_skey") or key
        if not key:
            log.debug("No session key found in cookie; g_tk will be a constant.")
        return compute_gtk(key)
