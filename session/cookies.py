"""
Cookie access for sessions.

Cookies reads and writes cookies through a CookieReadWriter and, when
asked to, signs them. A signed cookie ``name=value`` travels with a
companion cookie ``name.sig`` holding an itsdangerous signature of the
string ``"name=value"``. The first configured key signs; every key is
accepted when verifying so keys can be rotated.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Protocol, Union

from itsdangerous import Signer
from starlette.requests import HTTPConnection
from starlette.responses import Response

SIGNATURE_SUFFIX = ".sig"
SIGNATURE_SALT = "session.cookie"


@dataclass
class Cookie:
    """A cookie to be written to the response."""
    name: str
    value: str
    path: str = "/"
    domain: Optional[str] = None
    expires: Optional[Union[datetime, str, int]] = None
    max_age: Optional[int] = None
    secure: bool = False
    httponly: bool = True
    samesite: Optional[str] = "lax"


@dataclass
class CookieOptions:
    """
    Attributes applied to every cookie created by Cookies.

    ``keys`` turns on signing; the first key signs.
    """
    path: str = "/"
    domain: Optional[str] = None
    expires: Optional[Union[datetime, str, int]] = None
    max_age: Optional[int] = None
    secure: bool = False
    httponly: bool = True
    samesite: Optional[str] = "lax"
    keys: list[str] = field(default_factory=list)


class CookieReadWriter(Protocol):
    """Transport access used by Cookies."""

    def read_cookie(self, name: str) -> str:
        """Return the inbound cookie value, or ``""`` when absent."""
        ...

    def write_cookie(self, cookie: Cookie) -> None:
        """Queue a cookie for the outbound response."""
        ...


class MemoryReadWriter:
    """CookieReadWriter over plain dicts, for tests and non-HTTP callers."""

    def __init__(self, cookies: Optional[dict[str, str]] = None):
        self.cookies: dict[str, str] = dict(cookies or {})
        self.written: list[Cookie] = []

    def read_cookie(self, name: str) -> str:
        return self.cookies.get(name, "")

    def write_cookie(self, cookie: Cookie) -> None:
        self.written.append(cookie)


class StarletteReadWriter:
    """
    CookieReadWriter over a Starlette request.

    Writes are buffered until apply() copies them onto a response, which
    lets a session be created before the handler has built its response.
    Writing the same cookie name twice keeps only the last write.
    """

    def __init__(self, request: HTTPConnection):
        self._cookies = request.cookies
        self.pending: dict[str, Cookie] = {}

    def read_cookie(self, name: str) -> str:
        return self._cookies.get(name, "")

    def write_cookie(self, cookie: Cookie) -> None:
        self.pending[cookie.name] = cookie

    def apply(self, response: Response) -> None:
        """Write every buffered cookie as a Set-Cookie header on ``response``."""
        for cookie in self.pending.values():
            response.set_cookie(
                key=cookie.name,
                value=cookie.value,
                max_age=cookie.max_age,
                expires=cookie.expires,
                path=cookie.path,
                domain=cookie.domain,
                secure=cookie.secure,
                httponly=cookie.httponly,
                samesite=cookie.samesite,
            )
        self.pending.clear()


class Cookies:
    """Signed or unsigned cookie access over a CookieReadWriter."""

    def __init__(self, read_writer: CookieReadWriter, options: Optional[CookieOptions] = None):
        self.read_writer = read_writer
        self.options = options or CookieOptions()
        self._signer: Optional[Signer] = None
        if self.options.keys:
            # itsdangerous signs with the last key in the list.
            self._signer = Signer(list(reversed(self.options.keys)), salt=SIGNATURE_SALT)

    @property
    def can_sign(self) -> bool:
        return self._signer is not None

    def sign(self, name: str, value: str) -> str:
        """Return the signature of ``name=value``."""
        if self._signer is None:
            raise ValueError("cookie signing requires at least one key")
        return self._signer.get_signature(f"{name}={value}").decode("ascii")

    def verify(self, name: str, value: str, signature: str) -> bool:
        if self._signer is None or not signature:
            return False
        return self._signer.verify_signature(f"{name}={value}", signature)

    def get(self, name: str, signed: bool = False) -> str:
        """
        Read a cookie value.

        When ``signed`` is set the companion signature cookie must verify,
        otherwise ``""`` is returned as if the cookie were absent.
        """
        value = self.read_writer.read_cookie(name)
        if not value or not signed:
            return value
        signature = self.read_writer.read_cookie(name + SIGNATURE_SUFFIX)
        if not self.verify(name, value, signature):
            return ""
        return value

    def set(self, cookie: Cookie, signed: bool = False) -> None:
        """Write a cookie, plus its signature cookie when ``signed``."""
        signature = self.sign(cookie.name, cookie.value) if signed else None
        self.read_writer.write_cookie(cookie)
        if signature is not None:
            self.read_writer.write_cookie(
                replace(cookie, name=cookie.name + SIGNATURE_SUFFIX, value=signature)
            )

    def create_cookie(self, name: str, value: str) -> Cookie:
        """Build a cookie carrying the configured attributes."""
        opts = self.options
        return Cookie(
            name=name,
            value=value,
            path=opts.path,
            domain=opts.domain,
            expires=opts.expires,
            max_age=opts.max_age,
            secure=opts.secure,
            httponly=opts.httponly,
            samesite=opts.samesite,
        )
