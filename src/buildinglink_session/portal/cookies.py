from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator, MutableMapping, Optional
from urllib.parse import quote, unquote, urlparse

import httpx

from ..models import PortalRequest, PortalResponse
from .interceptors import RequestInterceptor, ResponseInterceptor

if TYPE_CHECKING:
    from .client import PortalClient


logger = logging.getLogger(__name__)

# Printable ASCII goes out as-is; anything else is UTF-8 percent-encoded so the header stays ASCII.
_HEADER_SAFE = "".join(chr(c) for c in range(0x20, 0x7F))


class CookieJar(MutableMapping[str, str]):
    """
    Session cookies as a flat name -> value mapping (last write wins).

    Domain/path/expiry attributes are ignored: the portal is a single origin and the session is
    process-local, so the name/value pairs are all we need to replay.
    """

    def __init__(self, cookies: Optional[dict[str, str]] = None) -> None:
        self._cookies: dict[str, str] = dict(cookies or {})

    def __getitem__(self, name: str) -> str:
        return self._cookies[name]

    def __setitem__(self, name: str, value: str) -> None:
        self._cookies[name] = value

    def __delitem__(self, name: str) -> None:
        del self._cookies[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __repr__(self) -> str:
        # Values are session secrets.
        return f"CookieJar(names={list(self._cookies)!r})"

    def header(self) -> str:
        return "; ".join(f"{name}={quote(value, safe=_HEADER_SAFE)}" for name, value in self._cookies.items())

    def apply_to(self, request: PortalRequest) -> PortalRequest:
        request.set_header("cookie", self.header())
        return request

    def capture_from(self, headers: httpx.Headers) -> list[str]:
        """
        Store every `Set-Cookie` entry from `headers`. Returns the captured names.
        """
        return self.capture_set_cookies(headers.get_list("set-cookie"))

    def capture_set_cookies(self, set_cookies: Iterable[str]) -> list[str]:
        captured: list[str] = []
        for raw in set_cookies:
            pair = raw.split(";", 1)[0]
            if "=" not in pair:
                continue
            name, value = pair.split("=", 1)
            name = name.strip()
            if not name:
                continue
            self._cookies[name] = unquote(value.strip())
            captured.append(name)
        return captured


class AddCookies(RequestInterceptor):
    """
    Send the session cookies with every portal request.
    """

    async def handle(self, client: "PortalClient", url: str, request: PortalRequest) -> PortalRequest:
        host = (urlparse(url).hostname or "").lower()
        if host in client.selectors.cookie_exempt_hosts:
            return request
        return client.cookies.apply_to(request)


class UpdateCookies(ResponseInterceptor):
    """
    Capture `Set-Cookie` headers into the session jar.
    """

    async def handle(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        names = client.cookies.capture_from(response.headers)
        if names:
            logger.debug("Captured cookies from %s: %s", response.url, ", ".join(names))
        return response
