from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import PortalRequest
from .errors import CircularRedirectError
from .interceptors import RequestInterceptor

if TYPE_CHECKING:
    from .client import PortalClient


def history_entry(method: str, url: str) -> str:
    return f"[{(method or 'GET').upper()}] {url}"


class TrackHistory(RequestInterceptor):
    """
    Loop protection for the unauthenticated part of the flow.

    Every outgoing request is recorded as "[METHOD] url"; requesting the same pair twice before the
    session is authenticated raises `CircularRedirectError`. Once authenticated the history is
    dropped, since normal navigation revisits URLs.
    """

    async def handle(self, client: "PortalClient", url: str, request: PortalRequest) -> PortalRequest:
        if client.is_authenticated:
            client.history.clear()
            return request

        entry = history_entry(request.method, url)
        if entry in client.history:
            raise CircularRedirectError(entry)
        client.history.append(entry)
        return request
