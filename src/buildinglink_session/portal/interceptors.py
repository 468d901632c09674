from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from ..models import PortalRequest, PortalResponse

if TYPE_CHECKING:
    from .client import PortalClient


class RequestInterceptor:
    """base class for a request interceptor

    subclasses provide a `handle` coroutine taking the client, the absolute URL
    and the outgoing request, and returning the (possibly mutated) request.

    called in order by `PortalClient.fetch()` before the network call.
    """

    async def handle(self, client: "PortalClient", url: str, request: PortalRequest) -> PortalRequest:
        return request

    def __init__(
        self,
        handle: Optional[Callable[["PortalClient", str, PortalRequest], Awaitable[PortalRequest]]] = None,
    ) -> None:
        if handle:
            self.handle = handle

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ResponseInterceptor:
    """base class for a response interceptor

    subclasses provide a `handle` coroutine taking the client and the response,
    and returning the response to pass on (which may be a different one, e.g.
    the result of following a redirect).

    called in order by `PortalClient.fetch()` after the network call.
    """

    async def handle(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        return response

    def __init__(
        self,
        handle: Optional[Callable[["PortalClient", PortalResponse], Awaitable[PortalResponse]]] = None,
    ) -> None:
        if handle:
            self.handle = handle

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


@dataclass
class InterceptorChain:
    """
    The two ordered interceptor lists of a client. Both are plain lists; callers may splice in their own.

    Default order (see `PortalClient.default_interceptors()`) is load-bearing:
    - requests: history check before cookies, so a detected loop aborts before any network effect
    - responses: cookies are captured before anything re-enters the pipeline, HTML is materialized
      before the redirect/auth steps read it, and redirects are resolved before authentication
      because the login form is only reached at the end of a redirect chain
    """

    requests: list[RequestInterceptor] = field(default_factory=list)
    responses: list[ResponseInterceptor] = field(default_factory=list)

    async def apply_requests(self, client: "PortalClient", url: str, request: PortalRequest) -> PortalRequest:
        for interceptor in list(self.requests):
            request = await interceptor.handle(client, url, request)
        return request

    async def apply_responses(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        for interceptor in list(self.responses):
            response = await interceptor.handle(client, response)
        return response

