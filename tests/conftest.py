from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest
import pytest_asyncio


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from buildinglink_session.portal.client import PortalClient, PortalCredentials  # noqa: E402


BASE_URL = "https://host"
SESSION_COOKIE = "bl.auth.cookie.oidc"

Handler = Callable[[httpx.Request], httpx.Response]


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "portal: integration smoke tests that require real BuildingLink credentials",
    )


class FakePortal:
    """
    Routes (method, absolute URL) to canned responses and records every request it receives.
    Unrouted requests get a 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.prefix_routes: list[tuple[str, str, Handler]] = []
        self.requests: list[httpx.Request] = []

    def route(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        html: Optional[str] = None,
        json: Any = None,
        headers: Optional[list[tuple[str, str]]] = None,
        handler: Optional[Handler] = None,
    ) -> None:
        if handler is not None:
            self.routes[(method.upper(), url)] = handler
            return
        self.routes[(method.upper(), url)] = lambda _req: httpx.Response(
            status, headers=headers or [], html=html, json=json
        )

    def route_prefix(self, method: str, prefix: str, handler: Handler) -> None:
        # Fallback for URLs that are awkward to spell exactly (e.g. OData query options).
        self.prefix_routes.append((method.upper(), prefix, handler))

    def redirect(self, method: str, url: str, location: str, *, status: int = 302, set_cookie: str = "") -> None:
        headers = [("location", location)]
        if set_cookie:
            headers.append(("set-cookie", set_cookie))
        self.route(method, url, status=status, headers=headers)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        handler = self.routes.get((request.method, url))
        if handler is None:
            handler = next(
                (h for m, prefix, h in self.prefix_routes if m == request.method and url.startswith(prefix)),
                None,
            )
        if handler is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url}")
        return handler(request)

    @property
    def calls(self) -> list[str]:
        return [f"{r.method} {r.url}" for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()


@pytest_asyncio.fixture
async def client(portal: FakePortal):
    c = PortalClient(
        creds=PortalCredentials(username="testuser", password="testpass"),
        base_url=BASE_URL,
        subscription_key="sub-key",
        api_key="api-key",
        transport=portal.transport(),
    )
    yield c
    await c.aclose()


@pytest_asyncio.fixture
async def authed_client(client: PortalClient) -> PortalClient:
    client.cookies[SESSION_COOKIE] = "session"
    return client


def make_page(url: str, html: Optional[str] = None, *, status: int = 200, headers=None):
    """
    Build a materialized PortalResponse as if it had come back from `url`.
    """
    from buildinglink_session.models import PortalResponse
    from buildinglink_session.portal.html import parse_html

    raw = httpx.Response(status, headers=headers or [], html=html, request=httpx.Request("GET", url))
    response = PortalResponse(raw=raw)
    if html is not None:
        response.html = html
        response.document = parse_html(html)
    return response
