from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union
from urllib.parse import urljoin

import httpx

from ..models import PortalRequest, PortalResponse, PortalToken
from .auth import Authenticate
from .cookies import AddCookies, CookieJar, UpdateCookies
from .history import TrackHistory
from .html import MaterializeHtml
from .interceptors import InterceptorChain
from .redirects import FollowRedirects
from .selectors import PortalSelectors

if TYPE_CHECKING:
    from ..config import AppConfig


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.buildinglink.com"
API_BASE_URL = "https://api.buildinglink.com"
TENANT_PATH = "V2/Tenant"
HOME_PATH = "Home/DefaultNew.aspx"
# Added to the OIDC authorize request so the captured access token is accepted by the resident API.
DEFAULT_EXTRA_SCOPES: tuple[str, ...] = ("internal_resident_app_apis",)


@dataclass(frozen=True)
class PortalCredentials:
    username: str
    password: str = field(repr=False)


class PortalClient:
    """
    BuildingLink session client.

    Behaves like a browser toward the portal: cookies, HTTP + script redirects and the login form
    (including the OIDC token echo) are all handled by an ordered interceptor chain around a single
    `httpx` call per hop. Callers just `fetch()`/`page()`/`api()`.

    Not safe for concurrent top-level calls on one instance: session state is mutated in place.
    """

    def __init__(
        self,
        *,
        creds: PortalCredentials,
        base_url: str = DEFAULT_BASE_URL,
        subscription_key: str = "",
        api_key: str = "",
        extra_scopes: tuple[str, ...] = DEFAULT_EXTRA_SCOPES,
        selectors: Optional[PortalSelectors] = None,
        interceptors: Optional[InterceptorChain] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.creds = creds
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.api_base_url = API_BASE_URL
        self.subscription_key = subscription_key
        self.api_key = api_key
        self.extra_scopes = tuple(extra_scopes)
        self.selectors = selectors or PortalSelectors()

        # Session state
        self.cookies = CookieJar()
        self.token: Optional[PortalToken] = None
        self.history: list[str] = []

        self.interceptors = interceptors or self.default_interceptors()

        # Redirects are policy-owned by FollowRedirects, never by the transport.
        # No timeout by default; cancellation is up to the caller.
        self._http = httpx.AsyncClient(transport=transport, follow_redirects=False, timeout=timeout)

    @classmethod
    def from_config(cls, cfg: "AppConfig", **kwargs) -> "PortalClient":
        portal = cfg.portal
        return cls(
            creds=PortalCredentials(username=portal.username, password=portal.password),
            base_url=portal.base_url,
            subscription_key=portal.subscription_key,
            api_key=portal.api_key,
            extra_scopes=tuple(portal.extra_scopes),
            **kwargs,
        )

    @staticmethod
    def default_interceptors() -> InterceptorChain:
        return InterceptorChain(
            requests=[TrackHistory(), AddCookies()],
            responses=[UpdateCookies(), MaterializeHtml(), FollowRedirects(), Authenticate()],
        )

    @property
    def is_authenticated(self) -> bool:
        return self.selectors.session_cookie in self.cookies

    async def fetch(self, location: Union[str, httpx.URL], request: Optional[PortalRequest] = None) -> PortalResponse:
        """
        Make a request through the full interceptor pipeline.

        Relative locations are resolved against the portal base URL. The returned response is the
        final page after redirects and (if needed) the login flow.
        """
        url = urljoin(f"{self.base_url}/", str(location))
        if request is None:
            request = PortalRequest()

        request = await self.interceptors.apply_requests(self, url, request)

        http_request = self._http.build_request(
            request.method,
            url,
            headers=request.headers,
            data=request.data,
            content=request.content,
            json=request.json,
        )
        raw = await self._http.send(http_request, follow_redirects=False)
        # The CookieJar is the only cookie state; don't let httpx replay its own copy.
        self._http.cookies.clear()
        logger.debug("%s %s -> %d", request.method, url, raw.status_code)

        return await self.interceptors.apply_responses(self, PortalResponse(raw=raw))

    async def page(self, path: str, request: Optional[PortalRequest] = None) -> PortalResponse:
        return await self.fetch(f"{TENANT_PATH}/{path}", request)

    async def api(self, path: str, request: Optional[PortalRequest] = None) -> PortalResponse:
        if request is None:
            request = PortalRequest()
        if self.token is not None and self.token.access_token:
            request.set_header("Authorization", f"Bearer {self.token.access_token}")
        else:
            logger.debug("No access token captured yet; calling %s without Authorization.", path)
        if self.subscription_key:
            request.set_header("ocp-apim-subscription-key", self.subscription_key)
        return await self.fetch(urljoin(f"{self.api_base_url}/", path), request)

    async def login(self) -> Optional[PortalToken]:
        """
        Authenticate (if not already) by loading the tenant home page, and return the captured token.
        """
        if not self.is_authenticated:
            await self.page(HOME_PATH)
        return self.token

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "PortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
