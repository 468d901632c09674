from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlparse, urlunparse

from ..models import PortalResponse
from .errors import ProtocolViolationError
from .interceptors import ResponseInterceptor

if TYPE_CHECKING:
    from .client import PortalClient


logger = logging.getLogger(__name__)


def _is_absolute(location: str) -> bool:
    parsed = urlparse(location)
    return bool(parsed.scheme and parsed.netloc)


def widen_scope(url: str, extra_scopes: tuple[str, ...]) -> str:
    """
    Append `extra_scopes` to the `scope` query parameter of an OIDC authorize URL.

    URLs without a `scope` parameter are returned unchanged.
    """
    if not extra_scopes:
        return url
    parsed = urlparse(url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    if not any(k == "scope" for k, _ in params):
        return url

    out: list[tuple[str, str]] = []
    for k, v in params:
        if k == "scope" and v:
            scopes = v.split()
            scopes += [s for s in extra_scopes if s not in scopes]
            v = " ".join(scopes)
        out.append((k, v))
    return urlunparse(parsed._replace(query=urlencode(out, quote_via=quote)))


def find_script_redirect(html: Optional[str], pattern: str) -> Optional[str]:
    if not html:
        return None
    m = re.search(pattern, html)
    return m.group(1) if m else None


class FollowRedirects(ResponseInterceptor):
    """
    Follow HTTP redirects (301/302/307) and `window.top.location.href = "..."` script redirects.

    Each hop re-enters the full pipeline via `client.fetch()`, so it gets its own cookie, history
    and authentication pass. An HTTP redirect is checked first; the script redirect is then checked
    on whatever page that produced.
    """

    async def handle(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        selectors = client.selectors

        if response.status_code in selectors.redirect_statuses:
            location = (response.headers.get("location") or "").strip()
            if not location:
                raise ProtocolViolationError(response.url, response.status_code)

            if not _is_absolute(location):
                location = urljoin(response.url, location)
                location = widen_scope(location, client.extra_scopes)

            logger.debug("Following %d redirect: %s -> %s", response.status_code, response.url, location)
            response = await client.fetch(location)

        target = find_script_redirect(response.html, selectors.script_redirect_pattern)
        if target:
            logger.debug("Following script redirect: %s -> %s", response.url, target)
            response = await client.fetch(target)

        return response
