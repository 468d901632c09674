from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from ..models import PortalResponse
from .interceptors import ResponseInterceptor

if TYPE_CHECKING:
    from .client import PortalClient


def parse_html(html: str) -> BeautifulSoup:
    # html.parser is lenient: unclosed/mismatched tags still produce a best-effort tree.
    return BeautifulSoup(html or "", "html.parser")


def is_html_response(response: PortalResponse) -> bool:
    content_type = (response.headers.get("content-type") or "").lower()
    return "text/html" in content_type


class MaterializeHtml(ResponseInterceptor):
    """
    Attach the raw markup (`response.html`) and a parsed tree (`response.document`) to HTML responses.

    Responses that already carry `html` are (re)parsed as well, even without an HTML content type.
    """

    async def handle(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        if not is_html_response(response) and response.html is None:
            return response

        if response.html is None:
            response.html = response.raw.text
        response.document = parse_html(response.html)
        return response
