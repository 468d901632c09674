from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from ..models import PortalRequest, PortalResponse, PortalToken
from .errors import LoginRejectedError
from .interceptors import ResponseInterceptor
from .selectors import PortalSelectors

if TYPE_CHECKING:
    from .client import PortalClient


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def build_login_payload(
    document: Optional[BeautifulSoup],
    *,
    username: str,
    password: str,
    selectors: PortalSelectors,
) -> tuple[Optional[str], dict[str, str]]:
    """
    Read the first form on the page and return (action, fields).

    Every named input is passed through with its `value` attribute (anti-forgery tokens, return
    URLs, OIDC parameters); only the username/password fields are filled in. A missing form or
    document reads as (None, {}).
    """
    form = document.select_one(selectors.login_form) if document is not None else None
    if form is None:
        return None, {}

    fields: dict[str, str] = {}
    for elm in form.find_all("input"):
        name = elm.get("name")
        if not name:
            continue
        value = elm.get("value") or ""
        if name == selectors.username_field:
            value = username
        elif name == selectors.password_field:
            value = password
        fields[name] = value

    action = (form.get("action") or "").strip() or None
    return action, fields


def extract_validation_error(html: Optional[str], pattern: str) -> Optional[str]:
    if not html:
        return None
    m = re.search(pattern, html)
    return m.group(1) if m else None


class Authenticate(ResponseInterceptor):
    """
    Log in whenever a response arrives while the session is unauthenticated.

    The first form on the page is submitted with the configured credentials. If it posts to the
    OIDC endpoint, its fields are the token and are stored before submitting. The submission goes
    through the full pipeline, so its redirect chain sets the session cookie and the nested
    authentication pass becomes a no-op.
    """

    async def handle(self, client: "PortalClient", response: PortalResponse) -> PortalResponse:
        if client.is_authenticated:
            return response

        selectors = client.selectors
        action, fields = build_login_payload(
            response.document,
            username=client.creds.username,
            password=client.creds.password,
            selectors=selectors,
        )
        target = urljoin(response.url, action) if action else response.url

        if selectors.oidc_path_marker in urlparse(target).path:
            client.token = PortalToken.model_validate(fields)
            logger.info("Captured OIDC token fields (%s).", ", ".join(sorted(fields)))

        logger.info("Submitting login form to %s (%d fields).", target, len(fields))
        request = PortalRequest(method="POST", headers={"Content-Type": FORM_CONTENT_TYPE}, data=fields)
        form_response = await client.fetch(target, request)

        if form_response.status_code != 200:
            message = extract_validation_error(form_response.html, selectors.validation_error_pattern)
            logger.warning("Login form submission to %s returned status %d.", target, form_response.status_code)
            raise LoginRejectedError(form_response.status_code, message)

        return form_response
