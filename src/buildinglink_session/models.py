from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict


class PortalToken(BaseModel):
    """
    OIDC/OAuth2 fields echoed back by the portal's self-posting login form.

    The portal may echo fields beyond the well-known ones; those are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    code: Optional[str] = None
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    # Seconds, as sent by the portal
    expires_in: Optional[str] = None
    scope: Optional[str] = None
    state: Optional[str] = None
    session_state: Optional[str] = None

    def as_dict(self) -> dict[str, str]:
        # Exactly the captured field set, extras included.
        return self.model_dump(exclude_none=True)


@dataclass
class PortalRequest:
    """
    Outgoing request options, mutated in place by request interceptors.
    """

    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    data: Optional[dict[str, str]] = None
    content: Optional[Union[str, bytes]] = None
    json: Any = None

    def set_header(self, name: str, value: str) -> None:
        # Header names are case-insensitive on the wire; drop any other spelling first.
        for existing in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[existing]
        self.headers[name] = value


@dataclass
class PortalResponse:
    """
    An `httpx.Response` plus the HTML materialized by `MaterializeHtml` (if any).
    """

    raw: httpx.Response
    html: Optional[str] = None
    document: Optional[BeautifulSoup] = None

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def url(self) -> str:
        return str(self.raw.url)

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    def json(self) -> Any:
        return self.raw.json()
