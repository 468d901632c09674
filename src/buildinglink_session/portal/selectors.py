from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    BuildingLink is a web portal without a stable API; markup and flow details may change over time.
    Keep all markup hooks, cookie names and path markers here for easy maintenance.
    """

    # Session
    # Presence of this cookie is the only signal that the session is authenticated.
    session_cookie: str = "bl.auth.cookie.oidc"
    # Hosts that authenticate with bearer tokens / API keys instead of portal cookies.
    cookie_exempt_hosts: tuple[str, ...] = ("api.buildinglink.com", "users.us1.buildinglink.com")

    # Login form
    login_form: str = "form"
    username_field: str = "Username"
    password_field: str = "Password"
    # A form posting to a path containing this marker echoes the OIDC token fields back.
    oidc_path_marker: str = "oidc"
    validation_error_pattern: str = r'<div class="validation-summary-errors">(.*?)</div>'

    # Redirects
    redirect_statuses: tuple[int, ...] = (301, 302, 307)
    # Some pages navigate with an inline script instead of an HTTP redirect.
    script_redirect_pattern: str = r'window\.top\.location\.href\s?="(https?://[^"]+)'
