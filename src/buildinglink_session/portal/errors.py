from __future__ import annotations

from typing import Optional


class PortalError(RuntimeError):
    """
    Base class for failures raised by the portal session pipeline.
    """


class ProtocolViolationError(PortalError):
    """
    Raised when the portal answers with a redirect status but no usable `location` header.
    """

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Redirect response from {url} (status {status_code}) is missing a location header")


class CircularRedirectError(PortalError):
    """
    Raised when the same method+URL pair is requested twice before the session is authenticated.

    Usually means bad credentials, a changed login flow, or a broken relative URL.
    """

    def __init__(self, entry: str) -> None:
        self.entry = entry
        super().__init__(f"Circular redirect detected: {entry}")


class LoginRejectedError(PortalError):
    """
    Raised when the login form submission does not land on a 200 page.

    `message` holds the portal's validation summary text when it could be found, otherwise None.
    """

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Failed to login: {message}")
