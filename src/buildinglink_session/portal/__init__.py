from .client import PortalClient, PortalCredentials
from .errors import CircularRedirectError, LoginRejectedError, PortalError, ProtocolViolationError
from .selectors import PortalSelectors

__all__ = [
    "PortalClient",
    "PortalCredentials",
    "PortalSelectors",
    "PortalError",
    "ProtocolViolationError",
    "CircularRedirectError",
    "LoginRejectedError",
]
