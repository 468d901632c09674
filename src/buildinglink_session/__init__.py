from .config import AppConfig, PortalConfig, load_config
from .logging_config import configure_logging
from .models import PortalRequest, PortalResponse, PortalToken
from .portal import (
    CircularRedirectError,
    LoginRejectedError,
    PortalClient,
    PortalCredentials,
    PortalError,
    PortalSelectors,
    ProtocolViolationError,
)
from .resident import ResidentApi

__all__ = [
    "AppConfig",
    "PortalConfig",
    "load_config",
    "configure_logging",
    "PortalClient",
    "PortalCredentials",
    "PortalSelectors",
    "PortalRequest",
    "PortalResponse",
    "PortalToken",
    "ResidentApi",
    "PortalError",
    "ProtocolViolationError",
    "CircularRedirectError",
    "LoginRejectedError",
]
