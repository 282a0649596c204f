"""
Core package initialization.
"""

from dental_portal.core.config import settings, get_settings, Settings
from dental_portal.core.exceptions import (
    PortalError,
    ValidationError,
    AuthError,
    RequestError,
    NetworkError,
)
from dental_portal.core.inflight import BusySet

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "PortalError",
    "ValidationError",
    "AuthError",
    "RequestError",
    "NetworkError",
    "BusySet",
]
