"""
Error taxonomy for portal operations.

Every error raised below the service boundary is one of these. Services catch
them and turn them into an ``Outcome``; callers never see them raised.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for all client-side portal errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """A client-side precondition failed. No request was sent."""

    kind = "validation"


class AuthError(PortalError):
    """The server answered 401. The session guard has already torn down."""

    kind = "auth"


class RequestError(PortalError):
    """Any other non-success response."""

    kind = "request"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(PortalError):
    """Transport failure or timeout with no usable response."""

    kind = "network"
