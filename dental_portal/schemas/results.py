"""
Typed outcome returned across every service boundary.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from dental_portal.core.exceptions import PortalError

T = TypeVar("T")


class Outcome(BaseModel, Generic[T]):
    """
    Result of a portal operation.

    ``message`` is always displayable. ``ignored`` marks a request that was
    dropped because the same action was already in flight.
    """

    success: bool
    value: Optional[T] = None
    message: str = ""
    error: Optional[PortalError] = None
    ignored: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def ok(cls, value=None, message: str = "") -> "Outcome":
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(cls, error: PortalError) -> "Outcome":
        return cls(success=False, error=error, message=error.message)

    @classmethod
    def skipped(cls, message: str) -> "Outcome":
        return cls(success=False, ignored=True, message=message)

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None
