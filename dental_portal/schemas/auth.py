"""
Pydantic schemas for authentication requests and the cached identity.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Authenticated user as returned by the portal."""

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "patient"
    phone: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class LoginRequest(BaseModel):
    """Login payload."""

    email: str
    password: str


class RegisterRequest(BaseModel):
    """Registration form, including the client-only confirmation field."""

    email: str
    password: str
    confirm_password: str
    first_name: str
    last_name: str
    role: str = "patient"
    phone: Optional[str] = None

    def to_payload(self) -> dict:
        """Fields sent to the server (confirmation stays client-side)."""
        return self.model_dump(exclude={"confirm_password"}, exclude_none=True)


class AuthResponse(BaseModel):
    """Response schema for login and registration."""

    token: str
    user: User
