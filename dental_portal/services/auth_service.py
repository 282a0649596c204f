"""
Authentication against the portal: login, registration and identity lookup.
"""

import logging

from dental_portal.core.exceptions import PortalError, ValidationError
from dental_portal.core.session import Session
from dental_portal.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, User
from dental_portal.schemas.results import Outcome
from dental_portal.services.api_client import ApiClient
from dental_portal.services.repository import parse_model

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

LOGIN_FAILED = "Login failed"
REGISTER_FAILED = "Registration failed"
ME_FAILED = "Failed to load your profile"


class AuthService:
    """Obtains credentials and stores them on the session."""

    def __init__(self, api: ApiClient, session: Session):
        self.api = api
        self.session = session

    async def login(self, email: str, password: str) -> Outcome[User]:
        payload = LoginRequest(email=email, password=password).model_dump()
        try:
            body = await self.api.post_json("/api/login", payload, fallback=LOGIN_FAILED)
            auth = parse_model(AuthResponse, body, LOGIN_FAILED)
        except PortalError as e:
            return Outcome.fail(e)

        self.session.set_credentials(auth.token, auth.user)
        logger.info(f"✓ Signed in as {auth.user.email} ({auth.user.role})")
        return Outcome.ok(auth.user)

    async def register(self, form: RegisterRequest) -> Outcome[User]:
        """
        Register a new account.

        The password and its confirmation are checked here, before any
        request is made.
        """
        if form.password != form.confirm_password:
            return Outcome.fail(ValidationError("Passwords do not match"))
        if len(form.password) < MIN_PASSWORD_LENGTH:
            return Outcome.fail(
                ValidationError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
                )
            )

        try:
            body = await self.api.post_json(
                "/api/register", form.to_payload(), fallback=REGISTER_FAILED
            )
            auth = parse_model(AuthResponse, body, REGISTER_FAILED)
        except PortalError as e:
            return Outcome.fail(e)

        self.session.set_credentials(auth.token, auth.user)
        logger.info(f"✓ Registered {auth.user.email}")
        return Outcome.ok(auth.user)

    async def me(self) -> Outcome[User]:
        try:
            body = await self.api.get_json("/api/me", fallback=ME_FAILED)
            user = parse_model(User, body.get("user"), ME_FAILED)
        except PortalError as e:
            return Outcome.fail(e)
        return Outcome.ok(user)

    def logout(self) -> None:
        self.session.logout()
