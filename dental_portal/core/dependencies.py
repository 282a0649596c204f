"""
Shared factories wiring settings, session and HTTP client together.
"""

from typing import Callable, Optional

import httpx

from dental_portal.core.config import get_settings, Settings
from dental_portal.core.session import Session, TokenStore
from dental_portal.services.api_client import ApiClient


def get_session(
    settings: Optional[Settings] = None,
    on_unauthorized: Optional[Callable[[], None]] = None,
) -> Session:
    """Session backed by the configured session file."""
    settings = settings or get_settings()
    return Session(TokenStore(settings.session_file), on_unauthorized=on_unauthorized)


def get_api_client(
    session: Session,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ApiClient:
    """API client bound to ``session``."""
    return ApiClient(session, settings or get_settings(), transport=transport)
