"""
Test login, registration and identity lookup.
"""

import asyncio

from dental_portal.core.session import Session, TokenStore
from dental_portal.schemas.auth import RegisterRequest
from dental_portal.services.auth_service import AuthService


def _anonymous(settings):
    return Session(TokenStore(settings.session_file.with_name("fresh.json")))


def _form(**overrides):
    fields = dict(
        email="new@example.com",
        password="secret1",
        confirm_password="secret1",
        first_name="Anna",
        last_name="Smirnova",
    )
    fields.update(overrides)
    return RegisterRequest(**fields)


def test_login_stores_credentials(portal, settings, connect):
    session = _anonymous(settings)

    async def scenario():
        async with connect(session) as api:
            return await AuthService(api, session).login("patient@example.com", "password123")

    outcome = asyncio.run(scenario())
    assert outcome.success
    assert session.token == portal.token
    assert session.user.email == "patient@example.com"


def test_rejected_login_reports_server_message(settings, connect):
    session = _anonymous(settings)

    async def scenario():
        async with connect(session) as api:
            return await AuthService(api, session).login("patient@example.com", "wrong")

    outcome = asyncio.run(scenario())
    assert outcome.error_kind == "auth"
    assert outcome.message == "Invalid credentials"
    assert session.token is None


def test_register_rejects_mismatched_passwords_locally(portal, settings, connect):
    session = _anonymous(settings)

    async def scenario():
        async with connect(session) as api:
            return await AuthService(api, session).register(
                _form(confirm_password="other1")
            )

    outcome = asyncio.run(scenario())
    assert outcome.error_kind == "validation"
    assert portal.calls == []


def test_register_rejects_short_password_locally(portal, settings, connect):
    session = _anonymous(settings)

    async def scenario():
        async with connect(session) as api:
            return await AuthService(api, session).register(
                _form(password="abc", confirm_password="abc")
            )

    outcome = asyncio.run(scenario())
    assert outcome.error_kind == "validation"
    assert portal.calls == []


def test_register_sends_form_without_confirmation(portal, settings, connect):
    session = _anonymous(settings)

    async def scenario():
        async with connect(session) as api:
            return await AuthService(api, session).register(_form())

    outcome = asyncio.run(scenario())
    assert outcome.success
    assert "confirm_password" not in portal.registrations[0]
    assert portal.registrations[0]["role"] == "patient"
    assert session.user.email == "new@example.com"


def test_me_returns_current_user(session, connect):
    async def scenario():
        async with connect() as api:
            return await AuthService(api, session).me()

    outcome = asyncio.run(scenario())
    assert outcome.success
    assert outcome.value.id == 7


def test_logout_clears_session(session, connect):
    async def scenario():
        async with connect() as api:
            AuthService(api, session).logout()

    asyncio.run(scenario())
    assert session.token is None
