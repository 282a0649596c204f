"""
Session state shared by every request-issuing component.

The token and the cached user identity live together in a small persistent
key-value store. A ``Session`` wraps that store and exposes the teardown hook
the HTTP layer calls on unauthorized responses.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from dental_portal.schemas.auth import User

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class TokenStore:
    """JSON-file key-value store holding the token and the user identity."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        """Return the stored entries, or an empty dict if nothing is stored."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any:
        return self.read().get(key)

    def set_many(self, entries: Dict[str, Any]) -> None:
        data = self.read()
        data.update(entries)
        self._write(data)

    def remove(self, *keys: str) -> None:
        data = self.read()
        if not any(key in data for key in keys):
            return
        for key in keys:
            data.pop(key, None)
        self._write(data)

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)


class Session:
    """
    Token/identity pair with an unauthorized-teardown hook.

    Set on successful login or registration, read on every request, cleared
    on an unauthorized response or an explicit logout. The entries are read
    from the store once and kept in memory; the file is only touched again
    when the session changes.
    """

    def __init__(
        self,
        store: TokenStore,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize session.

        Args:
            store: Persistent store for the token and user identity
            on_unauthorized: Called once when the session is torn down after
                an unauthorized response
        """
        self.store = store
        self._listeners: List[Callable[[], None]] = []
        self._torn_down = False
        self._entries: Dict[str, Any] = store.read()
        if on_unauthorized is not None:
            self._listeners.append(on_unauthorized)

    @property
    def token(self) -> Optional[str]:
        return self._entries.get(TOKEN_KEY)

    @property
    def user(self) -> Optional[User]:
        raw = self._entries.get(USER_KEY)
        if not raw:
            return None
        return User.model_validate(raw)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def add_unauthorized_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def set_credentials(self, token: str, user: Optional[User]) -> None:
        """Persist a fresh token and identity, re-arming the teardown hook."""
        self.store.set_many(
            {
                TOKEN_KEY: token,
                USER_KEY: user.model_dump(mode="json") if user else None,
            }
        )
        self._entries = self.store.read()
        self._torn_down = False
        logger.info("✓ Session credentials stored")

    def logout(self) -> None:
        """Explicit logout. Clears the store without firing the hook."""
        self._clear()
        self._torn_down = True
        logger.info("Session cleared by logout")

    def invalidate(self, issued_with: Optional[str] = None) -> bool:
        """
        Tear down after an unauthorized response.

        Args:
            issued_with: Token the failing request carried, or None if it
                was sent without one. If a token is stored now and it is not
                the one the request carried, the response belongs to an
                earlier session and is ignored.

        Returns:
            True if this call performed the teardown, False if it was a no-op
        """
        current = self.token
        if current is not None and current != issued_with:
            logger.debug("Ignoring 401 issued under a previous session")
            return False

        self._clear()
        if self._torn_down:
            return False

        self._torn_down = True
        logger.warning("Session invalidated by unauthorized response")
        for listener in list(self._listeners):
            listener()
        return True

    def _clear(self) -> None:
        self.store.remove(TOKEN_KEY, USER_KEY)
        self._entries = self.store.read()
