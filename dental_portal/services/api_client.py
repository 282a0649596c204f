"""
HTTP client for the patient portal API.

Every request goes through ``SessionAuth``, which attaches the bearer token
and tears the session down on 401. Responses are mapped onto the portal
error types here, once, so services only ever see ``PortalError``.
"""

import logging
from typing import Any, AsyncIterator, Callable, Dict, Optional

import httpx

from dental_portal.core.config import Settings
from dental_portal.core.exceptions import AuthError, NetworkError, RequestError
from dental_portal.core.session import Session
from dental_portal.schemas.upload import UploadProgress

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
NETWORK_ERROR_MESSAGE = "Could not reach the server. Check your connection and try again."


class SessionAuth(httpx.Auth):
    """Bearer auth backed by the session store, with 401 teardown."""

    def __init__(self, session: Session):
        self.session = session

    def auth_flow(self, request: httpx.Request):
        token = self.session.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

        response = yield request

        if response.status_code == 401:
            self.session.invalidate(issued_with=token)


def _server_error(response: httpx.Response) -> Optional[str]:
    """Pull the ``error`` field out of a JSON error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return None


def _content_length(request: httpx.Request) -> Optional[int]:
    value = request.headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class ApiClient:
    """Async JSON client for the portal, bound to one session."""

    def __init__(
        self,
        session: Session,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            session: Session supplying the token and receiving 401 teardowns
            settings: Client settings (base URL, timeouts)
            transport: Optional transport override, used to serve an
                in-process app in tests
        """
        self.session = session
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.api_url,
            auth=SessionAuth(session),
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str, fallback: str) -> Dict[str, Any]:
        return await self.request_json("GET", path, fallback)

    async def post_json(
        self, path: str, payload: Dict[str, Any], fallback: str
    ) -> Dict[str, Any]:
        return await self.request_json("POST", path, fallback, json=payload)

    async def request_json(
        self, method: str, path: str, fallback: str, **kwargs
    ) -> Dict[str, Any]:
        """
        Issue a request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            fallback: Message used when the server gives no error text

        Returns:
            Decoded JSON object (empty dict for an empty body)

        Raises:
            AuthError, RequestError, NetworkError
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise NetworkError(NETWORK_ERROR_MESSAGE) from e
        return self._handle(method, path, response, fallback)

    async def post_multipart(
        self,
        path: str,
        data: Dict[str, str],
        files: Dict[str, Any],
        fallback: str,
        on_progress: Optional[Callable[[UploadProgress], None]] = None,
    ) -> Dict[str, Any]:
        """
        POST a multipart form, reporting bytes sent as the body streams out.

        The total is the request's Content-Length, or None when the
        encoder cannot know it in advance.
        """
        request = self._client.build_request(
            "POST", path, data=data, files=files, timeout=self.settings.upload_timeout
        )
        if on_progress is not None:
            request = self._with_progress(request, on_progress)

        try:
            response = await self._client.send(request)
        except httpx.TransportError as e:
            logger.error(f"❌ POST {path} upload failed: {e}")
            raise NetworkError(NETWORK_ERROR_MESSAGE) from e
        return self._handle("POST", path, response, fallback)

    @staticmethod
    def _with_progress(
        request: httpx.Request, on_progress: Callable[[UploadProgress], None]
    ) -> httpx.Request:
        total = _content_length(request)
        stream = request.stream

        async def body() -> AsyncIterator[bytes]:
            loaded = 0
            async for chunk in stream:
                loaded += len(chunk)
                on_progress(UploadProgress(loaded=loaded, total=total))
                yield chunk

        return httpx.Request(
            request.method,
            request.url,
            headers=request.headers,
            content=body(),
            extensions=request.extensions,
        )

    @staticmethod
    def _handle(
        method: str, path: str, response: httpx.Response, fallback: str
    ) -> Dict[str, Any]:
        if response.status_code == 401:
            logger.warning(f"{method} {path} -> 401")
            raise AuthError(_server_error(response) or SESSION_EXPIRED_MESSAGE)

        if not response.is_success:
            message = _server_error(response) or fallback
            logger.error(f"❌ {method} {path} -> {response.status_code}: {message}")
            raise RequestError(message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise RequestError(fallback, status_code=response.status_code) from e
        return body if isinstance(body, dict) else {}
