"""JSON-over-HTTP client for the marketplace backend.

Wraps ``httpx.AsyncClient`` with the base URL, bearer token and timeout
from settings.  Network failures are converted to :class:`ApiError`; the
raw :meth:`ApiClient.request` leaves status handling to the caller, while
the ``*_json`` helpers raise on any non-2xx response.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from tcg_console.core.config import Settings

GENERIC_ERROR_MESSAGE = "The server could not complete the request"


class ApiError(Exception):
    """Raised when a backend request fails.

    Args:
        message: Human-readable error description (server text when available).
        status_code: Optional HTTP status code from the backend.
        payload: Parsed response body, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


def response_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or ``None`` for empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def extract_error_message(payload: Any, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Pick the server-supplied human-readable message out of an error body.

    Looks at ``error``, then ``message``, then ``detail``.  A bare JSON
    string body is returned as-is.
    """
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return fallback


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an :class:`ApiError` from a non-2xx response."""
    payload = response_body(response)
    message = extract_error_message(payload, fallback=f"HTTP {response.status_code} from backend")
    return ApiError(message, status_code=response.status_code, payload=payload)


class ApiClient:
    """Authenticated client for the marketplace REST backend.

    Args:
        base_url: Backend base URL (e.g. ``http://localhost:8080/api``).
        token: Optional bearer token sent on every request.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used to stub the backend).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> ApiClient:
        """Create a client configured from application settings."""
        return cls(settings.api_base_url, settings.api_token, timeout=settings.request_timeout, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Issue one request and return the response regardless of status.

        Raises:
            ApiError: On timeouts and other transport-level failures.
        """
        try:
            logger.debug("{} {} params={}", method, path, params)
            return await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            msg = f"Timeout calling {method} {path}"
            logger.error(msg)
            raise ApiError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"HTTP error calling {method} {path}: {exc}"
            logger.error(msg)
            raise ApiError(msg) from exc

    async def get_json(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded body.

        Raises:
            ApiError: On transport failure or any non-2xx status.
        """
        response = await self.request("GET", path, params=params)
        return self._checked_body(response)

    async def post_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """POST to ``path`` and return the decoded body.

        Raises:
            ApiError: On transport failure or any non-2xx status.
        """
        response = await self.request("POST", path, params=params, json=json)
        return self._checked_body(response)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @staticmethod
    def _checked_body(response: httpx.Response) -> Any:
        if not response.is_success:
            error = error_from_response(response)
            logger.warning(
                "{} {} failed: HTTP {} {}",
                response.request.method,
                response.request.url.path,
                error.status_code,
                error.message,
            )
            raise error
        return response_body(response)
