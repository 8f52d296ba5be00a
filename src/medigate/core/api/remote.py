"""HTTP backend: serves ApiClient requests against a remote JSON API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from medigate.core.api.backend import BODY_METHODS, ApiRequest
from medigate.core.api.result import ApiResult

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Request failed"


class RemoteBackend:
    """Async HTTP backend built on ``httpx.AsyncClient``.

    Every transport or HTTP-status failure is mapped to ``ApiResult.fail``;
    nothing expected escapes ``send``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            base_url: API root prepended to every path, e.g. ``https://api.example.com``.
            timeout: Per-request timeout in seconds.
            http_client: Optional pre-built client (tests pass one with a
                ``MockTransport``). A client passed in is not closed by ``close()``.
        """
        if not base_url:
            raise ValueError("RemoteBackend requires a base URL")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def mode(self) -> str:
        return "remote"

    def resolve_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def send(self, request: ApiRequest) -> ApiResult:
        url = self.resolve_url(request.path)
        client = await self._get_client()

        kwargs: dict[str, Any] = {"headers": request.headers, "timeout": self.timeout}
        if request.body is not None and request.method in BODY_METHODS:
            kwargs["json"] = request.body

        try:
            response = await client.request(request.method, url, **kwargs)
        except httpx.TimeoutException:
            logger.error("Timeout in request to %s", url)
            return ApiResult.fail(f"Request timed out after {self.timeout:g}s")
        except httpx.RequestError as exc:
            logger.error("Request error for %s: %s", url, exc)
            return ApiResult.fail(f"Network error: {str(exc) or type(exc).__name__}")

        logger.debug("Request to %s - Status: %d", url, response.status_code)

        if not response.is_success:
            payload = _decode_json(response)
            logger.warning("API error %d from %s", response.status_code, url)
            return ApiResult.fail(_error_message(payload), status_code=response.status_code)

        if not response.content:
            return ApiResult.ok(None, status_code=response.status_code)

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Error parsing JSON response from %s: %s", url, exc)
            return ApiResult.fail(
                "Invalid JSON in server response", status_code=response.status_code
            )
        return ApiResult.ok(payload, status_code=response.status_code)


def _decode_json(response: httpx.Response) -> Any | None:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _error_message(payload: Any) -> str:
    """Pull a human-readable message out of an error body."""
    if isinstance(payload, dict):
        msg = payload.get("message") or payload.get("error")
        if isinstance(msg, dict):
            msg = msg.get("message")
        if isinstance(msg, str) and msg:
            return msg
    return DEFAULT_ERROR_MESSAGE
