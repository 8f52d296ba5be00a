"""API client: the single choke point for every network-shaped operation.

The client decides *what* to call (endpoint template, URL parameters,
auth header); the injected backend decides *how* (HTTP or the fixture
dataset). Domain services only ever talk to this class.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

from medigate.core.api.backend import ApiBackend, ApiRequest
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.core.storage.credential_store import (
    SecureCredentialStore,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


class UnresolvedPlaceholderError(ValueError):
    """A path template still had ``:name`` placeholders after substitution."""


class ApiClient:
    """Builds URLs, attaches credentials and dispatches to a backend.

    Usage::

        client = ApiClient(FixtureBackend(dataset), store)
        result = await client.get(Endpoint.DOCTORS)
        if result.success:
            doctors = result.data
    """

    def __init__(
        self,
        backend: ApiBackend,
        credential_store: SecureCredentialStore,
        *,
        log_requests: bool = False,
    ) -> None:
        self._backend = backend
        self._store = credential_store
        self._log_requests = log_requests

    @property
    def mode(self) -> str:
        return self._backend.mode

    @property
    def credential_store(self) -> SecureCredentialStore:
        return self._store

    # ------------------------------------------------------------------
    # URL building
    # ------------------------------------------------------------------

    def build_url(
        self, template: Endpoint | str, params: dict[str, Any] | None = None
    ) -> str:
        """Fill ``:name`` placeholders and resolve against the backend.

        Raises:
            UnresolvedPlaceholderError: If a placeholder has no value in ``params``.
        """
        return self._backend.resolve_url(fill_template(_template_of(template), params))

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        endpoint: Endpoint | str,
        body: Any = None,
        url_params: dict[str, Any] | None = None,
    ) -> ApiResult:
        """Send a request and return its result.

        Network errors, timeouts and non-2xx responses come back as failed
        results; only programming errors (such as a missing URL parameter)
        raise.
        """
        method = method.upper()
        path = fill_template(_template_of(endpoint), url_params)

        headers = {"Content-Type": "application/json"}
        token = await self._store.load_auth_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if self._log_requests:
            logger.info("[API] %s %s", method, self._backend.resolve_url(path))
        else:
            logger.debug("[API] %s %s", method, path)

        request = ApiRequest(
            method=method,
            path=path,
            body=body,
            endpoint=endpoint if isinstance(endpoint, Endpoint) else None,
            url_params={k: str(v) for k, v in (url_params or {}).items()},
            headers=headers,
        )
        return await self._backend.send(request)

    async def get(
        self, endpoint: Endpoint | str, url_params: dict[str, Any] | None = None
    ) -> ApiResult:
        return await self.request("GET", endpoint, None, url_params)

    async def post(
        self, endpoint: Endpoint | str, body: Any = None, url_params: dict[str, Any] | None = None
    ) -> ApiResult:
        return await self.request("POST", endpoint, body, url_params)

    async def put(
        self, endpoint: Endpoint | str, body: Any = None, url_params: dict[str, Any] | None = None
    ) -> ApiResult:
        return await self.request("PUT", endpoint, body, url_params)

    async def patch(
        self, endpoint: Endpoint | str, body: Any = None, url_params: dict[str, Any] | None = None
    ) -> ApiResult:
        return await self.request("PATCH", endpoint, body, url_params)

    async def delete(
        self, endpoint: Endpoint | str, url_params: dict[str, Any] | None = None
    ) -> ApiResult:
        return await self.request("DELETE", endpoint, None, url_params)

    # ------------------------------------------------------------------
    # Auth token
    # ------------------------------------------------------------------

    async def set_auth_token(self, token: str) -> None:
        """Persist the bearer token.

        Raises:
            StorageUnavailable: If the token could not be saved.
        """
        await self._store.save_auth_token(token)

    async def clear_auth_token(self) -> None:
        """Forget the bearer token. Best effort."""
        try:
            await self._store.remove_auth_token()
        except StorageUnavailable:
            logger.warning("Auth token could not be removed from storage")

    async def get_auth_token(self) -> str | None:
        return await self._store.load_auth_token()

    async def close(self) -> None:
        await self._backend.close()


def fill_template(template: str, params: dict[str, Any] | None = None) -> str:
    """Substitute every ``:name`` placeholder in ``template``.

    Raises:
        UnresolvedPlaceholderError: If any placeholder has no value.
    """
    params = params or {}
    missing: list[str] = []

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in params or params[name] is None:
            missing.append(name)
            return match.group(0)
        return quote(str(params[name]), safe="")

    path = _PLACEHOLDER.sub(_sub, template)
    if missing:
        raise UnresolvedPlaceholderError(
            f"Missing URL parameter(s) {', '.join(sorted(set(missing)))} for {template!r}"
        )
    return path


def _template_of(endpoint: Endpoint | str) -> str:
    return endpoint.path if isinstance(endpoint, Endpoint) else endpoint
