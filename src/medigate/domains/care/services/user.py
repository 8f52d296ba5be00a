"""User service: authentication, profile and session persistence."""

from __future__ import annotations

import logging
from typing import Any

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.core.storage.credential_store import (
    SecureCredentialStore,
    StorageUnavailable,
)
from medigate.domains.care.models import AuthSession, User

logger = logging.getLogger(__name__)

STORE_FAILED_MESSAGE = "Unable to store session credentials"


class UserService:
    """Login, logout and profile operations.

    The bearer token and a snapshot of the user are persisted through the
    client's credential store on successful login or registration.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    @property
    def _store(self) -> SecureCredentialStore:
        return self._client.credential_store

    async def login(self, email: str, password: str) -> ApiResult:
        """Sign in. Returns ``ApiResult`` wrapping an ``AuthSession``."""
        result = await self._client.post(
            Endpoint.USER_LOGIN, {"email": email, "password": password}
        )
        return await self._start_session(result, "Login failed")

    async def register(self, data: dict[str, Any]) -> ApiResult:
        """Create an account and sign in with it."""
        result = await self._client.post(Endpoint.USER_REGISTER, data)
        return await self._start_session(result, "Registration failed")

    async def logout(self) -> ApiResult:
        """Tell the server, then clear local credentials whatever it said."""
        try:
            result = await self._client.post(Endpoint.USER_LOGOUT, {})
        finally:
            await self._client.clear_auth_token()
            await self._store.clear_session()
        if not result.success:
            logger.warning("Remote logout failed: %s", result.error)
        return result

    async def get_user(self) -> ApiResult:
        result = await self._client.get(Endpoint.USER)
        return result.map(User.from_dict)

    async def get_cached_user(self) -> User | None:
        """The user snapshot saved at the last login, if readable."""
        snapshot = await self._store.load_user_snapshot()
        if snapshot is None:
            return None
        try:
            return User.from_dict(snapshot)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable user snapshot: %s", exc)
            return None

    async def update_user(self, updates: dict[str, Any]) -> ApiResult:
        """Send a partial profile update (wire field names)."""
        result = (await self._client.put(Endpoint.USER_UPDATE, {"updates": updates})).map(
            User.from_dict
        )
        if result.success:
            try:
                await self._store.save_user_snapshot(result.data.to_dict())
            except StorageUnavailable:
                logger.error("Updated user could not be cached locally")
        return result

    async def is_authenticated(self) -> bool:
        return await self._store.is_authenticated()

    async def _start_session(self, result: ApiResult, default_error: str) -> ApiResult:
        if not result.success:
            return ApiResult.fail(result.error or default_error, result.status_code)

        result = result.map(AuthSession.from_dict)
        if not result.success:
            return result

        session: AuthSession = result.data
        try:
            await self._client.set_auth_token(session.token)
            if session.refresh_token:
                await self._store.save_refresh_token(session.refresh_token)
            if session.user is not None:
                await self._store.save_user_snapshot(session.user.to_dict())
        except StorageUnavailable:
            logger.error("Session credentials could not be persisted")
            await self._store.clear_session()
            return ApiResult.fail(STORE_FAILED_MESSAGE)

        logger.info("Session started for user %s", session.user.id if session.user else "?")
        return result
