"""Secure credential store for the auth token and cached user snapshot.

With an encryption key configured, values are Fernet-encrypted into the
``secure_items`` table. Without one, the store falls back to the plain
``local_items`` table so sessions still survive a restart, and logs a
warning the first time it does so.

Reads are forgiving (an unreadable value is the same as no value); writes
are not: a credential that could not be persisted raises
``StorageUnavailable`` so the caller never assumes a session was saved.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from medigate.core.storage.database import (
    LOCAL_TABLE,
    SECURE_TABLE,
    DatabaseError,
    LocalDatabase,
)
from medigate.core.storage.encryption import CredentialCipher, EncryptionError

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_DATA_KEY = "user_data"

SESSION_KEYS = (AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_DATA_KEY)

_STORAGE_ERRORS = (sqlite3.Error, DatabaseError, EncryptionError)


class StorageUnavailable(Exception):
    """Raised when a credential could not be written to or removed from storage."""


class SecureCredentialStore:
    """Key/value credential persistence over a LocalDatabase.

    Usage::

        store = SecureCredentialStore(db, CredentialCipher(key))
        await store.save_auth_token("abc")
        await store.is_authenticated()  # True
        await store.clear_session()
    """

    def __init__(
        self, database: LocalDatabase, cipher: CredentialCipher | None = None
    ) -> None:
        self._db = database
        self._cipher = cipher
        self._fallback_warned = False

    @property
    def encrypted(self) -> bool:
        """Whether values are encrypted at rest."""
        return self._cipher is not None

    # ------------------------------------------------------------------
    # Generic operations
    # ------------------------------------------------------------------

    async def save(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``.

        Raises:
            StorageUnavailable: If the value could not be written.
        """
        try:
            if self._cipher is not None:
                self._db.put(SECURE_TABLE, key, self._cipher.encrypt(value))
            else:
                self._warn_fallback()
                self._db.put(LOCAL_TABLE, key, value)
        except _STORAGE_ERRORS as exc:
            logger.error("Error saving %s to credential storage: %s", key, exc)
            raise StorageUnavailable(
                f"Credential storage is not accessible; {key!r} was not saved"
            ) from exc

    async def load(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None.

        A missing key, an inaccessible database and an undecryptable value
        all read as None.
        """
        try:
            if self._cipher is not None:
                token = self._db.get(SECURE_TABLE, key)
                return None if token is None else self._cipher.decrypt(token)
            return self._db.get(LOCAL_TABLE, key)
        except _STORAGE_ERRORS as exc:
            logger.error("Error reading %s from credential storage: %s", key, exc)
            return None

    async def remove(self, key: str) -> None:
        """Delete ``key``. Removing a key that does not exist is a no-op.

        Raises:
            StorageUnavailable: If the storage itself is not accessible.
        """
        table = SECURE_TABLE if self._cipher is not None else LOCAL_TABLE
        try:
            self._db.delete(table, key)
        except _STORAGE_ERRORS as exc:
            logger.error("Error removing %s from credential storage: %s", key, exc)
            raise StorageUnavailable(
                f"Credential storage is not accessible; {key!r} was not removed"
            ) from exc

    async def clear_session(self) -> None:
        """Remove token, refresh token and user snapshot. Never raises."""
        for key in SESSION_KEYS:
            try:
                await self.remove(key)
            except StorageUnavailable:
                logger.warning("Could not clear %s during session reset", key)

    async def is_authenticated(self) -> bool:
        """True iff a non-empty auth token is currently loadable."""
        return bool(await self.load_auth_token())

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    async def save_auth_token(self, token: str) -> None:
        await self.save(AUTH_TOKEN_KEY, token)

    async def load_auth_token(self) -> str | None:
        return await self.load(AUTH_TOKEN_KEY)

    async def remove_auth_token(self) -> None:
        await self.remove(AUTH_TOKEN_KEY)

    async def save_refresh_token(self, token: str) -> None:
        await self.save(REFRESH_TOKEN_KEY, token)

    async def load_refresh_token(self) -> str | None:
        return await self.load(REFRESH_TOKEN_KEY)

    async def save_user_snapshot(self, user: dict[str, Any]) -> None:
        """Persist the user's wire-format dict as JSON."""
        await self.save(USER_DATA_KEY, json.dumps(user, separators=(",", ":")))

    async def load_user_snapshot(self) -> dict[str, Any] | None:
        raw = await self.load(USER_DATA_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing cached user snapshot: %s", exc)
            return None
        return data if isinstance(data, dict) else None

    def _warn_fallback(self) -> None:
        if not self._fallback_warned:
            logger.warning(
                "No ENCRYPTION_KEY configured; credentials are stored unencrypted. "
                "Set ENCRYPTION_KEY to encrypt them at rest."
            )
            self._fallback_warned = True
