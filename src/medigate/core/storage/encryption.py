"""Fernet-based encryption for credentials at rest.

Auth tokens and the cached user snapshot are encrypted before they are
written to SQLite. Values are opaque strings; callers serialize
structured data themselves.
"""

from __future__ import annotations

import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class CredentialCipher:
    """Encrypts and decrypts credential strings using Fernet symmetric encryption.

    Usage::

        cipher = CredentialCipher(key="...")
        token = cipher.encrypt("eyJhbGciOi...")
        cipher.decrypt(token)  # "eyJhbGciOi..."
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Args:
            key: A valid Fernet key string. Generate with
                 ``CredentialCipher.generate_key()``.

        Raises:
            EncryptionError: If the key is empty or invalid.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, value: str) -> str:
        """Encrypt a string to a Fernet token string.

        Raises:
            EncryptionError: If ``value`` is not a string.
        """
        if not isinstance(value, str):
            raise EncryptionError(
                f"Only strings can be encrypted, got {type(value).__name__}"
            )
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        """Decrypt a Fernet token string back to the original string.

        Raises:
            EncryptionError: If the token is invalid or was produced with
                another key.
        """
        if not token:
            raise EncryptionError("Decryption failed: empty token")
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        except UnicodeDecodeError as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64-encoded 32-byte Fernet key."""
        return Fernet.generate_key().decode("utf-8")
