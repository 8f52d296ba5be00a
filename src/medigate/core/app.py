"""MediGate composition root: wires settings into a ready SessionAggregator.

``create_session()`` is the single place that knows which concrete
backend, storage and services make up a session. Tests pass overrides
to swap in fakes.
"""

from __future__ import annotations

import logging

from medigate.core.api.backend import ApiBackend
from medigate.core.api.client import ApiClient
from medigate.core.api.remote import RemoteBackend
from medigate.core.config.settings import Settings, get_settings
from medigate.core.storage.credential_store import SecureCredentialStore
from medigate.core.storage.database import LocalDatabase
from medigate.core.storage.encryption import CredentialCipher, EncryptionError
from medigate.core.storage.feedback_store import FeedbackStore
from medigate.domains.care.fixtures import FixtureBackend, load_fixture_dataset
from medigate.domains.care.services import CareServices
from medigate.domains.care.services.feedback import FeedbackService
from medigate.domains.care.session import SessionAggregator

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> ApiBackend:
    """Fixture backend for an empty or ``local`` API URL, HTTP otherwise."""
    if settings.uses_fixture_backend:
        dataset = load_fixture_dataset(settings.medigate_fixture_path or None)
        logger.info("Using fixture backend (latency %.2fs)", settings.medigate_fixture_latency)
        return FixtureBackend(dataset, latency=settings.medigate_fixture_latency)

    logger.info("Using remote backend at %s", settings.medigate_api_url)
    return RemoteBackend(settings.medigate_api_url, timeout=settings.medigate_api_timeout)


def _create_cipher(settings: Settings) -> CredentialCipher | None:
    if not settings.encryption_key:
        logger.info(
            "No ENCRYPTION_KEY configured; credentials will be stored unencrypted. "
            "Set ENCRYPTION_KEY to encrypt them at rest."
        )
        return None
    try:
        return CredentialCipher(settings.encryption_key)
    except EncryptionError as exc:
        logger.error("Failed to initialize credential encryption: %s", exc)
        logger.warning("Continuing with unencrypted credential storage")
        return None


def create_session(
    *,
    settings: Settings | None = None,
    backend_override: ApiBackend | None = None,
    database_override: LocalDatabase | None = None,
    feedback_sync_override: ApiBackend | None = None,
) -> SessionAggregator:
    """Create a SessionAggregator with every dependency wired.

    It:
    1. Opens the local database (credentials and offline feedback)
    2. Builds the credential store, encrypted when a key is configured
    3. Picks the fixture or remote backend
    4. Builds the ApiClient, the domain services and the aggregator

    The returned aggregator owns the database; ``await session.close()``
    releases it.
    """
    settings = settings or get_settings()

    # --- Local storage ---
    if database_override is not None:
        database = database_override
    else:
        database = LocalDatabase(settings.db_path)
    database.initialize()
    logger.info(
        "Local database ready: %s (schema v%d)", database.path, database.get_schema_version()
    )

    store = SecureCredentialStore(database, _create_cipher(settings))

    # --- API client ---
    backend = backend_override if backend_override is not None else create_backend(settings)
    client = ApiClient(backend, store, log_requests=settings.medigate_api_logging)

    # --- Feedback ---
    if feedback_sync_override is not None:
        sync_backend: ApiBackend | None = feedback_sync_override
    elif settings.feedback_sync_url:
        sync_backend = RemoteBackend(settings.feedback_sync_url, timeout=settings.medigate_api_timeout)
        logger.info("Feedback sync configured for %s", settings.feedback_sync_url)
    else:
        sync_backend = None
    feedback = FeedbackService(FeedbackStore(database), sync_backend)

    services = CareServices.from_client(client, feedback=feedback)
    logger.info("Session created (%s mode)", client.mode)
    return SessionAggregator(services, database=database)
