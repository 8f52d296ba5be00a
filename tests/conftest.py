"""Shared test fixtures for MediGate tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEDIGATE_API_URL", "local")
    monkeypatch.setenv("MEDIGATE_FIXTURE_LATENCY", "0")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("FEEDBACK_SYNC_URL", "")
    monkeypatch.delenv("MEDIGATE_DEMO_EMAIL", raising=False)
    monkeypatch.delenv("MEDIGATE_DEMO_PASSWORD", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from medigate.core.api.backend import ApiRequest  # noqa: E402
from medigate.core.api.client import ApiClient  # noqa: E402
from medigate.core.api.endpoints import Endpoint  # noqa: E402
from medigate.core.api.result import ApiResult  # noqa: E402
from medigate.core.storage.credential_store import SecureCredentialStore  # noqa: E402
from medigate.core.storage.database import LocalDatabase  # noqa: E402
from medigate.core.storage.encryption import CredentialCipher  # noqa: E402
from medigate.core.storage.feedback_store import FeedbackStore  # noqa: E402
from medigate.domains.care.fixtures import (  # noqa: E402
    FixtureBackend,
    FixtureDataset,
    load_fixture_dataset,
)
from medigate.domains.care.services import CareServices  # noqa: E402
from medigate.domains.care.services.feedback import FeedbackService  # noqa: E402
from medigate.domains.care.session import SessionAggregator  # noqa: E402

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@pytest.fixture
def db() -> LocalDatabase:
    database = LocalDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(CredentialCipher.generate_key())


@pytest.fixture
def store(db: LocalDatabase, cipher: CredentialCipher) -> SecureCredentialStore:
    """Encrypted credential store over the in-memory database."""
    return SecureCredentialStore(db, cipher)


# ---------------------------------------------------------------------------
# Scripted backend
# ---------------------------------------------------------------------------

Response = ApiResult | Exception | Callable[[ApiRequest], ApiResult]


class FakeBackend:
    """Backend that replays scripted responses and records every request.

    ``responses`` maps an Endpoint (or a raw path for untyped requests) to
    an ApiResult, an exception to raise, or a callable taking the request.
    Unscripted requests get ``default``.
    """

    def __init__(
        self,
        responses: dict[Endpoint | str, Response] | None = None,
        default: ApiResult | None = None,
    ) -> None:
        self.responses: dict[Endpoint | str, Response] = dict(responses or {})
        self.default = default or ApiResult.ok(None)
        self.requests: list[ApiRequest] = []
        self.closed = False

    @property
    def mode(self) -> str:
        return "fake"

    def resolve_url(self, path: str) -> str:
        return f"https://api.test{path}"

    async def send(self, request: ApiRequest) -> ApiResult:
        self.requests.append(request)
        response = self.responses.get(request.endpoint or request.path, self.default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    async def close(self) -> None:
        self.closed = True

    def endpoints(self) -> list[Endpoint | None]:
        return [r.endpoint for r in self.requests]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_client(fake_backend: FakeBackend, store: SecureCredentialStore) -> ApiClient:
    return ApiClient(fake_backend, store)


# ---------------------------------------------------------------------------
# Fixture-backed session
# ---------------------------------------------------------------------------

@pytest.fixture
def dataset() -> FixtureDataset:
    """The bundled fixture dataset."""
    return load_fixture_dataset()


@pytest.fixture
def fixture_backend(dataset: FixtureDataset) -> FixtureBackend:
    return FixtureBackend(dataset, latency=0)


@pytest.fixture
def client(fixture_backend: FixtureBackend, store: SecureCredentialStore) -> ApiClient:
    return ApiClient(fixture_backend, store)


@pytest.fixture
def feedback_service(db: LocalDatabase) -> FeedbackService:
    return FeedbackService(FeedbackStore(db))


@pytest.fixture
def services(client: ApiClient, feedback_service: FeedbackService) -> CareServices:
    return CareServices.from_client(client, feedback=feedback_service)


@pytest.fixture
def session(services: CareServices) -> SessionAggregator:
    return SessionAggregator(services)


@pytest.fixture
def fake_session(fake_client: ApiClient) -> SessionAggregator:
    """Aggregator whose every request goes to ``fake_backend``."""
    return SessionAggregator(CareServices.from_client(fake_client))
