"""Backend protocol: where an ApiClient request is actually served."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult

# Methods whose body is serialized into the request.
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class ApiRequest:
    """A fully prepared request handed to a backend."""

    method: str
    path: str  # template with placeholders already filled
    body: Any = None
    endpoint: Endpoint | None = None
    url_params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ApiBackend(Protocol):
    """Serves ApiClient requests.

    Two implementations exist: ``RemoteBackend`` (HTTP via httpx) and
    ``FixtureBackend`` (the in-process demo dataset). ``send`` must return
    an ``ApiResult`` for every expected failure instead of raising.
    """

    @property
    def mode(self) -> str:
        """'remote' or 'fixture'."""
        ...

    def resolve_url(self, path: str) -> str:
        """Turn a filled path into the URL the backend addresses."""
        ...

    async def send(self, request: ApiRequest) -> ApiResult: ...

    async def close(self) -> None: ...
