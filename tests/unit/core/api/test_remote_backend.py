"""Tests for RemoteBackend against an httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from medigate.core.api.backend import ApiRequest
from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.remote import DEFAULT_ERROR_MESSAGE, RemoteBackend
from medigate.core.storage.credential_store import SecureCredentialStore

BASE_URL = "https://api.medigate.test"


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _backend(handler) -> RemoteBackend:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteBackend(BASE_URL, timeout=5.0, http_client=http_client)


def _get(path: str = "/api/doctors") -> ApiRequest:
    return ApiRequest(method="GET", path=path, headers={"Content-Type": "application/json"})


class TestConstruction:
    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            RemoteBackend("")

    def test_resolve_url_strips_trailing_slash(self):
        backend = RemoteBackend(BASE_URL + "/")
        assert backend.resolve_url("/api/doctors") == f"{BASE_URL}/api/doctors"
        assert backend.mode == "remote"


class TestSuccess:
    def test_json_body_returned(self):
        backend = _backend(lambda request: httpx.Response(200, json=[{"id": 1}]))
        result = _run(backend.send(_get()))
        assert result.success is True
        assert result.data == [{"id": 1}]
        assert result.status_code == 200

    def test_empty_body_is_ok_none(self):
        backend = _backend(lambda request: httpx.Response(204))
        result = _run(backend.send(_get()))
        assert result.success is True
        assert result.data is None

    def test_non_json_2xx_is_failure(self):
        backend = _backend(lambda request: httpx.Response(200, text="<html>oops</html>"))
        result = _run(backend.send(_get()))
        assert result.success is False
        assert result.error == "Invalid JSON in server response"


class TestRequestShape:
    def test_body_sent_for_post(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        backend = _backend(handler)
        _run(backend.send(ApiRequest(method="POST", path="/api/auth/login", body={"a": 1})))
        assert seen == {"method": "POST", "url": f"{BASE_URL}/api/auth/login", "body": {"a": 1}}

    def test_body_not_sent_for_get(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["content"] = request.content
            return httpx.Response(200, json=[])

        backend = _backend(handler)
        _run(backend.send(ApiRequest(method="GET", path="/api/doctors", body={"ignored": True})))
        assert seen["content"] == b""

    def test_headers_forwarded_through_client(self, store: SecureCredentialStore):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json=[])

        client = ApiClient(_backend(handler), store)
        _run(client.set_auth_token("tok"))
        _run(client.get(Endpoint.DOCTORS))
        assert seen["authorization"] == "Bearer tok"
        assert seen["content-type"] == "application/json"


class TestFailures:
    def test_error_message_from_body(self):
        backend = _backend(lambda r: httpx.Response(401, json={"message": "Invalid credentials"}))
        result = _run(backend.send(_get()))
        assert result.success is False
        assert result.error == "Invalid credentials"
        assert result.status_code == 401

    def test_error_field_used(self):
        backend = _backend(lambda r: httpx.Response(404, json={"error": "Doctor not found"}))
        assert _run(backend.send(_get())).error == "Doctor not found"

    def test_nested_error_message(self):
        backend = _backend(
            lambda r: httpx.Response(422, json={"error": {"message": "Bad date"}})
        )
        assert _run(backend.send(_get())).error == "Bad date"

    def test_default_error_message(self):
        backend = _backend(lambda r: httpx.Response(500, text="Internal Server Error"))
        result = _run(backend.send(_get()))
        assert result.error == DEFAULT_ERROR_MESSAGE
        assert result.status_code == 500

    def test_timeout_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = _run(_backend(handler).send(_get()))
        assert result.success is False
        assert result.error == "Request timed out after 5s"

    def test_connection_error_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = _run(_backend(handler).send(_get()))
        assert result.success is False
        assert result.error == "Network error: connection refused"


class TestClose:
    def test_injected_client_not_closed(self):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        backend = RemoteBackend(BASE_URL, http_client=http_client)
        _run(backend.close())
        assert http_client.is_closed is False

    def test_owned_client_closed(self):
        backend = RemoteBackend(BASE_URL)

        async def scenario():
            client = await backend._get_client()
            await backend.close()
            return client

        assert _run(scenario()).is_closed is True
