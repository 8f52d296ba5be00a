"""Tests for the fixture dataset loader and FixtureBackend handlers."""

from __future__ import annotations

import asyncio

import pytest

from medigate.core.api.backend import ApiRequest
from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.domains.care.fixtures import (
    FixtureBackend,
    FixtureDataError,
    FixtureDataset,
    load_fixture_dataset,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestLoader:
    def test_bundled_dataset(self, dataset: FixtureDataset):
        assert dataset.user["email"] == "demo@example.com"
        assert len(dataset.doctors) == 4
        assert len(dataset.emergency_contacts) == 5
        assert all(isinstance(a["date"], str) for a in dataset.appointments)

    def test_missing_file_falls_back_to_demo(self, tmp_path):
        dataset = load_fixture_dataset(tmp_path / "nope.yaml")
        assert dataset.user == {"id": 1, "fullName": "Demo User", "email": "demo@example.com"}
        assert dataset.doctors == []

    def test_custom_file(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("user: {id: 9, fullName: Test}\ndoctors:\n  - {id: 1, name: Dr. X}\n")
        dataset = load_fixture_dataset(path)
        assert dataset.user["id"] == 9
        assert dataset.doctors == [{"id": 1, "name": "Dr. X"}]
        assert dataset.pharmacies == []

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("user: [unclosed\n")
        with pytest.raises(FixtureDataError, match="Invalid fixture YAML"):
            load_fixture_dataset(path)

    def test_missing_user_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("doctors: []\n")
        with pytest.raises(FixtureDataError, match="user"):
            load_fixture_dataset(path)

    def test_entry_without_id_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("user: {id: 1}\ndoctors:\n  - {name: Dr. X}\n")
        with pytest.raises(FixtureDataError, match="doctors"):
            load_fixture_dataset(path)


class TestReads:
    def test_doctors_list(self, client: ApiClient, dataset: FixtureDataset):
        result = _run(client.get(Endpoint.DOCTORS))
        assert result.success is True
        assert result.data == dataset.doctors

    def test_user(self, client: ApiClient):
        assert _run(client.get(Endpoint.USER)).data["fullName"] == "Sarah Johnson"

    def test_by_id(self, client: ApiClient):
        result = _run(client.get(Endpoint.DOCTOR_BY_ID, {"id": 2}))
        assert result.data["name"] == "Dr. James Patel"

    def test_by_id_not_found(self, client: ApiClient):
        result = _run(client.get(Endpoint.PHARMACY_BY_ID, {"id": 999}))
        assert result.success is False
        assert result.error == "Pharmacy not found"

    def test_returned_data_is_a_copy(self, client: ApiClient, fixture_backend: FixtureBackend):
        result = _run(client.get(Endpoint.DOCTORS))
        result.data[0]["name"] = "Changed"
        assert fixture_backend.dataset.doctors[0]["name"] == "Dr. Emily Carter"

    def test_backend_copies_dataset(self, dataset: FixtureDataset):
        backend = FixtureBackend(dataset, latency=0)
        backend.dataset.doctors.clear()
        assert len(dataset.doctors) == 4

    def test_unknown_endpoint_echoes_body(self, client: ApiClient):
        result = _run(client.post("/api/unlisted", {"hello": "world"}))
        assert result.success is True
        assert result.data == {"hello": "world"}

    def test_feedback_list_is_empty(self, client: ApiClient):
        assert _run(client.get(Endpoint.FEEDBACK_LIST)).data == []


class TestAuth:
    def test_login(self, client: ApiClient):
        result = _run(client.post(Endpoint.USER_LOGIN, {"email": "demo@example.com", "password": "x"}))
        assert result.success is True
        assert result.data["token"].startswith("mock_token_")
        assert result.data["user"]["email"] == "demo@example.com"

    @pytest.mark.parametrize("body", [{}, {"email": "a@b.c"}, {"password": "x"}, None])
    def test_login_requires_credentials(self, client: ApiClient, body):
        result = _run(client.post(Endpoint.USER_LOGIN, body))
        assert result.success is False
        assert result.error == "Invalid credentials"

    def test_register_updates_profile(self, client: ApiClient):
        body = {"email": "new@example.com", "password": "pw", "fullName": "New Person"}
        result = _run(client.post(Endpoint.USER_REGISTER, body))
        assert result.data["user"]["fullName"] == "New Person"
        assert "password" not in result.data["user"]

    def test_logout(self, client: ApiClient):
        result = _run(client.post(Endpoint.USER_LOGOUT, {}))
        assert result.success is True
        assert result.data is None

    def test_update_user_merges(self, client: ApiClient):
        updates = {"phone": "555", "preferences": {"darkMode": True}}
        result = _run(client.put(Endpoint.USER_UPDATE, {"updates": updates}))
        assert result.data["phone"] == "555"
        assert result.data["preferences"]["darkMode"] is True
        assert result.data["preferences"]["language"] == "English"
        assert _run(client.get(Endpoint.USER)).data["phone"] == "555"


class TestMutations:
    def test_create_appointment(self, client: ApiClient, fixture_backend: FixtureBackend):
        body = {"doctorId": 3, "date": "2027-05-01", "time": "10:00 AM", "type": "In-person", "reason": "Rash"}
        result = _run(client.post(Endpoint.APPOINTMENT_CREATE, body))
        assert result.success is True
        assert result.data["id"] == 5
        assert result.data["status"] == "scheduled"
        assert result.data["doctorName"] == "Dr. Laura Nguyen"
        assert result.data["specialty"] == "Dermatologist"
        assert len(fixture_backend.dataset.appointments) == 5

    def test_create_appointment_unknown_doctor(self, client: ApiClient):
        result = _run(client.post(Endpoint.APPOINTMENT_CREATE, {"doctorId": 99}))
        assert result.error == "Doctor not found"

    def test_update_and_delete_appointment(self, client: ApiClient):
        updated = _run(client.put(Endpoint.APPOINTMENT_UPDATE, {"status": "cancelled"}, {"id": 1}))
        assert updated.data["status"] == "cancelled"
        assert _run(client.delete(Endpoint.APPOINTMENT_DELETE, {"id": 1})).success is True
        missing = _run(client.get(Endpoint.APPOINTMENT_BY_ID, {"id": 1}))
        assert missing.error == "Appointment not found"

    def test_mark_taken_is_idempotent(self, client: ApiClient):
        body = {"date": "2026-10-19", "time": "09:00 AM"}
        first = _run(client.post(Endpoint.MEDICATION_MARK_TAKEN, body, {"id": 2}))
        second = _run(client.post(Endpoint.MEDICATION_MARK_TAKEN, body, {"id": 2}))
        assert first.data["taken"]["2026-10-19"] == ["09:00 AM"]
        assert second.data == first.data

    def test_mark_taken_requires_date_and_time(self, client: ApiClient):
        result = _run(client.post(Endpoint.MEDICATION_MARK_TAKEN, {"date": "2026-10-19"}, {"id": 2}))
        assert result.success is False

    def test_mark_read(self, client: ApiClient):
        result = _run(client.patch(Endpoint.NOTIFICATION_MARK_READ, {}, {"id": 1}))
        assert result.data["read"] is True

    def test_mark_all_read(self, client: ApiClient):
        _run(client.post(Endpoint.NOTIFICATION_MARK_ALL_READ, {}))
        notifications = _run(client.get(Endpoint.NOTIFICATIONS)).data
        assert all(n["read"] for n in notifications)

    @pytest.mark.parametrize("endpoint", [Endpoint.FEEDBACK_SUBMIT, Endpoint.FEEDBACK_SYNC])
    def test_feedback_accepted(self, client: ApiClient, endpoint: Endpoint):
        result = _run(client.post(endpoint, {"subject": "x"}))
        assert result.data["id"].startswith("local_feedback_")


class TestLatency:
    def test_latency_is_awaited(self, dataset: FixtureDataset, monkeypatch):
        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)

        monkeypatch.setattr("medigate.domains.care.fixtures.backend.asyncio.sleep", fake_sleep)
        backend = FixtureBackend(dataset, latency=0.3)

        _run(backend.send(ApiRequest(method="GET", path="/api/doctors", endpoint=Endpoint.DOCTORS)))
        assert slept == [0.3]

    def test_handler_error_becomes_failure(self, dataset: FixtureDataset):
        dataset.appointments.append({"id": "not-a-number"})
        backend = FixtureBackend(dataset, latency=0)

        request = ApiRequest(
            method="POST", path="/api/appointments/create",
            endpoint=Endpoint.APPOINTMENT_CREATE, body={"doctorId": 1},
        )
        result = _run(backend.send(request))
        assert result.success is False
        assert result.error == "Local data error"
