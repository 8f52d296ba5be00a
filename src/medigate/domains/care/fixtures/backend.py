"""Fixture backend: serves ApiClient requests from an in-process dataset.

Acts as a tiny server over a private deep copy of a ``FixtureDataset``, so
mutations (mark-taken, updates, new appointments) persist for the life of
the backend instance and are visible to later reads.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from typing import Any, Callable

from medigate.core.api.backend import ApiRequest
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.fixtures.loader import FixtureDataset

logger = logging.getLogger(__name__)

DEFAULT_LATENCY = 0.3

Handler = Callable[[ApiRequest], ApiResult]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _find(items: list[dict[str, Any]], item_id: str | None) -> dict[str, Any] | None:
    if item_id is None:
        return None
    for item in items:
        if str(item.get("id")) == item_id:
            return item
    return None


def _body(request: ApiRequest) -> dict[str, Any]:
    return request.body if isinstance(request.body, dict) else {}


def _merge(target: dict[str, Any], updates: dict[str, Any]) -> None:
    """Shallow merge, one level deep for nested objects."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key].update(value)
        else:
            target[key] = value


class FixtureBackend:
    """In-process backend over the bundled fixture dataset.

    Usage::

        backend = FixtureBackend(load_fixture_dataset(), latency=0)
        client = ApiClient(backend, store)
    """

    def __init__(self, dataset: FixtureDataset, latency: float = DEFAULT_LATENCY) -> None:
        self._data = dataset.copy()
        self.latency = latency
        self._handlers: dict[Endpoint, Handler] = {
            Endpoint.USER: self._get_user,
            Endpoint.USER_LOGIN: self._login,
            Endpoint.USER_REGISTER: self._register,
            Endpoint.USER_LOGOUT: self._logout,
            Endpoint.USER_UPDATE: self._update_user,
            Endpoint.DOCTORS: self._lister("doctors"),
            Endpoint.DOCTOR_BY_ID: self._getter("doctors", "Doctor"),
            Endpoint.APPOINTMENTS: self._lister("appointments"),
            Endpoint.APPOINTMENT_BY_ID: self._getter("appointments", "Appointment"),
            Endpoint.APPOINTMENT_CREATE: self._create_appointment,
            Endpoint.APPOINTMENT_UPDATE: self._update_appointment,
            Endpoint.APPOINTMENT_DELETE: self._delete_appointment,
            Endpoint.MEDICATIONS: self._lister("medications"),
            Endpoint.MEDICATION_BY_ID: self._getter("medications", "Medication"),
            Endpoint.MEDICATION_MARK_TAKEN: self._mark_taken,
            Endpoint.HEALTH_RECORDS: self._lister("health_records"),
            Endpoint.HEALTH_RECORD_BY_ID: self._getter("health_records", "Health record"),
            Endpoint.NOTIFICATIONS: self._lister("notifications"),
            Endpoint.NOTIFICATION_MARK_READ: self._mark_read,
            Endpoint.NOTIFICATION_MARK_ALL_READ: self._mark_all_read,
            Endpoint.PHARMACIES: self._lister("pharmacies"),
            Endpoint.PHARMACY_BY_ID: self._getter("pharmacies", "Pharmacy"),
            Endpoint.EMERGENCY_CONTACTS: self._lister("emergency_contacts"),
            Endpoint.FEEDBACK_SUBMIT: self._submit_feedback,
            Endpoint.FEEDBACK_SYNC: self._submit_feedback,
            Endpoint.FEEDBACK_LIST: lambda request: ApiResult.ok([]),
        }

    @property
    def mode(self) -> str:
        return "fixture"

    @property
    def dataset(self) -> FixtureDataset:
        """The live dataset, including mutations made through this backend."""
        return self._data

    def resolve_url(self, path: str) -> str:
        return path

    async def send(self, request: ApiRequest) -> ApiResult:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        handler = self._handlers.get(request.endpoint) if request.endpoint else None
        if handler is None:
            logger.debug("No fixture handler for %s %s; echoing body", request.method, request.path)
            return ApiResult.ok(request.body)

        try:
            return handler(request)
        except Exception:
            logger.exception("Fixture handler failed for %s", request.endpoint.value)
            return ApiResult.fail("Local data error")

    async def close(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Generic handlers
    # ------------------------------------------------------------------

    def _lister(self, attr: str) -> Handler:
        def handler(request: ApiRequest) -> ApiResult:
            return ApiResult.ok(copy.deepcopy(getattr(self._data, attr)))

        return handler

    def _getter(self, attr: str, label: str) -> Handler:
        def handler(request: ApiRequest) -> ApiResult:
            item = _find(getattr(self._data, attr), request.url_params.get("id"))
            if item is None:
                return ApiResult.fail(f"{label} not found", status_code=404)
            return ApiResult.ok(copy.deepcopy(item))

        return handler

    # ------------------------------------------------------------------
    # Auth and user
    # ------------------------------------------------------------------

    def _get_user(self, request: ApiRequest) -> ApiResult:
        return ApiResult.ok(copy.deepcopy(self._data.user))

    def _login(self, request: ApiRequest) -> ApiResult:
        body = _body(request)
        if not body.get("email") or not body.get("password"):
            return ApiResult.fail("Invalid credentials", status_code=401)
        return ApiResult.ok(
            {"token": f"mock_token_{_now_ms()}", "user": copy.deepcopy(self._data.user)}
        )

    def _register(self, request: ApiRequest) -> ApiResult:
        body = _body(request)
        if not body.get("email") or not body.get("password"):
            return ApiResult.fail("Invalid credentials", status_code=400)
        profile = {k: v for k, v in body.items() if k not in ("password", "id")}
        _merge(self._data.user, profile)
        return self._login(request)

    def _logout(self, request: ApiRequest) -> ApiResult:
        return ApiResult.ok(None)

    def _update_user(self, request: ApiRequest) -> ApiResult:
        updates = _body(request).get("updates") or {}
        _merge(self._data.user, {k: v for k, v in updates.items() if k != "id"})
        return ApiResult.ok(copy.deepcopy(self._data.user))

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def _create_appointment(self, request: ApiRequest) -> ApiResult:
        body = _body(request)
        doctor = _find(self._data.doctors, str(body.get("doctorId")))
        if doctor is None:
            return ApiResult.fail("Doctor not found", status_code=404)

        next_id = max((a["id"] for a in self._data.appointments), default=0) + 1
        appointment = {
            **body,
            "id": next_id,
            "doctorId": doctor["id"],
            "doctorName": doctor.get("name", ""),
            "specialty": doctor.get("specialty", ""),
            "status": "scheduled",
        }
        self._data.appointments.append(appointment)
        return ApiResult.ok(copy.deepcopy(appointment), status_code=201)

    def _update_appointment(self, request: ApiRequest) -> ApiResult:
        appointment = _find(self._data.appointments, request.url_params.get("id"))
        if appointment is None:
            return ApiResult.fail("Appointment not found", status_code=404)
        _merge(appointment, {k: v for k, v in _body(request).items() if k != "id"})
        return ApiResult.ok(copy.deepcopy(appointment))

    def _delete_appointment(self, request: ApiRequest) -> ApiResult:
        appointment = _find(self._data.appointments, request.url_params.get("id"))
        if appointment is None:
            return ApiResult.fail("Appointment not found", status_code=404)
        self._data.appointments.remove(appointment)
        return ApiResult.ok(None)

    # ------------------------------------------------------------------
    # Medications and notifications
    # ------------------------------------------------------------------

    def _mark_taken(self, request: ApiRequest) -> ApiResult:
        medication = _find(self._data.medications, request.url_params.get("id"))
        if medication is None:
            return ApiResult.fail("Medication not found", status_code=404)
        body = _body(request)
        day, at = body.get("date"), body.get("time")
        if not day or not at:
            return ApiResult.fail("Both date and time are required", status_code=400)

        taken = medication.setdefault("taken", {})
        times = taken.setdefault(str(day), [])
        if at not in times:
            times.append(at)
        return ApiResult.ok(copy.deepcopy(medication))

    def _mark_read(self, request: ApiRequest) -> ApiResult:
        notification = _find(self._data.notifications, request.url_params.get("id"))
        if notification is None:
            return ApiResult.fail("Notification not found", status_code=404)
        notification["read"] = True
        return ApiResult.ok(copy.deepcopy(notification))

    def _mark_all_read(self, request: ApiRequest) -> ApiResult:
        for notification in self._data.notifications:
            notification["read"] = True
        return ApiResult.ok(None)

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def _submit_feedback(self, request: ApiRequest) -> ApiResult:
        logger.info("Feedback submitted (local mode)")
        return ApiResult.ok(
            {
                "id": f"local_feedback_{_now_ms()}",
                "message": "Feedback submitted successfully (local mode)",
            }
        )
