"""Session aggregator: the signed-in user and every cached collection.

UI code reads state from here and calls its mutation methods. Mutations
go through the domain services and apply the server's returned entity to
the cache; nothing is updated optimistically and no exception reaches the
caller.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from medigate.core.api.result import ApiResult
from medigate.core.storage.database import LocalDatabase
from medigate.domains.care.models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    EmergencyContact,
    HealthRecord,
    Medication,
    Notification,
    Pharmacy,
    User,
)
from medigate.domains.care.services import CareServices
from medigate.domains.care.services.appointment import split_appointments

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "doctors",
    "appointments",
    "medications",
    "health_records",
    "notifications",
    "pharmacies",
    "emergency_contacts",
)


def _replace_by_id(items: list, item_id: Any, replacement: Any) -> list | None:
    """Copy of ``items`` with the element matching ``item_id`` replaced in place.

    Returns None when nothing matches.
    """
    for index, item in enumerate(items):
        if item.id == item_id:
            updated = list(items)
            updated[index] = replacement
            return updated
    return None


class SessionAggregator:
    """Holds session state and exposes the operations the UI needs.

    Usage::

        session = create_session()
        await session.start()          # silent restore
        if not session.is_authenticated:
            await session.login("demo@example.com", "secret")
        print(session.unread_notification_count)
        await session.close()
    """

    def __init__(self, services: CareServices, *, database: LocalDatabase | None = None) -> None:
        self.services = services
        self._database = database
        self._loading = 0

        self.user: User | None = None
        self.is_authenticated = False
        self.doctors: list[Doctor] = []
        self.appointments: list[Appointment] = []
        self.medications: list[Medication] = []
        self.health_records: list[HealthRecord] = []
        self.notifications: list[Notification] = []
        self.pharmacies: list[Pharmacy] = []
        self.emergency_contacts: list[EmergencyContact] = []

    @property
    def is_loading(self) -> bool:
        return self._loading > 0

    @contextmanager
    def _busy(self) -> Iterator[None]:
        self._loading += 1
        try:
            yield
        finally:
            self._loading -= 1

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Restore a session silently. Returns True if signed in."""
        with self._busy():
            try:
                result = await self.services.users.get_user()
            except Exception:
                logger.exception("Session restore failed")
                return False
            if not result.success:
                logger.info("No session to restore: %s", result.error)
                return False
            self._sign_in(result.data)
            await self.reload()
            return True

    async def login(self, email: str, password: str) -> bool:
        with self._busy():
            try:
                result = await self.services.users.login(email, password)
            except Exception:
                logger.exception("Login error")
                return False
            if not result.success:
                logger.info("Login rejected: %s", result.error)
                return False

            user = result.data.user
            if user is None:
                profile = await self._call("Profile fetch", self.services.users.get_user())
                if profile is None:
                    # The token is already stored; drop it so start() cannot restore it.
                    await self._discard_credentials()
                    return False
                user = profile.data
            self._sign_in(user)
            await self.reload()
            return True

    async def logout(self) -> None:
        """Sign out. Local state is reset even if the server call fails or raises."""
        with self._busy():
            try:
                result = await self.services.users.logout()
                if not result.success:
                    logger.warning("Server logout failed: %s", result.error)
            except Exception:
                logger.exception("Logout error")
            finally:
                self._reset()

    async def reload(self) -> None:
        """Refetch all seven collections concurrently.

        Each collection is replaced only by its own successful result;
        failures leave the previous value in place.
        """
        s = self.services
        results = await asyncio.gather(
            s.doctors.get_all_doctors(),
            s.appointments.get_all_appointments(),
            s.medications.get_all_medications(),
            s.health_records.get_all_records(),
            s.notifications.get_all_notifications(),
            s.pharmacies.get_all_pharmacies(),
            s.emergency.get_all_contacts(),
            return_exceptions=True,
        )
        for name, result in zip(COLLECTIONS, results):
            if isinstance(result, BaseException):
                logger.error("Error loading %s", name, exc_info=result)
            elif result.success and result.data is not None:
                setattr(self, name, result.data)
            else:
                logger.warning("Failed to load %s: %s", name, result.error)

    async def close(self) -> None:
        """Release HTTP resources and the local database."""
        if self.services.feedback is not None:
            await self.services.feedback.close()
        await self.services.client.close()
        if self._database is not None:
            self._database.close()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_user(self, updates: dict[str, Any]) -> bool:
        if self.user is None:
            return False
        with self._busy():
            result = await self._call("Update user", self.services.users.update_user(updates))
            if result is None:
                return False
            self.user = result.data
            return True

    async def mark_notification_as_read(self, notification_id: int) -> bool:
        result = await self._call(
            "Mark notification", self.services.notifications.mark_as_read(notification_id)
        )
        return result is not None and self._apply("notifications", notification_id, result.data)

    async def mark_all_notifications_as_read(self) -> bool:
        result = await self._call(
            "Mark all notifications", self.services.notifications.mark_all_as_read()
        )
        if result is None:
            return False
        for notification in self.notifications:
            notification.read = True
        return True

    async def mark_medication_as_taken(self, medication_id: int, day: str, at: str) -> bool:
        result = await self._call(
            "Mark medication",
            self.services.medications.mark_as_taken(medication_id, day, at),
        )
        return result is not None and self._apply("medications", medication_id, result.data)

    async def add_appointment(
        self, doctor_id: int, date: str, time: str, type: str, reason: str
    ) -> Appointment | None:
        with self._busy():
            result = await self._call(
                "Add appointment",
                self.services.appointments.create_appointment(doctor_id, date, time, type, reason),
            )
            if result is None:
                return None
            self.appointments = [*self.appointments, result.data]
            return result.data

    async def update_appointment(self, appointment_id: int, updates: dict[str, Any]) -> bool:
        with self._busy():
            result = await self._call(
                "Update appointment",
                self.services.appointments.update_appointment(appointment_id, updates),
            )
            return result is not None and self._apply("appointments", appointment_id, result.data)

    async def cancel_appointment(self, appointment_id: int) -> bool:
        return await self.update_appointment(
            appointment_id, {"status": AppointmentStatus.CANCELLED.value}
        )

    async def delete_appointment(self, appointment_id: int) -> bool:
        with self._busy():
            result = await self._call(
                "Delete appointment",
                self.services.appointments.delete_appointment(appointment_id),
            )
            if result is None:
                return False
            self.appointments = [a for a in self.appointments if a.id != appointment_id]
            return True

    # ------------------------------------------------------------------
    # Local lookups
    # ------------------------------------------------------------------

    def get_doctor_by_id(self, doctor_id: int) -> Doctor | None:
        return next((d for d in self.doctors if d.id == doctor_id), None)

    def get_medication_by_id(self, medication_id: int) -> Medication | None:
        return next((m for m in self.medications if m.id == medication_id), None)

    @property
    def unread_notification_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def upcoming_appointments(self, now: datetime | None = None) -> list[Appointment]:
        return split_appointments(self.appointments, now or datetime.now())[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _call(self, label: str, call) -> ApiResult | None:
        """Await ``call``; None on failure or exception (both logged)."""
        try:
            result = await call
        except Exception:
            logger.exception("%s error", label)
            return None
        if not result.success:
            logger.warning("%s failed: %s", label, result.error)
            return None
        return result

    def _apply(self, collection: str, item_id: Any, replacement: Any) -> bool:
        updated = _replace_by_id(getattr(self, collection), item_id, replacement)
        if updated is None:
            return False
        setattr(self, collection, updated)
        return True

    async def _discard_credentials(self) -> None:
        try:
            await self.services.users.logout()
        except Exception:
            logger.exception("Server logout failed while discarding credentials")

    def _sign_in(self, user: User) -> None:
        self.user = user
        self.is_authenticated = True

    def _reset(self) -> None:
        self.user = None
        self.is_authenticated = False
        for name in COLLECTIONS:
            setattr(self, name, [])
