"""Appointment service: booking, changes and the upcoming/past split."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import Appointment, AppointmentStatus, parse_list


def split_appointments(
    appointments: list[Appointment], now: datetime
) -> tuple[list[Appointment], list[Appointment]]:
    """Partition into (upcoming, past).

    Upcoming means starting at or after ``now`` and not completed. Every
    appointment lands in exactly one side, in original order.
    """
    upcoming: list[Appointment] = []
    past: list[Appointment] = []
    for appointment in appointments:
        (upcoming if appointment.is_upcoming(now) else past).append(appointment)
    return upcoming, past


class AppointmentService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_appointments(self) -> ApiResult:
        result = await self._client.get(Endpoint.APPOINTMENTS)
        return result.map(lambda data: parse_list(Appointment.from_dict, data))

    async def get_appointment_by_id(self, appointment_id: int) -> ApiResult:
        result = await self._client.get(Endpoint.APPOINTMENT_BY_ID, {"id": appointment_id})
        return result.map(Appointment.from_dict)

    async def create_appointment(
        self,
        doctor_id: int,
        date: str,
        time: str,
        type: str,
        reason: str,
    ) -> ApiResult:
        body = {
            "doctorId": doctor_id,
            "date": date,
            "time": time,
            "type": type,
            "reason": reason,
        }
        result = await self._client.post(Endpoint.APPOINTMENT_CREATE, body)
        return result.map(Appointment.from_dict)

    async def update_appointment(self, appointment_id: int, updates: dict[str, Any]) -> ApiResult:
        """Send a partial update (wire field names, e.g. ``{"status": "cancelled"}``)."""
        result = await self._client.put(
            Endpoint.APPOINTMENT_UPDATE, updates, {"id": appointment_id}
        )
        return result.map(Appointment.from_dict)

    async def cancel_appointment(self, appointment_id: int) -> ApiResult:
        return await self.update_appointment(
            appointment_id, {"status": AppointmentStatus.CANCELLED.value}
        )

    async def delete_appointment(self, appointment_id: int) -> ApiResult:
        return await self._client.delete(Endpoint.APPOINTMENT_DELETE, {"id": appointment_id})

    async def get_upcoming_appointments(self, now: datetime | None = None) -> ApiResult:
        now = now or datetime.now()
        result = await self.get_all_appointments()
        return result.map(lambda items: split_appointments(items, now)[0])

    async def get_past_appointments(self, now: datetime | None = None) -> ApiResult:
        now = now or datetime.now()
        result = await self.get_all_appointments()
        return result.map(lambda items: split_appointments(items, now)[1])
