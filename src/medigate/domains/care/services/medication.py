"""Medication service: schedule, intake tracking and refill status."""

from __future__ import annotations

from datetime import date

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import Medication, parse_list


class MedicationService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_medications(self) -> ApiResult:
        result = await self._client.get(Endpoint.MEDICATIONS)
        return result.map(lambda data: parse_list(Medication.from_dict, data))

    async def get_medication_by_id(self, medication_id: int) -> ApiResult:
        result = await self._client.get(Endpoint.MEDICATION_BY_ID, {"id": medication_id})
        return result.map(Medication.from_dict)

    async def mark_as_taken(self, medication_id: int, day: str, at: str) -> ApiResult:
        """Record a dose. The server keeps each (day, time) at most once."""
        result = await self._client.post(
            Endpoint.MEDICATION_MARK_TAKEN,
            {"date": day, "time": at},
            {"id": medication_id},
        )
        return result.map(Medication.from_dict)

    async def get_active_medications(self, today: date | None = None) -> ApiResult:
        today = today or date.today()
        result = await self.get_all_medications()
        return result.map(lambda meds: [m for m in meds if m.is_active(today)])

    async def get_medications_needing_refill(self) -> ApiResult:
        result = await self.get_all_medications()
        return result.map(lambda meds: [m for m in meds if not m.available])
