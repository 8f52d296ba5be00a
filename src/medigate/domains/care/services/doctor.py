"""Doctor catalog service."""

from __future__ import annotations

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import Doctor, parse_list


class DoctorService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_doctors(self) -> ApiResult:
        result = await self._client.get(Endpoint.DOCTORS)
        return result.map(lambda data: parse_list(Doctor.from_dict, data))

    async def get_doctor_by_id(self, doctor_id: int) -> ApiResult:
        result = await self._client.get(Endpoint.DOCTOR_BY_ID, {"id": doctor_id})
        return result.map(Doctor.from_dict)

    async def search_by_specialty(self, specialty: str) -> ApiResult:
        """Doctors whose specialty contains ``specialty``, case-insensitively."""
        needle = specialty.lower()
        result = await self.get_all_doctors()
        return result.map(lambda doctors: [d for d in doctors if needle in d.specialty.lower()])

    async def search_by_name(self, name: str) -> ApiResult:
        needle = name.lower()
        result = await self.get_all_doctors()
        return result.map(lambda doctors: [d for d in doctors if needle in d.name.lower()])
