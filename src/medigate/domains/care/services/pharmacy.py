"""Pharmacy directory service."""

from __future__ import annotations

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import Pharmacy, parse_list


class PharmacyService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_pharmacies(self) -> ApiResult:
        result = await self._client.get(Endpoint.PHARMACIES)
        return result.map(lambda data: parse_list(Pharmacy.from_dict, data))

    async def get_pharmacy_by_id(self, pharmacy_id: int) -> ApiResult:
        result = await self._client.get(Endpoint.PHARMACY_BY_ID, {"id": pharmacy_id})
        return result.map(Pharmacy.from_dict)

    async def get_open_pharmacies(self) -> ApiResult:
        result = await self.get_all_pharmacies()
        return result.map(lambda items: [p for p in items if p.open])

    async def search_by_name(self, name: str) -> ApiResult:
        needle = name.lower()
        result = await self.get_all_pharmacies()
        return result.map(lambda items: [p for p in items if needle in p.name.lower()])
