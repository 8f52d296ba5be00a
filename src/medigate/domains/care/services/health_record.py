"""Health record service."""

from __future__ import annotations

from datetime import date

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import HealthRecord, parse_date, parse_health_record, parse_list


def _record_date(record: HealthRecord) -> date:
    return parse_date(record.date) or date.min


class HealthRecordService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_records(self) -> ApiResult:
        result = await self._client.get(Endpoint.HEALTH_RECORDS)
        return result.map(lambda data: parse_list(parse_health_record, data))

    async def get_record_by_id(self, record_id: int) -> ApiResult:
        result = await self._client.get(Endpoint.HEALTH_RECORD_BY_ID, {"id": record_id})
        return result.map(parse_health_record)

    async def get_records_by_category(self, category: str) -> ApiResult:
        wanted = category.lower()
        result = await self.get_all_records()
        return result.map(lambda records: [r for r in records if r.category.lower() == wanted])

    async def get_records_by_type(self, record_type: str) -> ApiResult:
        needle = record_type.lower()
        result = await self.get_all_records()
        return result.map(lambda records: [r for r in records if needle in r.type.lower()])

    async def get_recent_records(self, limit: int = 5) -> ApiResult:
        """Newest first; undated records sort last."""
        result = await self.get_all_records()
        return result.map(
            lambda records: sorted(records, key=_record_date, reverse=True)[:limit]
        )
