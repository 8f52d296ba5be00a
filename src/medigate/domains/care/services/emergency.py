"""Emergency contact directory service."""

from __future__ import annotations

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import EmergencyContact, EmergencyContactType, parse_list


class EmergencyService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_contacts(self) -> ApiResult:
        result = await self._client.get(Endpoint.EMERGENCY_CONTACTS)
        return result.map(lambda data: parse_list(EmergencyContact.from_dict, data))

    async def get_contacts_by_type(self, contact_type: str | EmergencyContactType) -> ApiResult:
        """Contacts whose type equals ``contact_type``, case-insensitively."""
        if isinstance(contact_type, EmergencyContactType):
            contact_type = contact_type.value
        wanted = contact_type.lower()
        result = await self.get_all_contacts()
        return result.map(lambda items: [c for c in items if c.type.lower() == wanted])
