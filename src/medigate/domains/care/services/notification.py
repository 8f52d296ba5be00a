"""Notification service."""

from __future__ import annotations

from medigate.core.api.client import ApiClient
from medigate.core.api.endpoints import Endpoint
from medigate.core.api.result import ApiResult
from medigate.domains.care.models import Notification, parse_list


class NotificationService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all_notifications(self) -> ApiResult:
        result = await self._client.get(Endpoint.NOTIFICATIONS)
        return result.map(lambda data: parse_list(Notification.from_dict, data))

    async def mark_as_read(self, notification_id: int) -> ApiResult:
        result = await self._client.patch(
            Endpoint.NOTIFICATION_MARK_READ, {}, {"id": notification_id}
        )
        return result.map(Notification.from_dict)

    async def mark_all_as_read(self) -> ApiResult:
        return await self._client.post(Endpoint.NOTIFICATION_MARK_ALL_READ, {})

    async def get_unread_notifications(self) -> ApiResult:
        result = await self.get_all_notifications()
        return result.map(lambda items: [n for n in items if not n.read])

    async def get_unread_count(self) -> ApiResult:
        result = await self.get_unread_notifications()
        return result.map(len)
