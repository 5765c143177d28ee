# social_service/infrastructure/event_handlers.py
import json
from typing import Any

from social_service.domain.events import (
    DirectMessageCreated,
    DirectMessageRead,
    GroupMemberModerated,
    GroupMessageCreated,
    NotificationCreated,
)


class EventHandlers:
    def __init__(self, redis_client):
        self.redis_client = redis_client

    async def _publish(self, channel_name: str, data: dict[str, Any]) -> None:
        await self.redis_client.publish(channel_name, json.dumps(data, default=str))

    async def publish_direct_message_created(self, event: DirectMessageCreated):
        message_data = event.model_dump()
        message_data["id"] = message_data.pop("message_id")
        await self._publish(f"user:{event.receiver_id}:messages", message_data)

    async def publish_direct_message_read(self, event: DirectMessageRead):
        await self._publish(
            f"user:{event.sender_id}:messages:read",
            {
                "message_id": event.message_id,
                "reader_id": event.receiver_id,
            },
        )

    async def publish_group_message_created(self, event: GroupMessageCreated):
        message_data = event.model_dump()
        message_data["id"] = message_data.pop("message_id")
        await self._publish(f"group:{event.group_id}", message_data)

    async def publish_group_member_moderated(self, event: GroupMemberModerated):
        await self._publish(f"group:{event.group_id}:moderation", event.model_dump())

    async def publish_notification_created(self, event: NotificationCreated):
        notification_data = event.model_dump()
        notification_data["id"] = notification_data.pop("notification_id")
        await self._publish(
            f"user:{event.recipient_id}:notifications", notification_data
        )

    def register_all(self, dispatcher) -> None:
        dispatcher.register(
            "DirectMessageCreated", self.publish_direct_message_created
        )
        dispatcher.register("DirectMessageRead", self.publish_direct_message_read)
        dispatcher.register("GroupMessageCreated", self.publish_group_message_created)
        dispatcher.register(
            "GroupMemberModerated", self.publish_group_member_moderated
        )
        dispatcher.register("NotificationCreated", self.publish_notification_created)
