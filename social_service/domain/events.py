# social_service/domain/events.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class Event(BaseModel):
    pass


class UserInfo(BaseModel):
    id: int
    username: str


class DirectMessageCreated(Event):
    message_id: int
    sender_id: int
    receiver_id: int
    content: str | None
    message_type: str
    created_at: datetime
    sender: UserInfo


class DirectMessageRead(Event):
    message_id: int
    sender_id: int
    receiver_id: int


class GroupMessageCreated(Event):
    message_id: int
    group_id: int
    sender_id: int
    sender_role: str
    message_type: str
    text: str | None
    created_at: datetime


class GroupMemberModerated(Event):
    group_id: int
    actor_id: int
    target_id: int
    action: str
    detail: dict[str, Any] = {}


class NotificationCreated(Event):
    notification_id: int
    recipient_id: int
    sender_id: int | None
    type: str
    message: str
    link: str | None = None
