# social_service/infrastructure/schemas.py
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from social_service.domain.moderation import GroupRole


class UserBase(BaseModel):
    username: str
    email: EmailStr


class UserBasic(BaseModel):
    id: int
    username: str
    profile_picture: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class User(UserBase):
    id: int
    profile_picture: str | None = None
    created_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class DirectMessage(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str | None = None
    message_type: str
    media_url: str | None = None
    media_public_id: str | None = None
    is_read: bool
    is_deleted: bool
    created_at: datetime
    sender: UserBasic
    receiver: UserBasic

    model_config = ConfigDict(from_attributes=True)


class DirectMessageCreate(BaseModel):
    receiver_id: int
    content: str | None = None
    message_type: Literal["text", "image", "video", "audio"] = "text"
    media_url: str | None = None
    media_public_id: str | None = None


class ConversationPage(BaseModel):
    messages: list[DirectMessage]
    page: int
    limit: int
    total: int
    pages: int


class UnreadCount(BaseModel):
    count: int


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=200)
    is_public: bool = False
    require_approval: bool = False
    allow_member_invites: bool = True
    member_ids: list[int] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    """Fields left out are kept as they are."""

    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=200)
    is_public: bool | None = None
    require_approval: bool | None = None
    allow_member_invites: bool | None = None


class GroupMember(BaseModel):
    user_id: int
    role: GroupRole
    nickname: str | None = None
    joined_at: datetime
    user: UserBasic

    model_config = ConfigDict(from_attributes=True)


class MutedMember(BaseModel):
    user_id: int
    muted_by: int | None = None
    muted_at: datetime
    muted_until: datetime | None = None
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BannedMember(BaseModel):
    user_id: int
    banned_by: int | None = None
    banned_at: datetime
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Group(BaseModel):
    id: int
    name: str
    description: str | None = None
    creator_id: int
    is_public: bool
    require_approval: bool = False
    allow_member_invites: bool = True
    max_members: int = 50
    last_activity: datetime
    created_at: datetime
    members: list[GroupMember] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class GroupSummary(BaseModel):
    id: int
    name: str
    description: str | None = None
    creator_id: int
    is_public: bool
    require_approval: bool = False
    member_count: int
    last_activity: datetime


class JoinRequestCreate(BaseModel):
    message: str | None = Field(None, max_length=200)


class JoinRequest(BaseModel):
    user_id: int
    message: str | None = None
    requested_at: datetime
    user: UserBasic

    model_config = ConfigDict(from_attributes=True)


class JoinResult(BaseModel):
    message: str
    requires_approval: bool
    group: Group | None = None


class InviteRequest(BaseModel):
    user_id: int
    message: str | None = Field(None, max_length=200)


class Invitation(BaseModel):
    group: GroupSummary
    invited_by: int | None = None
    inviter: UserBasic | None = None
    message: str | None = None
    invited_at: datetime


class GroupMessageCreate(BaseModel):
    group_id: int
    message_type: Literal["text", "image", "video", "voice", "file", "system"] = "text"
    text: str | None = None
    media_url: str | None = None
    media_public_id: str | None = None
    file_name: str | None = None


class GroupSender(UserBasic):
    role: GroupRole


class GroupMessage(BaseModel):
    id: int
    group_id: int
    sender_id: int
    message_type: str
    text: str | None = None
    media_url: str | None = None
    media_public_id: str | None = None
    file_name: str | None = None
    is_deleted: bool
    created_at: datetime
    sender: UserBasic

    model_config = ConfigDict(from_attributes=True)


class GroupMessageWithRole(GroupMessage):
    """A group message as broadcast: sender carries the role held at send time."""

    sender: GroupSender


class GroupMessagePage(BaseModel):
    messages: list[GroupMessage]
    page: int
    total_pages: int
    total_messages: int


class BanRequest(BaseModel):
    user_id: int
    reason: str | None = Field(None, max_length=200)


class MuteRequest(BaseModel):
    user_id: int
    duration: int | None = Field(None, ge=1, description="Minutes; omit for indefinite")
    reason: str | None = Field(None, max_length=200)


class MemberRequest(BaseModel):
    user_id: int


class PromoteRequest(BaseModel):
    user_id: int
    role: Literal["admin", "moderator"] = "moderator"


class NotificationType(str, Enum):
    NEW_MESSAGE = "new_message"
    GROUP_ADDED = "group_added"
    GROUP_BANNED = "group_banned"
    GROUP_UNBANNED = "group_unbanned"
    GROUP_MUTED = "group_muted"
    GROUP_UNMUTED = "group_unmuted"
    GROUP_KICKED = "group_kicked"
    GROUP_PROMOTED = "group_promoted"
    GROUP_DEMOTED = "group_demoted"
    GROUP_REMOVED = "group_removed"
    GROUP_JOIN = "group_join"
    GROUP_JOIN_REQUEST = "group_join_request"
    GROUP_REQUEST_ACCEPTED = "group_request_accepted"
    GROUP_INVITATION = "group_invitation"
    GROUP_JOINED = "group_joined"


class Notification(BaseModel):
    id: int
    recipient_id: int
    sender_id: int | None = None
    type: NotificationType
    message: str
    link: str | None = None
    is_read: bool
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("extra", "metadata")
    )
    created_at: datetime
    sender: UserBasic | None = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    expires_at: datetime
    user_id: int


class Detail(BaseModel):
    message: str
