# social_service/infrastructure/models.py
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from social_service.domain.timeutils import utcnow
from social_service.infrastructure.database import Base

# one row per direction; friendship is mutual
friendships = Table(
    "friendships",
    Base.metadata,
    Column(
        "user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "friend_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String)
    profile_picture: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class DirectMessage(Base):
    __tablename__ = "direct_messages"

    __table_args__ = (
        Index("ix_direct_messages_pair_created", "sender_id", "receiver_id", "created_at"),
        Index("ix_direct_messages_receiver_read", "receiver_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), index=True
    )
    content: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    message_type: Mapped[str] = mapped_column(String, default="text")
    media_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    media_public_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="joined")
    receiver: Mapped[User] = relationship(
        "User", foreign_keys=[receiver_id], lazy="joined"
    )


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    max_members: Mapped[int] = mapped_column(Integer, default=50)
    # public groups only; private groups are joined by invitation
    require_approval: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_member_invites: Mapped[bool] = mapped_column(Boolean, default=True)
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    members: Mapped[List["GroupMember"]] = relationship(
        "GroupMember",
        back_populates="group",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="GroupMember.id",
    )
    mutes: Mapped[List["GroupMute"]] = relationship(
        "GroupMute",
        back_populates="group",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    bans: Mapped[List["GroupBan"]] = relationship(
        "GroupBan",
        back_populates="group",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    join_requests: Mapped[List["GroupJoinRequest"]] = relationship(
        "GroupJoinRequest",
        back_populates="group",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="GroupJoinRequest.id",
    )
    invitations: Mapped[List["GroupInvitation"]] = relationship(
        "GroupInvitation",
        back_populates="group",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="GroupInvitation.id",
    )


class GroupMember(Base):
    __tablename__ = "group_members"

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    role: Mapped[str] = mapped_column(String, default="member")
    nickname: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    group: Mapped[Group] = relationship("Group", back_populates="members")
    user: Mapped[User] = relationship("User", lazy="joined")


class GroupMute(Base):
    __tablename__ = "group_mutes"

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    muted_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    muted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # NULL means muted indefinitely
    muted_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    group: Mapped[Group] = relationship("Group", back_populates="mutes")


class GroupBan(Base):
    __tablename__ = "group_bans"

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    banned_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    banned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    group: Mapped[Group] = relationship("Group", back_populates="bans")


class GroupJoinRequest(Base):
    __tablename__ = "group_join_requests"

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    message: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    group: Mapped[Group] = relationship("Group", back_populates="join_requests")
    user: Mapped[User] = relationship("User", lazy="joined")


class GroupInvitation(Base):
    __tablename__ = "group_invitations"

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    invited_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    message: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    group: Mapped[Group] = relationship("Group", back_populates="invitations")
    inviter: Mapped[Optional[User]] = relationship(
        "User", foreign_keys=[invited_by], lazy="joined"
    )


class GroupMessage(Base):
    __tablename__ = "group_messages"

    __table_args__ = (
        Index("ix_group_messages_group_created", "group_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    message_type: Mapped[str] = mapped_column(String, default="text")
    text: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    media_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    media_public_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    sender: Mapped[User] = relationship("User", lazy="joined")


class Notification(Base):
    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_recipient_read", "recipient_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    recipient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    sender_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    type: Mapped[str] = mapped_column(String)
    message: Mapped[str] = mapped_column(String)
    link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    sender: Mapped[Optional[User]] = relationship(
        "User", foreign_keys=[sender_id], lazy="joined"
    )
