# social_service/gateways/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from social_service.infrastructure import schemas
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UoWModel


class IUserGateway(ABC):
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        pass

    @abstractmethod
    async def get_existing_ids(self, user_ids: List[int]) -> set[int]:
        pass

    @abstractmethod
    async def get_friend_ids(self, user_id: int) -> List[int]:
        pass

    @abstractmethod
    async def get_friends(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def are_friends(self, user_id: int, other_user_id: int) -> bool:
        pass

    @abstractmethod
    async def add_friendship(self, user_id: int, other_user_id: int) -> None:
        pass


class IDirectMessageGateway(ABC):
    @abstractmethod
    async def get_message(self, message_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_message(
        self, message: schemas.DirectMessageCreate, sender_id: int
    ) -> UoWModel:
        pass

    @abstractmethod
    async def reload(self, message_id: int) -> UoWModel:
        pass

    @abstractmethod
    async def get_conversation(
        self, user_id: int, friend_id: int, skip: int = 0, limit: int = 50
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def count_conversation(self, user_id: int, friend_id: int) -> int:
        pass

    @abstractmethod
    async def count_unread(self, receiver_id: int, sender_id: int) -> int:
        pass

    @abstractmethod
    async def mark_read(self, message_id: int, receiver_id: int) -> bool:
        pass


class IGroupGateway(ABC):
    @abstractmethod
    async def get_group(self, group_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_groups_for_user(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def create_group(
        self, group: schemas.GroupCreate, creator_id: int
    ) -> UoWModel:
        pass

    @abstractmethod
    def add_member(self, group: UoWModel, user_id: int, role: str = "member") -> None:
        pass

    @abstractmethod
    def remove_member(self, group: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    def set_role(self, group: UoWModel, user_id: int, role: str) -> bool:
        pass

    @abstractmethod
    def upsert_mute(
        self,
        group: UoWModel,
        user_id: int,
        muted_by: int,
        muted_until: Optional[datetime],
        reason: Optional[str],
    ) -> None:
        pass

    @abstractmethod
    def remove_mute(self, group: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    def remove_expired_mutes(self, group: UoWModel, now: datetime) -> List[int]:
        pass

    @abstractmethod
    def add_ban(
        self, group: UoWModel, user_id: int, banned_by: int, reason: Optional[str]
    ) -> None:
        pass

    @abstractmethod
    def remove_ban(self, group: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    def touch_activity(self, group: UoWModel, when: datetime) -> None:
        pass

    @abstractmethod
    async def discover(
        self, user_id: int, search: Optional[str] = None, limit: int = 20
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def get_invitations_for(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    def update_settings(self, group: UoWModel, changes: dict) -> None:
        pass

    @abstractmethod
    def delete_group(self, group: UoWModel) -> None:
        pass

    @abstractmethod
    def add_join_request(
        self, group: UoWModel, user_id: int, message: Optional[str]
    ) -> None:
        pass

    @abstractmethod
    def remove_join_request(self, group: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    def add_invitation(
        self, group: UoWModel, user_id: int, invited_by: int, message: Optional[str]
    ) -> None:
        pass

    @abstractmethod
    def remove_invitation(self, group: UoWModel, user_id: int) -> Any:
        pass


class IGroupMessageGateway(ABC):
    @abstractmethod
    async def get_message(self, message_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_message(
        self, message: schemas.GroupMessageCreate, sender_id: int
    ) -> UoWModel:
        pass

    @abstractmethod
    async def reload(self, message_id: int) -> UoWModel:
        pass

    @abstractmethod
    async def get_page(
        self, group_id: int, skip: int = 0, limit: int = 50
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def count(self, group_id: int) -> int:
        pass


class INotificationGateway(ABC):
    @abstractmethod
    async def create(
        self,
        recipient_id: int,
        sender_id: Optional[int],
        type: str,
        message: str,
        link: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UoWModel:
        pass

    @abstractmethod
    async def reload(self, notification_id: int) -> UoWModel:
        pass

    @abstractmethod
    async def get(self, notification_id: int, recipient_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def list_for(self, recipient_id: int, limit: int = 50) -> List[UoWModel]:
        pass

    @abstractmethod
    async def count_unread(self, recipient_id: int) -> int:
        pass

    @abstractmethod
    async def mark_all_read(self, recipient_id: int) -> int:
        pass

    @abstractmethod
    async def delete_all(self, recipient_id: int) -> int:
        pass
