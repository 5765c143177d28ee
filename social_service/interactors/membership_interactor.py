# social_service/interactors/membership_interactor.py
import math
from dataclasses import dataclass
from datetime import datetime

from social_service.domain.errors import AuthorizationError, GroupNotFound
from social_service.domain.moderation import GroupRole
from social_service.domain.timeutils import as_utc, utcnow
from social_service.gateways.interfaces import IGroupGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.uow import UnitOfWork, UoWModel


@dataclass(frozen=True)
class MuteStatus:
    muted: bool
    until: datetime | None = None

    @property
    def indefinite(self) -> bool:
        return self.muted and self.until is None

    def remaining_minutes(self, now: datetime | None = None) -> int | None:
        if not self.muted or self.until is None:
            return None
        seconds = (self.until - (now or utcnow())).total_seconds()
        return max(1, math.ceil(seconds / 60))

    def describe(self, now: datetime | None = None) -> str:
        if self.indefinite:
            return "You are muted in this group indefinitely"
        return (
            f"You are muted in this group for {self.remaining_minutes(now)} more minutes"
        )


def role_of(group: UoWModel, user_id: int) -> GroupRole | None:
    member = next((m for m in group.members if m.user_id == user_id), None)
    return GroupRole(member.role) if member else None


def is_banned_in(group: UoWModel, user_id: int) -> bool:
    return any(ban.user_id == user_id for ban in group.bans)


class MembershipResolver:
    """Answers membership, role, mute and ban questions from the stored group.

    Every call re-reads the group, since moderation may have changed it since
    the previous event. Expired mutes are removed as a side effect of reading
    mute state.
    """

    def __init__(self, uow: UnitOfWork, group_gateway: IGroupGateway):
        self.uow = uow
        self.group_gateway = group_gateway

    async def load_group(self, group_id: int) -> UoWModel:
        group = await self.group_gateway.get_group(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        return group

    async def get_membership(self, group_id: int, user_id: int) -> GroupRole | None:
        group = await self.load_group(group_id)
        return role_of(group, user_id)

    async def require_member(
        self, group_id: int, user_id: int
    ) -> tuple[UoWModel, GroupRole]:
        group = await self.load_group(group_id)
        role = role_of(group, user_id)
        if role is None:
            raise AuthorizationError("You are not a member of this group")
        return group, role

    async def clear_expired_mutes(
        self, group: UoWModel, now: datetime | None = None
    ) -> list[int]:
        lifted = self.group_gateway.remove_expired_mutes(group, now or utcnow())
        if lifted:
            await self.uow.commit()
        return lifted

    async def mute_status_in(
        self, group: UoWModel, user_id: int, now: datetime | None = None
    ) -> MuteStatus:
        now = now or utcnow()
        await self.clear_expired_mutes(group, now)
        mute = next((m for m in group.mutes if m.user_id == user_id), None)
        if mute is None:
            return MuteStatus(muted=False)
        return MuteStatus(muted=True, until=as_utc(mute.muted_until))

    async def get_mute_status(
        self, group_id: int, user_id: int, now: datetime | None = None
    ) -> MuteStatus:
        group = await self.load_group(group_id)
        return await self.mute_status_in(group, user_id, now)

    async def is_banned(self, group_id: int, user_id: int) -> bool:
        group = await self.load_group(group_id)
        return is_banned_in(group, user_id)

    async def list_muted(
        self, group_id: int, user_id: int, now: datetime | None = None
    ) -> list[schemas.MutedMember]:
        group, _ = await self.require_member(group_id, user_id)
        await self.clear_expired_mutes(group, now)
        return [schemas.MutedMember.model_validate(mute) for mute in group.mutes]
