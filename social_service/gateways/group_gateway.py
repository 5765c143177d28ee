# social_service/gateways/group_gateway.py
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from social_service.domain.moderation import GroupRole
from social_service.domain.timeutils import as_utc, utcnow
from social_service.gateways.interfaces import IGroupGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import GroupMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class GroupGateway(IGroupGateway):
    """Reads and mutates the group record with its member, mute and ban lists.

    Mutating methods only stage changes on the unit of work; the caller
    commits, so several changes land in one transaction.
    """

    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Group] = GroupMapper(session)

    async def get_group(self, group_id: int) -> UoWModel | None:
        # moderation state can change between two events; always re-read
        stmt = (
            select(models.Group)
            .filter(models.Group.id == group_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        group = result.scalar_one_or_none()
        return UoWModel(group, self.uow) if group else None

    async def get_groups_for_user(self, user_id: int) -> list[UoWModel]:
        stmt = (
            select(models.Group)
            .filter(models.Group.members.any(models.GroupMember.user_id == user_id))
            .order_by(models.Group.last_activity.desc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(group, self.uow) for group in result.scalars().all()]

    async def create_group(
        self, group: schemas.GroupCreate, creator_id: int
    ) -> UoWModel:
        db_group = models.Group(
            name=group.name,
            description=group.description,
            creator_id=creator_id,
            is_public=group.is_public,
            require_approval=group.require_approval,
            allow_member_invites=group.allow_member_invites,
        )
        db_group.members.append(
            models.GroupMember(user_id=creator_id, role=GroupRole.CREATOR.value)
        )
        for member_id in dict.fromkeys(group.member_ids):
            if member_id != creator_id:
                db_group.members.append(
                    models.GroupMember(user_id=member_id, role=GroupRole.MEMBER.value)
                )
        return self.uow.register_new(db_group)

    @staticmethod
    def _find(entries, user_id: int):
        return next((entry for entry in entries if entry.user_id == user_id), None)

    def add_member(self, group: UoWModel, user_id: int, role: str = "member") -> None:
        group._model.members.append(models.GroupMember(user_id=user_id, role=role))
        self.uow.register_dirty(group)

    def remove_member(self, group: UoWModel, user_id: int) -> bool:
        member = self._find(group._model.members, user_id)
        if member is None:
            return False
        group._model.members.remove(member)
        self.uow.register_dirty(group)
        return True

    def set_role(self, group: UoWModel, user_id: int, role: str) -> bool:
        member = self._find(group._model.members, user_id)
        if member is None:
            return False
        member.role = role
        self.uow.register_dirty(group)
        return True

    def upsert_mute(
        self,
        group: UoWModel,
        user_id: int,
        muted_by: int,
        muted_until: datetime | None,
        reason: str | None,
    ) -> None:
        mute = self._find(group._model.mutes, user_id)
        if mute is None:
            mute = models.GroupMute(user_id=user_id)
            group._model.mutes.append(mute)
        mute.muted_by = muted_by
        mute.muted_at = utcnow()
        mute.muted_until = muted_until
        mute.reason = reason
        self.uow.register_dirty(group)

    def remove_mute(self, group: UoWModel, user_id: int) -> bool:
        mute = self._find(group._model.mutes, user_id)
        if mute is None:
            return False
        group._model.mutes.remove(mute)
        self.uow.register_dirty(group)
        return True

    def remove_expired_mutes(self, group: UoWModel, now: datetime) -> list[int]:
        expired = [
            mute
            for mute in group._model.mutes
            if mute.muted_until is not None and as_utc(mute.muted_until) <= now
        ]
        for mute in expired:
            group._model.mutes.remove(mute)
        if expired:
            self.uow.register_dirty(group)
        return [mute.user_id for mute in expired]

    def add_ban(
        self, group: UoWModel, user_id: int, banned_by: int, reason: str | None
    ) -> None:
        group._model.bans.append(
            models.GroupBan(user_id=user_id, banned_by=banned_by, reason=reason)
        )
        self.uow.register_dirty(group)

    def remove_ban(self, group: UoWModel, user_id: int) -> bool:
        ban = self._find(group._model.bans, user_id)
        if ban is None:
            return False
        group._model.bans.remove(ban)
        self.uow.register_dirty(group)
        return True

    def touch_activity(self, group: UoWModel, when: datetime) -> None:
        group.last_activity = when

    @staticmethod
    def member_count():
        return (
            select(func.count(models.GroupMember.id))
            .where(models.GroupMember.group_id == models.Group.id)
            .correlate(models.Group)
            .scalar_subquery()
        )

    async def discover(
        self, user_id: int, search: str | None = None, limit: int = 20
    ) -> list[UoWModel]:
        """Public groups the user is not in, biggest and liveliest first."""
        stmt = select(models.Group).filter(
            models.Group.is_public.is_(True),
            ~models.Group.members.any(models.GroupMember.user_id == user_id),
        )
        if search:
            pattern = f"%{search}%"
            stmt = stmt.filter(
                or_(
                    models.Group.name.ilike(pattern),
                    models.Group.description.ilike(pattern),
                )
            )
        stmt = stmt.order_by(
            self.member_count().desc(), models.Group.last_activity.desc()
        ).limit(limit)
        result = await self.session.execute(stmt)
        return [UoWModel(group, self.uow) for group in result.scalars().all()]

    async def get_invitations_for(self, user_id: int) -> list[UoWModel]:
        stmt = (
            select(models.GroupInvitation)
            .options(joinedload(models.GroupInvitation.group))
            .filter(models.GroupInvitation.user_id == user_id)
            .order_by(models.GroupInvitation.invited_at.desc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(inv, self.uow) for inv in result.unique().scalars().all()]

    def update_settings(self, group: UoWModel, changes: dict) -> None:
        for field, value in changes.items():
            setattr(group._model, field, value)
        self.uow.register_dirty(group)

    def delete_group(self, group: UoWModel) -> None:
        self.uow.register_deleted(group)

    def add_join_request(
        self, group: UoWModel, user_id: int, message: str | None
    ) -> None:
        group._model.join_requests.append(
            models.GroupJoinRequest(user_id=user_id, message=message)
        )
        self.uow.register_dirty(group)

    def remove_join_request(self, group: UoWModel, user_id: int) -> bool:
        request = self._find(group._model.join_requests, user_id)
        if request is None:
            return False
        group._model.join_requests.remove(request)
        self.uow.register_dirty(group)
        return True

    def add_invitation(
        self, group: UoWModel, user_id: int, invited_by: int, message: str | None
    ) -> None:
        group._model.invitations.append(
            models.GroupInvitation(
                user_id=user_id, invited_by=invited_by, message=message
            )
        )
        self.uow.register_dirty(group)

    def remove_invitation(self, group: UoWModel, user_id: int):
        """Drop the user's pending invitation and hand it back, or None."""
        invitation = self._find(group._model.invitations, user_id)
        if invitation is None:
            return None
        group._model.invitations.remove(invitation)
        self.uow.register_dirty(group)
        return invitation
