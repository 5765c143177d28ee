# social_service/interactors/moderation_interactor.py
from datetime import timedelta

from social_service.domain.errors import AuthorizationError, ConflictError, NotFoundError
from social_service.domain.events import GroupMemberModerated
from social_service.domain.moderation import (
    GroupRole,
    ModerationAction,
    SanctionLift,
    authorize,
    authorize_lift,
    has_at_least,
    rank,
)
from social_service.domain.timeutils import utcnow
from social_service.gateways.interfaces import IGroupGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.uow import UnitOfWork, UoWModel
from social_service.interactors.membership_interactor import (
    MembershipResolver,
    is_banned_in,
    role_of,
)
from social_service.interactors.notification_interactor import NotificationInteractor
from social_service.realtime.registry import ConnectionRegistry, group_room


class ModerationInteractor:
    """Ban, mute, kick and role changes, all decided by the moderation policy.

    Each action commits before anything is announced: the target gets a
    notification, out-of-process consumers get a GroupMemberModerated event,
    and banned or kicked users lose their subscription to the group room.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        group_gateway: IGroupGateway,
        membership: MembershipResolver,
        notifications: NotificationInteractor,
        registry: ConnectionRegistry | None = None,
        event_dispatcher: EventDispatcher | None = None,
    ):
        self.uow = uow
        self.group_gateway = group_gateway
        self.membership = membership
        self.notifications = notifications
        self.registry = registry
        self.event_dispatcher = event_dispatcher

    async def _load(self, group_id: int, actor_id: int) -> tuple[UoWModel, GroupRole]:
        return await self.membership.require_member(group_id, actor_id)

    @staticmethod
    def _target_role(group: UoWModel, target_id: int) -> GroupRole:
        role = role_of(group, target_id)
        if role is None:
            raise NotFoundError("Member not found")
        return role

    async def _announce(
        self,
        group: UoWModel,
        actor_id: int,
        target_id: int,
        action: str,
        notification_type: schemas.NotificationType,
        message: str,
        detail: dict | None = None,
    ) -> None:
        await self.notifications.enqueue(
            target_id,
            actor_id,
            notification_type,
            message,
            link=f"/groups/{group.id}",
            metadata={"groupId": group.id, "groupName": group.name},
        )
        if self.event_dispatcher is not None:
            await self.event_dispatcher.dispatch(
                GroupMemberModerated(
                    group_id=group.id,
                    actor_id=actor_id,
                    target_id=target_id,
                    action=action,
                    detail=detail or {},
                )
            )

    async def _evict(self, group: UoWModel, target_id: int, event: str) -> None:
        if self.registry is None:
            return
        await self.registry.evict_user(group_room(group.id), target_id)
        await self.registry.send(
            target_id, event, {"groupId": group.id, "groupName": group.name}
        )

    async def ban(
        self, group_id: int, actor_id: int, target_id: int, reason: str | None = None
    ) -> schemas.BannedMember:
        group, actor_role = await self._load(group_id, actor_id)
        if is_banned_in(group, target_id):
            raise ConflictError("User is already banned from this group")
        target_role = self._target_role(group, target_id)
        authorize(
            ModerationAction.BAN, actor_role, target_role, is_self=actor_id == target_id
        )

        self.group_gateway.remove_member(group, target_id)
        self.group_gateway.remove_mute(group, target_id)
        self.group_gateway.add_ban(group, target_id, actor_id, reason)
        await self.uow.commit()
        await self._evict(group, target_id, "group_banned")

        ban = next(b for b in group.bans if b.user_id == target_id)
        message = f"You have been banned from {group.name}"
        if reason:
            message += f": {reason}"
        await self._announce(
            group,
            actor_id,
            target_id,
            ModerationAction.BAN.value,
            schemas.NotificationType.GROUP_BANNED,
            message,
            {"reason": reason},
        )
        return schemas.BannedMember.model_validate(ban)

    async def unban(self, group_id: int, actor_id: int, target_id: int) -> None:
        group, actor_role = await self._load(group_id, actor_id)
        authorize_lift(SanctionLift.UNBAN, actor_role)
        if not self.group_gateway.remove_ban(group, target_id):
            raise NotFoundError("User is not banned from this group")
        await self.uow.commit()

        await self._announce(
            group,
            actor_id,
            target_id,
            SanctionLift.UNBAN.value,
            schemas.NotificationType.GROUP_UNBANNED,
            f"You have been unbanned from {group.name}",
        )

    async def mute(
        self,
        group_id: int,
        actor_id: int,
        target_id: int,
        duration_minutes: int | None = None,
        reason: str | None = None,
    ) -> schemas.MutedMember:
        group, actor_role = await self._load(group_id, actor_id)
        target_role = self._target_role(group, target_id)
        authorize(
            ModerationAction.MUTE, actor_role, target_role, is_self=actor_id == target_id
        )

        muted_until = (
            utcnow() + timedelta(minutes=duration_minutes) if duration_minutes else None
        )
        self.group_gateway.upsert_mute(group, target_id, actor_id, muted_until, reason)
        await self.uow.commit()

        mute = next(m for m in group.mutes if m.user_id == target_id)
        span = f"for {duration_minutes} minutes" if duration_minutes else "indefinitely"
        await self._announce(
            group,
            actor_id,
            target_id,
            ModerationAction.MUTE.value,
            schemas.NotificationType.GROUP_MUTED,
            f"You have been muted in {group.name} {span}",
            {
                "until": muted_until.isoformat() if muted_until else None,
                "reason": reason,
            },
        )
        return schemas.MutedMember.model_validate(mute)

    async def unmute(self, group_id: int, actor_id: int, target_id: int) -> None:
        group, actor_role = await self._load(group_id, actor_id)
        authorize_lift(SanctionLift.UNMUTE, actor_role)
        if not self.group_gateway.remove_mute(group, target_id):
            raise NotFoundError("User is not muted in this group")
        await self.uow.commit()

        await self._announce(
            group,
            actor_id,
            target_id,
            SanctionLift.UNMUTE.value,
            schemas.NotificationType.GROUP_UNMUTED,
            f"You have been unmuted in {group.name}",
        )

    async def _remove(
        self,
        group_id: int,
        actor_id: int,
        target_id: int,
        notification_type: schemas.NotificationType,
    ) -> UoWModel:
        group, actor_role = await self._load(group_id, actor_id)
        target_role = self._target_role(group, target_id)
        authorize(
            ModerationAction.KICK, actor_role, target_role, is_self=actor_id == target_id
        )

        self.group_gateway.remove_member(group, target_id)
        self.group_gateway.remove_mute(group, target_id)
        await self.uow.commit()
        await self._evict(group, target_id, "group_kicked")

        await self._announce(
            group,
            actor_id,
            target_id,
            ModerationAction.KICK.value,
            notification_type,
            f"You have been removed from {group.name}",
        )
        return group

    async def kick(self, group_id: int, actor_id: int, target_id: int) -> None:
        await self._remove(
            group_id, actor_id, target_id, schemas.NotificationType.GROUP_KICKED
        )

    async def remove_member(
        self, group_id: int, actor_id: int, target_id: int
    ) -> schemas.Group:
        """Same rank rules as a kick; answers with the updated group."""
        await self._remove(
            group_id, actor_id, target_id, schemas.NotificationType.GROUP_REMOVED
        )
        group = await self.membership.load_group(group_id)
        return schemas.Group.model_validate(group._model)

    async def change_role(
        self,
        group_id: int,
        actor_id: int,
        target_id: int,
        new_role: GroupRole | str,
    ) -> schemas.GroupMember:
        new_role = GroupRole(new_role)
        group, actor_role = await self._load(group_id, actor_id)
        target_role = self._target_role(group, target_id)
        authorize(
            ModerationAction.CHANGE_ROLE,
            actor_role,
            target_role,
            is_self=actor_id == target_id,
            new_role=new_role,
        )
        if target_role is new_role:
            raise ConflictError(f"User is already a {new_role.value}")

        self.group_gateway.set_role(group, target_id, new_role.value)
        await self.uow.commit()

        promoted = rank(new_role) > rank(target_role)
        await self._announce(
            group,
            actor_id,
            target_id,
            ModerationAction.CHANGE_ROLE.value,
            schemas.NotificationType.GROUP_PROMOTED
            if promoted
            else schemas.NotificationType.GROUP_DEMOTED,
            f"You have been {'promoted' if promoted else 'demoted'} to "
            f"{new_role.value} in {group.name}",
            {"from": target_role.value, "to": new_role.value},
        )
        member = next(m for m in group.members if m.user_id == target_id)
        return schemas.GroupMember.model_validate(member)

    async def promote(
        self,
        group_id: int,
        actor_id: int,
        target_id: int,
        role: GroupRole | str = GroupRole.MODERATOR,
    ) -> schemas.GroupMember:
        return await self.change_role(group_id, actor_id, target_id, role)

    async def demote(
        self, group_id: int, actor_id: int, target_id: int
    ) -> schemas.GroupMember:
        return await self.change_role(group_id, actor_id, target_id, GroupRole.MEMBER)

    async def list_banned(
        self, group_id: int, actor_id: int
    ) -> list[schemas.BannedMember]:
        group, actor_role = await self._load(group_id, actor_id)
        if not has_at_least(actor_role, GroupRole.MODERATOR):
            raise AuthorizationError("Only moderators and above can view banned members")
        return [schemas.BannedMember.model_validate(ban) for ban in group.bans]

    async def list_muted(
        self, group_id: int, actor_id: int
    ) -> list[schemas.MutedMember]:
        return await self.membership.list_muted(group_id, actor_id)
