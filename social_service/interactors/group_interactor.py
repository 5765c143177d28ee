# social_service/interactors/group_interactor.py
from social_service.domain.errors import (
    AuthorizationError,
    ConflictError,
    ModerationError,
    NotFoundError,
    ValidationFailure,
)
from social_service.domain.moderation import GroupPermission, GroupRole, require
from social_service.gateways.interfaces import IGroupGateway, IUserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.uow import UnitOfWork, UoWModel
from social_service.interactors.membership_interactor import (
    MembershipResolver,
    is_banned_in,
    role_of,
)
from social_service.interactors.notification_interactor import NotificationInteractor
from social_service.realtime.registry import ConnectionRegistry, group_room


class GroupInteractor:
    """Group lifecycle: creation, settings, joining, invitations and leaving.

    Rank-based sanctions live in ModerationInteractor. Whenever a user stops
    being a member here, their live connections leave the group room too.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        group_gateway: IGroupGateway,
        user_gateway: IUserGateway,
        membership: MembershipResolver,
        notifications: NotificationInteractor,
        registry: ConnectionRegistry | None = None,
    ):
        self.uow = uow
        self.group_gateway = group_gateway
        self.user_gateway = user_gateway
        self.membership = membership
        self.notifications = notifications
        self.registry = registry

    async def _snapshot(self, group_id: int) -> schemas.Group:
        # re-read so freshly added members come back with their user loaded
        group = await self.membership.load_group(group_id)
        return schemas.Group.model_validate(group._model)

    @staticmethod
    def _summary(group) -> schemas.GroupSummary:
        return schemas.GroupSummary(
            id=group.id,
            name=group.name,
            description=group.description,
            creator_id=group.creator_id,
            is_public=group.is_public,
            require_approval=group.require_approval,
            member_count=len(group.members),
            last_activity=group.last_activity,
        )

    @staticmethod
    def _admin_ids(group: UoWModel) -> list[int]:
        return [
            m.user_id
            for m in group.members
            if m.role in (GroupRole.CREATOR.value, GroupRole.ADMIN.value)
        ]

    async def _notify(
        self,
        recipient_id: int,
        sender_id: int | None,
        type: schemas.NotificationType,
        message: str,
        group: UoWModel,
        **extra,
    ) -> None:
        await self.notifications.enqueue(
            recipient_id,
            sender_id,
            type,
            message,
            link=f"/groups/{group.id}",
            metadata={"groupId": group.id, "groupName": group.name, **extra},
        )

    async def _username(self, user_id: int) -> str:
        user = await self.user_gateway.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.username

    @staticmethod
    def _ensure_room_for(group: UoWModel) -> None:
        if len(group.members) >= group.max_members:
            raise ValidationFailure("Group is full")

    def _admit(self, group: UoWModel, user_id: int) -> None:
        self.group_gateway.add_member(group, user_id)
        # pending requests and invitations are settled by becoming a member
        self.group_gateway.remove_join_request(group, user_id)
        self.group_gateway.remove_invitation(group, user_id)

    async def create_group(
        self, group: schemas.GroupCreate, creator_id: int
    ) -> schemas.Group:
        member_ids = [uid for uid in dict.fromkeys(group.member_ids) if uid != creator_id]
        existing = await self.user_gateway.get_existing_ids(member_ids)
        missing = [uid for uid in member_ids if uid not in existing]
        if missing:
            raise NotFoundError(f"Users not found: {missing}")

        created = await self.group_gateway.create_group(group, creator_id)
        await self.uow.commit()
        return await self._snapshot(created.id)

    async def get_groups(self, user_id: int) -> list[schemas.Group]:
        groups = await self.group_gateway.get_groups_for_user(user_id)
        return [schemas.Group.model_validate(group._model) for group in groups]

    async def get_group(self, group_id: int, user_id: int) -> schemas.Group:
        group, _ = await self.membership.require_member(group_id, user_id)
        return schemas.Group.model_validate(group._model)

    async def discover(
        self, user_id: int, search: str | None = None
    ) -> list[schemas.GroupSummary]:
        groups = await self.group_gateway.discover(user_id, search)
        return [self._summary(group) for group in groups]

    async def update_group(
        self, group_id: int, actor_id: int, update: schemas.GroupUpdate
    ) -> schemas.Group:
        group, role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.UPDATE_SETTINGS, role)

        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if changes:
            self.group_gateway.update_settings(group, changes)
            await self.uow.commit()
        return await self._snapshot(group.id)

    async def delete_group(self, group_id: int, actor_id: int) -> None:
        group, role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.DELETE_GROUP, role)

        member_ids = [m.user_id for m in group.members]
        payload = {"groupId": group.id, "groupName": group.name}
        self.group_gateway.delete_group(group)
        await self.uow.commit()

        if self.registry is not None:
            await self.registry.close_room(group_room(group_id))
            await self.registry.send_many(member_ids, "group_deleted", payload)

    async def add_member(
        self, group_id: int, actor_id: int, user_id: int
    ) -> schemas.Group:
        group, actor_role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.ADD_MEMBER, actor_role)
        if await self.user_gateway.get_user(user_id) is None:
            raise NotFoundError("User not found")
        if is_banned_in(group, user_id):
            raise ModerationError("This user is banned from the group")
        if role_of(group, user_id) is not None:
            raise ConflictError("User is already a member of this group")
        self._ensure_room_for(group)

        self._admit(group, user_id)
        await self.uow.commit()

        await self._notify(
            user_id,
            actor_id,
            schemas.NotificationType.GROUP_ADDED,
            f"You have been added to {group.name}",
            group,
        )
        return await self._snapshot(group.id)

    async def join_group(
        self, group_id: int, user_id: int, message: str | None = None
    ) -> schemas.JoinResult:
        """Public groups admit directly or queue a request; private ones need an invitation."""
        group = await self.membership.load_group(group_id)
        if role_of(group, user_id) is not None:
            raise ConflictError("You are already a member of this group")
        if is_banned_in(group, user_id):
            raise ModerationError("You are banned from this group")
        if any(r.user_id == user_id for r in group.join_requests):
            raise ConflictError("Join request already sent")
        self._ensure_room_for(group)

        if not group.is_public:
            if not any(inv.user_id == user_id for inv in group.invitations):
                raise AuthorizationError(
                    "This is a private group. You can only join via invitation."
                )
            joined = await self.accept_invitation(group_id, user_id)
            return schemas.JoinResult(
                message="Joined group successfully", requires_approval=False, group=joined
            )

        username = await self._username(user_id)
        if group.require_approval:
            self.group_gateway.add_join_request(group, user_id, message)
            await self.uow.commit()
            for admin_id in self._admin_ids(group):
                await self._notify(
                    admin_id,
                    user_id,
                    schemas.NotificationType.GROUP_JOIN_REQUEST,
                    f"{username} wants to join {group.name}",
                    group,
                    userId=user_id,
                )
            return schemas.JoinResult(message="Join request sent", requires_approval=True)

        self._admit(group, user_id)
        await self.uow.commit()
        for admin_id in self._admin_ids(group):
            await self._notify(
                admin_id,
                user_id,
                schemas.NotificationType.GROUP_JOIN,
                f"{username} joined {group.name}",
                group,
                userId=user_id,
            )
        return schemas.JoinResult(
            message="Joined group successfully",
            requires_approval=False,
            group=await self._snapshot(group.id),
        )

    async def list_join_requests(
        self, group_id: int, actor_id: int
    ) -> list[schemas.JoinRequest]:
        group, role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.REVIEW_JOIN_REQUESTS, role)
        return [schemas.JoinRequest.model_validate(r) for r in group.join_requests]

    async def accept_join_request(
        self, group_id: int, actor_id: int, user_id: int
    ) -> schemas.Group:
        group, role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.REVIEW_JOIN_REQUESTS, role)
        if not any(r.user_id == user_id for r in group.join_requests):
            raise NotFoundError("Join request not found")
        if is_banned_in(group, user_id):
            raise ModerationError("This user is banned from the group")
        self._ensure_room_for(group)

        self._admit(group, user_id)
        await self.uow.commit()

        await self._notify(
            user_id,
            actor_id,
            schemas.NotificationType.GROUP_REQUEST_ACCEPTED,
            f"Your request to join {group.name} was accepted!",
            group,
        )
        return await self._snapshot(group.id)

    async def reject_join_request(
        self, group_id: int, actor_id: int, user_id: int
    ) -> None:
        # the requester is not told
        group, role = await self.membership.require_member(group_id, actor_id)
        require(GroupPermission.REVIEW_JOIN_REQUESTS, role)
        if not self.group_gateway.remove_join_request(group, user_id):
            raise NotFoundError("Join request not found")
        await self.uow.commit()

    async def invite(
        self, group_id: int, actor_id: int, user_id: int, message: str | None = None
    ) -> None:
        group, role = await self.membership.require_member(group_id, actor_id)
        require(
            GroupPermission.INVITE,
            role,
            allow_member_invites=group.allow_member_invites,
        )
        if await self.user_gateway.get_user(user_id) is None:
            raise NotFoundError("User not found")
        if role_of(group, user_id) is not None:
            raise ConflictError("User is already a member of this group")
        if any(inv.user_id == user_id for inv in group.invitations):
            raise ConflictError("User is already invited")
        if is_banned_in(group, user_id):
            raise ModerationError("This user is banned from the group")
        self._ensure_room_for(group)

        self.group_gateway.add_invitation(group, user_id, actor_id, message)
        await self.uow.commit()

        await self._notify(
            user_id,
            actor_id,
            schemas.NotificationType.GROUP_INVITATION,
            f"You've been invited to join {group.name}",
            group,
        )

    async def accept_invitation(self, group_id: int, user_id: int) -> schemas.Group:
        group = await self.membership.load_group(group_id)
        invitation = next(
            (inv for inv in group.invitations if inv.user_id == user_id), None
        )
        if invitation is None:
            raise NotFoundError("Invitation not found")
        if role_of(group, user_id) is not None:
            raise ConflictError("You are already a member of this group")
        if is_banned_in(group, user_id):
            raise ModerationError("You are banned from this group")
        self._ensure_room_for(group)

        inviter_id = invitation.invited_by
        self._admit(group, user_id)
        await self.uow.commit()

        if inviter_id is not None:
            username = await self._username(user_id)
            await self._notify(
                inviter_id,
                user_id,
                schemas.NotificationType.GROUP_JOINED,
                f"{username} accepted your invitation to {group.name}",
                group,
            )
        return await self._snapshot(group.id)

    async def decline_invitation(self, group_id: int, user_id: int) -> None:
        group = await self.membership.load_group(group_id)
        if self.group_gateway.remove_invitation(group, user_id) is None:
            raise NotFoundError("Invitation not found")
        await self.uow.commit()

    async def get_invitations(self, user_id: int) -> list[schemas.Invitation]:
        invitations = await self.group_gateway.get_invitations_for(user_id)
        return [
            schemas.Invitation(
                group=self._summary(inv.group),
                invited_by=inv.invited_by,
                inviter=schemas.UserBasic.model_validate(inv.inviter)
                if inv.inviter is not None
                else None,
                message=inv.message,
                invited_at=inv.invited_at,
            )
            for inv in invitations
        ]

    async def leave_group(self, group_id: int, user_id: int) -> None:
        group, role = await self.membership.require_member(group_id, user_id)
        if role is GroupRole.CREATOR:
            raise ValidationFailure("The group creator cannot leave the group")
        self.group_gateway.remove_member(group, user_id)
        self.group_gateway.remove_mute(group, user_id)
        await self.uow.commit()

        if self.registry is not None:
            await self.registry.evict_user(group_room(group.id), user_id)
