# social_service/interactors/group_message_interactor.py
import math

from social_service.domain.errors import (
    AuthorizationError,
    ModerationError,
    NotFoundError,
    ValidationFailure,
)
from social_service.domain.events import GroupMessageCreated
from social_service.domain.moderation import GroupRole, has_at_least
from social_service.domain.timeutils import utcnow
from social_service.gateways.interfaces import IGroupGateway, IGroupMessageGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.uow import UnitOfWork
from social_service.interactors.membership_interactor import MembershipResolver


class GroupMessageInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        group_message_gateway: IGroupMessageGateway,
        group_gateway: IGroupGateway,
        membership: MembershipResolver,
        event_dispatcher: EventDispatcher | None = None,
        max_length: int = 1000,
        page_size: int = 50,
    ):
        self.uow = uow
        self.group_message_gateway = group_message_gateway
        self.group_gateway = group_gateway
        self.membership = membership
        self.event_dispatcher = event_dispatcher
        self.max_length = max_length
        self.page_size = page_size

    def _clean(self, message: schemas.GroupMessageCreate) -> schemas.GroupMessageCreate:
        if message.message_type in ("text", "system"):
            text = (message.text or "").strip()
            if not text:
                raise ValidationFailure("Message text cannot be empty")
            if len(text) > self.max_length:
                raise ValidationFailure(
                    f"Message cannot exceed {self.max_length} characters"
                )
            return message.model_copy(update={"text": text})
        if not message.media_url:
            raise ValidationFailure(f"A {message.message_type} message needs a media_url")
        return message

    async def send_message(
        self, sender_id: int, message: schemas.GroupMessageCreate
    ) -> schemas.GroupMessageWithRole:
        """Check membership and mute state, then persist and touch lastActivity.

        The message row and the activity timestamp land in one commit. A
        rejected send writes nothing except the lazy removal of expired mutes.
        """
        group, role = await self.membership.require_member(message.group_id, sender_id)
        mute = await self.membership.mute_status_in(group, sender_id)
        if mute.muted:
            raise ModerationError(mute.describe())
        message = self._clean(message)

        created = await self.group_message_gateway.create_message(message, sender_id)
        self.group_gateway.touch_activity(group, utcnow())
        await self.uow.commit()

        stored = await self.group_message_gateway.reload(created.id)
        plain = schemas.GroupMessage.model_validate(stored._model)
        result = schemas.GroupMessageWithRole.model_validate(
            {
                **plain.model_dump(),
                "sender": {**plain.sender.model_dump(), "role": role},
            }
        )

        if self.event_dispatcher is not None:
            await self.event_dispatcher.dispatch(
                GroupMessageCreated(
                    message_id=result.id,
                    group_id=result.group_id,
                    sender_id=sender_id,
                    sender_role=role.value,
                    message_type=result.message_type,
                    text=result.text,
                    created_at=result.created_at,
                )
            )
        return result

    async def get_messages(
        self, group_id: int, user_id: int, page: int = 1
    ) -> schemas.GroupMessagePage:
        await self.membership.require_member(group_id, user_id)
        skip = (page - 1) * self.page_size
        messages = await self.group_message_gateway.get_page(
            group_id, skip, self.page_size
        )
        total = await self.group_message_gateway.count(group_id)
        return schemas.GroupMessagePage(
            messages=[schemas.GroupMessage.model_validate(m._model) for m in messages],
            page=page,
            total_pages=math.ceil(total / self.page_size) if total else 0,
            total_messages=total,
        )

    async def delete_message(
        self, group_id: int, message_id: int, user_id: int
    ) -> schemas.GroupMessage:
        group, role = await self.membership.require_member(group_id, user_id)
        message = await self.group_message_gateway.get_message(message_id)
        if message is None or message.group_id != group.id or message.is_deleted:
            raise NotFoundError("Message not found")
        if message.sender_id != user_id and not has_at_least(role, GroupRole.MODERATOR):
            raise AuthorizationError("Only the sender or a moderator can delete this message")
        message.is_deleted = True
        message.deleted_at = utcnow()
        await self.uow.commit()
        return schemas.GroupMessage.model_validate(message._model)
