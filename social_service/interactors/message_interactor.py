# social_service/interactors/message_interactor.py
import math

from social_service.domain.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationFailure,
)
from social_service.domain.events import DirectMessageCreated, DirectMessageRead, UserInfo
from social_service.domain.timeutils import utcnow
from social_service.gateways.interfaces import IDirectMessageGateway, IUserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.uow import UnitOfWork


class DirectMessageInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        message_gateway: IDirectMessageGateway,
        user_gateway: IUserGateway,
        event_dispatcher: EventDispatcher | None = None,
        max_length: int = 1000,
    ):
        self.uow = uow
        self.message_gateway = message_gateway
        self.user_gateway = user_gateway
        self.event_dispatcher = event_dispatcher
        self.max_length = max_length

    def _clean(self, message: schemas.DirectMessageCreate) -> schemas.DirectMessageCreate:
        if message.message_type == "text":
            content = (message.content or "").strip()
            if not content:
                raise ValidationFailure("Message content cannot be empty")
            if len(content) > self.max_length:
                raise ValidationFailure(
                    f"Message cannot exceed {self.max_length} characters"
                )
            return message.model_copy(update={"content": content})
        if not message.media_url:
            raise ValidationFailure(f"A {message.message_type} message needs a media_url")
        return message

    async def send_message(
        self, sender_id: int, message: schemas.DirectMessageCreate
    ) -> schemas.DirectMessage:
        """Persist a direct message between friends and commit it.

        Friendship is read from the store on every call, never cached.
        """
        if not await self.user_gateway.are_friends(sender_id, message.receiver_id):
            raise AuthorizationError("You can only send messages to friends")
        message = self._clean(message)

        created = await self.message_gateway.create_message(message, sender_id)
        await self.uow.commit()
        stored = await self.message_gateway.reload(created.id)
        result = schemas.DirectMessage.model_validate(stored._model)

        if self.event_dispatcher is not None:
            await self.event_dispatcher.dispatch(
                DirectMessageCreated(
                    message_id=result.id,
                    sender_id=result.sender_id,
                    receiver_id=result.receiver_id,
                    content=result.content,
                    message_type=result.message_type,
                    created_at=result.created_at,
                    sender=UserInfo(id=result.sender.id, username=result.sender.username),
                )
            )
        return result

    async def mark_read(
        self, message_id: int, user_id: int
    ) -> tuple[schemas.DirectMessage, bool]:
        """Flip the read flag; the bool is False when it was already set."""
        message = await self.message_gateway.get_message(message_id)
        if message is None or message.is_deleted:
            raise NotFoundError("Message not found")
        if message.receiver_id != user_id:
            raise AuthorizationError("Only the receiver can mark a message as read")
        if message.is_read:
            return schemas.DirectMessage.model_validate(message._model), False

        # two devices can race here; only the conditional update that wins reports a change
        changed = await self.message_gateway.mark_read(message_id, user_id)
        await self.uow.commit()
        message = await self.message_gateway.reload(message_id)
        result = schemas.DirectMessage.model_validate(message._model)
        if not changed:
            return result, False

        if self.event_dispatcher is not None:
            await self.event_dispatcher.dispatch(
                DirectMessageRead(
                    message_id=result.id,
                    sender_id=result.sender_id,
                    receiver_id=result.receiver_id,
                )
            )
        return result, True

    async def get_conversation(
        self, user_id: int, friend_id: int, page: int = 1, limit: int = 50
    ) -> schemas.ConversationPage:
        if await self.user_gateway.get_user(friend_id) is None:
            raise NotFoundError("User not found")
        skip = (page - 1) * limit
        messages = await self.message_gateway.get_conversation(
            user_id, friend_id, skip, limit
        )
        total = await self.message_gateway.count_conversation(user_id, friend_id)
        return schemas.ConversationPage(
            messages=[schemas.DirectMessage.model_validate(m._model) for m in messages],
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        )

    async def get_unread_count(self, user_id: int, friend_id: int) -> int:
        return await self.message_gateway.count_unread(user_id, friend_id)

    async def delete_message(self, message_id: int, user_id: int) -> schemas.DirectMessage:
        message = await self.message_gateway.get_message(message_id)
        if message is None or message.is_deleted:
            raise NotFoundError("Message not found")
        if message.sender_id != user_id:
            raise AuthorizationError("You can only delete your own messages")
        message.is_deleted = True
        message.deleted_at = utcnow()
        await self.uow.commit()
        return schemas.DirectMessage.model_validate(message._model)
