# social_service/gateways/message_gateway.py
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IDirectMessageGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import DirectMessageMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class DirectMessageGateway(IDirectMessageGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.DirectMessage] = DirectMessageMapper(session)

    @staticmethod
    def _between(user_id: int, friend_id: int):
        return or_(
            and_(
                models.DirectMessage.sender_id == user_id,
                models.DirectMessage.receiver_id == friend_id,
            ),
            and_(
                models.DirectMessage.sender_id == friend_id,
                models.DirectMessage.receiver_id == user_id,
            ),
        )

    async def get_message(self, message_id: int) -> UoWModel | None:
        stmt = (
            select(models.DirectMessage)
            .filter(models.DirectMessage.id == message_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        message = result.unique().scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def create_message(
        self, message: schemas.DirectMessageCreate, sender_id: int
    ) -> UoWModel:
        db_message = models.DirectMessage(
            sender_id=sender_id,
            receiver_id=message.receiver_id,
            content=message.content,
            message_type=message.message_type,
            media_url=message.media_url,
            media_public_id=message.media_public_id,
            is_read=False,
            is_deleted=False,
        )
        return self.uow.register_new(db_message)

    async def reload(self, message_id: int) -> UoWModel:
        message = await self.get_message(message_id)
        if message is None:
            raise LookupError(f"Direct message {message_id} vanished after commit")
        return message

    async def get_conversation(
        self, user_id: int, friend_id: int, skip: int = 0, limit: int = 50
    ) -> list[UoWModel]:
        stmt = (
            select(models.DirectMessage)
            .filter(
                self._between(user_id, friend_id),
                models.DirectMessage.is_deleted.is_(False),
            )
            .order_by(models.DirectMessage.created_at.desc(), models.DirectMessage.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        messages = list(result.unique().scalars().all())
        messages.reverse()
        return [UoWModel(message, self.uow) for message in messages]

    async def count_conversation(self, user_id: int, friend_id: int) -> int:
        stmt = select(func.count(models.DirectMessage.id)).filter(
            self._between(user_id, friend_id),
            models.DirectMessage.is_deleted.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_unread(self, receiver_id: int, sender_id: int) -> int:
        stmt = select(func.count(models.DirectMessage.id)).filter(
            models.DirectMessage.sender_id == sender_id,
            models.DirectMessage.receiver_id == receiver_id,
            models.DirectMessage.is_read.is_(False),
            models.DirectMessage.is_deleted.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, message_id: int, receiver_id: int) -> bool:
        """Set the read flag only if still unset; True for the one caller that flipped it."""
        stmt = (
            update(models.DirectMessage)
            .where(
                models.DirectMessage.id == message_id,
                models.DirectMessage.receiver_id == receiver_id,
                models.DirectMessage.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
