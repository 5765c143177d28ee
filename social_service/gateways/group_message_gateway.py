# social_service/gateways/group_message_gateway.py
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IGroupMessageGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import GroupMessageMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class GroupMessageGateway(IGroupMessageGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.GroupMessage] = GroupMessageMapper(session)

    async def get_message(self, message_id: int) -> UoWModel | None:
        stmt = (
            select(models.GroupMessage)
            .filter(models.GroupMessage.id == message_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        message = result.unique().scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def create_message(
        self, message: schemas.GroupMessageCreate, sender_id: int
    ) -> UoWModel:
        db_message = models.GroupMessage(
            group_id=message.group_id,
            sender_id=sender_id,
            message_type=message.message_type,
            text=message.text,
            media_url=message.media_url,
            media_public_id=message.media_public_id,
            file_name=message.file_name,
            is_deleted=False,
        )
        return self.uow.register_new(db_message)

    async def reload(self, message_id: int) -> UoWModel:
        message = await self.get_message(message_id)
        if message is None:
            raise LookupError(f"Group message {message_id} vanished after commit")
        return message

    async def get_page(
        self, group_id: int, skip: int = 0, limit: int = 50
    ) -> list[UoWModel]:
        stmt = (
            select(models.GroupMessage)
            .filter(
                models.GroupMessage.group_id == group_id,
                models.GroupMessage.is_deleted.is_(False),
            )
            .order_by(models.GroupMessage.created_at.desc(), models.GroupMessage.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        messages = list(result.unique().scalars().all())
        # newest page first, each page read oldest to newest
        messages.reverse()
        return [UoWModel(message, self.uow) for message in messages]

    async def count(self, group_id: int) -> int:
        stmt = select(func.count(models.GroupMessage.id)).filter(
            models.GroupMessage.group_id == group_id,
            models.GroupMessage.is_deleted.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
