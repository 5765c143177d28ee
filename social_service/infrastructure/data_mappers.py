# social_service/infrastructure/data_mappers.py

from typing import Protocol, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from social_service.infrastructure import models

ModelT_contra = TypeVar("ModelT_contra", contravariant=True)


class DataMapper(Protocol[ModelT_contra]):
    async def insert(self, model: ModelT_contra):
        raise NotImplementedError

    async def delete(self, model: ModelT_contra):
        raise NotImplementedError

    async def update(self, model: ModelT_contra):
        raise NotImplementedError


class SQLAlchemyMapper(DataMapper[ModelT_contra]):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model: ModelT_contra):
        self.session.add(model)
        await self.session.flush()

    async def delete(self, model: ModelT_contra):
        await self.session.delete(model)
        await self.session.flush()

    async def update(self, model: ModelT_contra):
        await self.session.merge(model)
        await self.session.flush()


class UserMapper(SQLAlchemyMapper[models.User]):
    pass


class DirectMessageMapper(SQLAlchemyMapper[models.DirectMessage]):
    pass


class GroupMapper(SQLAlchemyMapper[models.Group]):
    """Members, mutes and bans cascade from the group row."""


class GroupMessageMapper(SQLAlchemyMapper[models.GroupMessage]):
    pass


class NotificationMapper(SQLAlchemyMapper[models.Notification]):
    pass
