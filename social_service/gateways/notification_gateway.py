# social_service/gateways/notification_gateway.py
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import INotificationGateway
from social_service.infrastructure import models
from social_service.infrastructure.data_mappers import NotificationMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class NotificationGateway(INotificationGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Notification] = NotificationMapper(session)

    async def create(
        self,
        recipient_id: int,
        sender_id: int | None,
        type: str,
        message: str,
        link: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UoWModel:
        notification = models.Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            message=message,
            link=link,
            is_read=False,
            extra=metadata or {},
        )
        return self.uow.register_new(notification)

    async def reload(self, notification_id: int) -> UoWModel:
        stmt = (
            select(models.Notification)
            .filter(models.Notification.id == notification_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        notification = result.unique().scalar_one_or_none()
        if notification is None:
            raise LookupError(f"Notification {notification_id} vanished after commit")
        return UoWModel(notification, self.uow)

    async def get(self, notification_id: int, recipient_id: int) -> UoWModel | None:
        stmt = select(models.Notification).filter(
            models.Notification.id == notification_id,
            models.Notification.recipient_id == recipient_id,
        )
        result = await self.session.execute(stmt)
        notification = result.unique().scalar_one_or_none()
        return UoWModel(notification, self.uow) if notification else None

    async def list_for(self, recipient_id: int, limit: int = 50) -> list[UoWModel]:
        stmt = (
            select(models.Notification)
            .filter(models.Notification.recipient_id == recipient_id)
            .order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(n, self.uow) for n in result.unique().scalars().all()]

    async def count_unread(self, recipient_id: int) -> int:
        stmt = select(func.count(models.Notification.id)).filter(
            models.Notification.recipient_id == recipient_id,
            models.Notification.is_read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_all_read(self, recipient_id: int) -> int:
        stmt = (
            update(models.Notification)
            .where(
                models.Notification.recipient_id == recipient_id,
                models.Notification.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete_all(self, recipient_id: int) -> int:
        stmt = (
            delete(models.Notification)
            .where(models.Notification.recipient_id == recipient_id)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
