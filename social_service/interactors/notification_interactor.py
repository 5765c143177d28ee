# social_service/interactors/notification_interactor.py
from typing import Any

from social_service.domain.errors import NotFoundError
from social_service.domain.events import NotificationCreated
from social_service.gateways.interfaces import INotificationGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.uow import UnitOfWork
from social_service.realtime.registry import ConnectionRegistry


class NotificationInteractor:
    """Notification sink: persist, push to live connections, publish."""

    def __init__(
        self,
        uow: UnitOfWork,
        notification_gateway: INotificationGateway,
        registry: ConnectionRegistry | None = None,
        event_dispatcher: EventDispatcher | None = None,
        page_size: int = 50,
    ):
        self.uow = uow
        self.notification_gateway = notification_gateway
        self.registry = registry
        self.event_dispatcher = event_dispatcher
        self.page_size = page_size

    async def enqueue(
        self,
        recipient_id: int,
        sender_id: int | None,
        type: schemas.NotificationType | str,
        message: str,
        link: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> schemas.Notification | None:
        if recipient_id == sender_id:
            return None

        created = await self.notification_gateway.create(
            recipient_id,
            sender_id,
            schemas.NotificationType(type).value,
            message,
            link,
            metadata,
        )
        await self.uow.commit()
        stored = await self.notification_gateway.reload(created.id)
        notification = schemas.Notification.model_validate(stored._model)

        if self.registry is not None:
            await self.registry.send(
                recipient_id, "new_notification", notification.model_dump(mode="json")
            )
        if self.event_dispatcher is not None:
            await self.event_dispatcher.dispatch(
                NotificationCreated(
                    notification_id=notification.id,
                    recipient_id=recipient_id,
                    sender_id=sender_id,
                    type=notification.type.value,
                    message=message,
                    link=link,
                )
            )
        return notification

    async def get_notifications(self, user_id: int) -> list[schemas.Notification]:
        notifications = await self.notification_gateway.list_for(
            user_id, self.page_size
        )
        return [schemas.Notification.model_validate(n._model) for n in notifications]

    async def get_unread_count(self, user_id: int) -> int:
        return await self.notification_gateway.count_unread(user_id)

    async def mark_read(self, notification_id: int, user_id: int) -> schemas.Notification:
        notification = await self.notification_gateway.get(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            await self.uow.commit()
        return schemas.Notification.model_validate(notification._model)

    async def mark_all_read(self, user_id: int) -> int:
        return await self.notification_gateway.mark_all_read(user_id)

    async def delete_notification(self, notification_id: int, user_id: int) -> None:
        notification = await self.notification_gateway.get(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        self.uow.register_deleted(notification)
        await self.uow.commit()

    async def clear(self, user_id: int) -> int:
        return await self.notification_gateway.delete_all(user_id)
