# social_service/api/notifications.py
from typing import List

from fastapi import APIRouter, Depends

from social_service.api.dependencies import (
    get_current_active_user,
    get_notification_interactor,
)
from social_service.infrastructure import schemas
from social_service.interactors.notification_interactor import NotificationInteractor

router = APIRouter()


@router.get("/", response_model=List[schemas.Notification])
async def read_notifications(
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await notification_interactor.get_notifications(current_user.id)


@router.get("/unread-count", response_model=schemas.UnreadCount)
async def read_unread_count(
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    count = await notification_interactor.get_unread_count(current_user.id)
    return schemas.UnreadCount(count=count)


@router.put("/read-all", response_model=schemas.Detail)
async def mark_all_read(
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    updated = await notification_interactor.mark_all_read(current_user.id)
    return schemas.Detail(message=f"Marked {updated} notifications as read")


@router.put("/{notification_id}/read", response_model=schemas.Notification)
async def mark_read(
    notification_id: int,
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await notification_interactor.mark_read(notification_id, current_user.id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: int,
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await notification_interactor.delete_notification(notification_id, current_user.id)


@router.delete("/", response_model=schemas.Detail)
async def clear_notifications(
    notification_interactor: NotificationInteractor = Depends(
        get_notification_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    deleted = await notification_interactor.clear(current_user.id)
    return schemas.Detail(message=f"Deleted {deleted} notifications")
