# social_service/api/messages.py
from fastapi import APIRouter, Depends, Query

from social_service.api.dependencies import (
    get_current_active_user,
    get_message_interactor,
    get_registry,
)
from social_service.infrastructure import schemas
from social_service.interactors.message_interactor import DirectMessageInteractor
from social_service.realtime import protocol
from social_service.realtime.registry import ConnectionRegistry

router = APIRouter()


@router.get("/conversation/{friend_id}", response_model=schemas.ConversationPage)
async def read_conversation(
    friend_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    message_interactor: DirectMessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await message_interactor.get_conversation(
        current_user.id, friend_id, page, limit
    )


@router.get("/unread/{friend_id}", response_model=schemas.UnreadCount)
async def read_unread_count(
    friend_id: int,
    message_interactor: DirectMessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    count = await message_interactor.get_unread_count(current_user.id, friend_id)
    return schemas.UnreadCount(count=count)


@router.put("/{message_id}/read", response_model=schemas.DirectMessage)
async def mark_message_read(
    message_id: int,
    message_interactor: DirectMessageInteractor = Depends(get_message_interactor),
    registry: ConnectionRegistry = Depends(get_registry),
    current_user: schemas.User = Depends(get_current_active_user),
):
    message, changed = await message_interactor.mark_read(message_id, current_user.id)
    if changed:
        await registry.send(
            message.sender_id, protocol.MESSAGE_READ, {"messageId": message.id}
        )
    return message


@router.delete("/{message_id}", response_model=schemas.DirectMessage)
async def delete_message(
    message_id: int,
    message_interactor: DirectMessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await message_interactor.delete_message(message_id, current_user.id)
