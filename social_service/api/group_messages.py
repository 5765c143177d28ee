# social_service/api/group_messages.py
from fastapi import APIRouter, Depends, Query

from social_service.api.dependencies import (
    get_current_active_user,
    get_group_message_interactor,
)
from social_service.infrastructure import schemas
from social_service.interactors.group_message_interactor import GroupMessageInteractor

router = APIRouter()


@router.get("/{group_id}", response_model=schemas.GroupMessagePage)
async def read_group_messages(
    group_id: int,
    page: int = Query(1, ge=1),
    group_message_interactor: GroupMessageInteractor = Depends(
        get_group_message_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_message_interactor.get_messages(group_id, current_user.id, page)


@router.delete("/{group_id}/{message_id}", response_model=schemas.GroupMessage)
async def delete_group_message(
    group_id: int,
    message_id: int,
    group_message_interactor: GroupMessageInteractor = Depends(
        get_group_message_interactor
    ),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_message_interactor.delete_message(
        group_id, message_id, current_user.id
    )
