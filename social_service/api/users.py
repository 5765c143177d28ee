# social_service/api/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from social_service.api.dependencies import get_current_active_user, get_user_interactor
from social_service.infrastructure import schemas
from social_service.interactors.user_interactor import UserInteractor

router = APIRouter()


@router.get("/me", response_model=schemas.User)
async def read_users_me(current_user: schemas.User = Depends(get_current_active_user)):
    return current_user


@router.get("/me/friends", response_model=List[schemas.UserBasic])
async def read_my_friends(
    user_interactor: UserInteractor = Depends(get_user_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await user_interactor.get_friends(current_user.id)


@router.get("/{user_id}", response_model=schemas.UserBasic)
async def read_user(
    user_id: int,
    user_interactor: UserInteractor = Depends(get_user_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    user = await user_interactor.get_user_basic(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
