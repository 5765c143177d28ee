# social_service/api/groups.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from social_service.api.dependencies import (
    get_current_active_user,
    get_group_interactor,
    get_moderation_interactor,
)
from social_service.infrastructure import schemas
from social_service.interactors.group_interactor import GroupInteractor
from social_service.interactors.moderation_interactor import ModerationInteractor

router = APIRouter()


@router.post("/", response_model=schemas.Group, status_code=201)
async def create_group(
    group: schemas.GroupCreate,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.create_group(group, current_user.id)


@router.get("/", response_model=List[schemas.Group])
async def read_groups(
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.get_groups(current_user.id)


# literal paths first so they are not captured by /{group_id}
@router.get("/discover", response_model=List[schemas.GroupSummary])
async def discover_groups(
    search: Optional[str] = Query(None, max_length=50),
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.discover(current_user.id, search)


@router.get("/my-invitations", response_model=List[schemas.Invitation])
async def read_my_invitations(
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.get_invitations(current_user.id)


@router.get("/{group_id}", response_model=schemas.Group)
async def read_group(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.get_group(group_id, current_user.id)


@router.patch("/{group_id}", response_model=schemas.Group)
async def update_group(
    group_id: int,
    update: schemas.GroupUpdate,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.update_group(group_id, current_user.id, update)


@router.delete("/{group_id}", response_model=schemas.Detail)
async def delete_group(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await group_interactor.delete_group(group_id, current_user.id)
    return schemas.Detail(message="Group deleted successfully")


@router.post("/{group_id}/join", response_model=schemas.JoinResult)
async def join_group(
    group_id: int,
    request: Optional[schemas.JoinRequestCreate] = None,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    message = request.message if request else None
    return await group_interactor.join_group(group_id, current_user.id, message)


@router.get("/{group_id}/join-requests", response_model=List[schemas.JoinRequest])
async def read_join_requests(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.list_join_requests(group_id, current_user.id)


@router.post(
    "/{group_id}/join-requests/{user_id}/accept", response_model=schemas.Group
)
async def accept_join_request(
    group_id: int,
    user_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.accept_join_request(
        group_id, current_user.id, user_id
    )


@router.post(
    "/{group_id}/join-requests/{user_id}/reject", response_model=schemas.Detail
)
async def reject_join_request(
    group_id: int,
    user_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await group_interactor.reject_join_request(group_id, current_user.id, user_id)
    return schemas.Detail(message="Join request rejected")


@router.post("/{group_id}/invite", response_model=schemas.Detail)
async def invite_user(
    group_id: int,
    request: schemas.InviteRequest,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await group_interactor.invite(
        group_id, current_user.id, request.user_id, request.message
    )
    return schemas.Detail(message="Invitation sent successfully")


@router.post("/{group_id}/invitation/accept", response_model=schemas.Group)
async def accept_invitation(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.accept_invitation(group_id, current_user.id)


@router.post("/{group_id}/invitation/decline", response_model=schemas.Detail)
async def decline_invitation(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await group_interactor.decline_invitation(group_id, current_user.id)
    return schemas.Detail(message="Invitation declined")


@router.post("/{group_id}/members", response_model=schemas.Group)
async def add_member(
    group_id: int,
    request: schemas.MemberRequest,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await group_interactor.add_member(group_id, current_user.id, request.user_id)


@router.delete("/{group_id}/members/{member_id}", response_model=schemas.Group)
async def remove_member(
    group_id: int,
    member_id: int,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.remove_member(group_id, current_user.id, member_id)


@router.post("/{group_id}/leave", response_model=schemas.Detail)
async def leave_group(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await group_interactor.leave_group(group_id, current_user.id)
    return schemas.Detail(message="Left group successfully")


@router.post("/{group_id}/ban", response_model=schemas.BannedMember)
async def ban_member(
    group_id: int,
    request: schemas.BanRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.ban(group_id, current_user.id, request.user_id, request.reason)


@router.post("/{group_id}/unban", response_model=schemas.Detail)
async def unban_member(
    group_id: int,
    request: schemas.MemberRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await moderation.unban(group_id, current_user.id, request.user_id)
    return schemas.Detail(message="User unbanned successfully")


@router.post("/{group_id}/mute", response_model=schemas.MutedMember)
async def mute_member(
    group_id: int,
    request: schemas.MuteRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.mute(
        group_id, current_user.id, request.user_id, request.duration, request.reason
    )


@router.post("/{group_id}/unmute", response_model=schemas.Detail)
async def unmute_member(
    group_id: int,
    request: schemas.MemberRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await moderation.unmute(group_id, current_user.id, request.user_id)
    return schemas.Detail(message="User unmuted successfully")


@router.post("/{group_id}/kick", response_model=schemas.Detail)
async def kick_member(
    group_id: int,
    request: schemas.MemberRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await moderation.kick(group_id, current_user.id, request.user_id)
    return schemas.Detail(message="User removed from group")


@router.post("/{group_id}/promote", response_model=schemas.GroupMember)
async def promote_member(
    group_id: int,
    request: schemas.PromoteRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.promote(
        group_id, current_user.id, request.user_id, request.role
    )


@router.post("/{group_id}/demote", response_model=schemas.GroupMember)
async def demote_member(
    group_id: int,
    request: schemas.MemberRequest,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.demote(group_id, current_user.id, request.user_id)


@router.get("/{group_id}/muted", response_model=List[schemas.MutedMember])
async def read_muted_members(
    group_id: int,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.list_muted(group_id, current_user.id)


@router.get("/{group_id}/banned", response_model=List[schemas.BannedMember])
async def read_banned_members(
    group_id: int,
    moderation: ModerationInteractor = Depends(get_moderation_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await moderation.list_banned(group_id, current_user.id)
