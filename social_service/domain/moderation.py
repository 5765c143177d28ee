# social_service/domain/moderation.py
"""Group role hierarchy and the single decision table for moderation.

Every moderation path (HTTP routes, realtime handlers, interactors) asks this
module; nothing else compares roles.
"""
from enum import Enum

from social_service.domain.errors import AuthorizationError


class GroupRole(str, Enum):
    CREATOR = "creator"
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


class ModerationAction(str, Enum):
    BAN = "ban"
    MUTE = "mute"
    KICK = "kick"
    CHANGE_ROLE = "change_role"


class SanctionLift(str, Enum):
    UNBAN = "unban"
    UNMUTE = "unmute"


_RANK = {
    GroupRole.MEMBER: 0,
    GroupRole.MODERATOR: 1,
    GroupRole.ADMIN: 2,
    GroupRole.CREATOR: 3,
}

_LIFT_MINIMUM = {
    SanctionLift.UNBAN: GroupRole.ADMIN,
    SanctionLift.UNMUTE: GroupRole.MODERATOR,
}


def rank(role: GroupRole | str) -> int:
    return _RANK[GroupRole(role)]


def has_at_least(role: GroupRole | str | None, minimum: GroupRole) -> bool:
    if role is None:
        return False
    return rank(role) >= rank(minimum)


def can_moderate(
    actor_role: GroupRole | str | None,
    target_role: GroupRole | str | None,
    *,
    is_self: bool,
) -> bool:
    """True when the actor strictly outranks the target and is not the target."""
    if is_self or actor_role is None or target_role is None:
        return False
    return rank(actor_role) > rank(target_role)


def can_change_role(
    actor_role: GroupRole | str | None,
    target_role: GroupRole | str | None,
    new_role: GroupRole | str,
    *,
    is_self: bool,
) -> bool:
    if not can_moderate(actor_role, target_role, is_self=is_self):
        return False
    new_role = GroupRole(new_role)
    if new_role is GroupRole.CREATOR:
        return False
    touches_admin = GroupRole.ADMIN in (new_role, GroupRole(target_role))
    if touches_admin and GroupRole(actor_role) is not GroupRole.CREATOR:
        return False
    # nobody hands out a role equal to or above their own
    return rank(new_role) < rank(actor_role)


def can_lift(lift: SanctionLift, actor_role: GroupRole | str | None) -> bool:
    return has_at_least(actor_role, _LIFT_MINIMUM[lift])


def _label(role: GroupRole | str | None) -> str:
    return GroupRole(role).value if role is not None else "non-member"


def authorize(
    action: ModerationAction,
    actor_role: GroupRole | str | None,
    target_role: GroupRole | str | None,
    *,
    is_self: bool,
    new_role: GroupRole | str | None = None,
) -> None:
    """Raise AuthorizationError unless the action is permitted."""
    if is_self:
        raise AuthorizationError(f"You cannot {action.value.replace('_', ' ')} yourself")

    if action is ModerationAction.CHANGE_ROLE:
        if new_role is None:
            raise ValueError("new_role is required for role changes")
        if not can_change_role(actor_role, target_role, new_role, is_self=is_self):
            raise AuthorizationError(
                f"{_label(actor_role)}s cannot change the role of {_label(target_role)}s "
                f"to {GroupRole(new_role).value}. Only the creator can assign or remove admins."
            )
        return

    if not can_moderate(actor_role, target_role, is_self=is_self):
        raise AuthorizationError(
            f"{_label(actor_role)}s cannot {action.value} {_label(target_role)}s. "
            "Only the creator can act on admins, admins can act on moderators/members, "
            "moderators can act on members."
        )


def authorize_lift(lift: SanctionLift, actor_role: GroupRole | str | None) -> None:
    if not can_lift(lift, actor_role):
        minimum = _LIFT_MINIMUM[lift].value
        raise AuthorizationError(f"Only {minimum}s and above can {lift.value} members")


class GroupPermission(str, Enum):
    ADD_MEMBER = "add_member"
    INVITE = "invite"
    REVIEW_JOIN_REQUESTS = "review_join_requests"
    UPDATE_SETTINGS = "update_settings"
    DELETE_GROUP = "delete_group"


_PERMISSION_MINIMUM = {
    GroupPermission.ADD_MEMBER: GroupRole.MODERATOR,
    GroupPermission.INVITE: GroupRole.ADMIN,
    GroupPermission.REVIEW_JOIN_REQUESTS: GroupRole.ADMIN,
    GroupPermission.UPDATE_SETTINGS: GroupRole.ADMIN,
    GroupPermission.DELETE_GROUP: GroupRole.CREATOR,
}

_PERMISSION_DENIED = {
    GroupPermission.ADD_MEMBER: "Only moderators and above can add members",
    GroupPermission.INVITE: "Only admins can invite members to this group",
    GroupPermission.REVIEW_JOIN_REQUESTS: "Only admins can review join requests",
    GroupPermission.UPDATE_SETTINGS: "Only the creator or an admin can update the group",
    GroupPermission.DELETE_GROUP: "Only the creator can delete the group",
}


def can(
    permission: GroupPermission,
    role: GroupRole | str | None,
    *,
    allow_member_invites: bool = False,
) -> bool:
    """Group management checks that depend only on the actor's own role.

    Any member may invite when the group allows member invites.
    """
    if permission is GroupPermission.INVITE and allow_member_invites:
        return role is not None
    return has_at_least(role, _PERMISSION_MINIMUM[permission])


def require(
    permission: GroupPermission,
    role: GroupRole | str | None,
    *,
    allow_member_invites: bool = False,
) -> None:
    if not can(permission, role, allow_member_invites=allow_member_invites):
        raise AuthorizationError(_PERMISSION_DENIED[permission])
