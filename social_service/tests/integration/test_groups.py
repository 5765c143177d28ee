import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def staff(make_user, make_group):
    creator = await make_user("creator")
    admin = await make_user("admin")
    admin2 = await make_user("admin2")
    mod = await make_user("mod")
    member = await make_user("member")
    group = await make_group(
        creator,
        [admin, admin2, mod, member],
        roles={admin.id: "admin", admin2.id: "admin", mod.id: "moderator"},
        name="Climbers",
    )
    return group, creator, admin, admin2, mod, member


def roles_of(group_json):
    return {m["user_id"]: m["role"] for m in group_json["members"]}


async def test_create_group(client: AsyncClient, auth_header, test_user, test_user2):
    response = await client.post(
        "/api/v1/groups/",
        json={"name": "Hikers", "description": "Weekend trails", "member_ids": [test_user2.id]},
        headers=auth_header,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Hikers"
    assert data["creator_id"] == test_user.id
    assert roles_of(data) == {test_user.id: "creator", test_user2.id: "member"}


async def test_create_group_unknown_members(client: AsyncClient, auth_header):
    response = await client.post(
        "/api/v1/groups/", json={"name": "Ghosts", "member_ids": [99999]}, headers=auth_header
    )
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_create_group_validates_name(client: AsyncClient, auth_header):
    response = await client.post("/api/v1/groups/", json={"name": ""}, headers=auth_header)
    assert response.status_code == 422
    response = await client.post("/api/v1/groups/", json={"name": "x" * 51}, headers=auth_header)
    assert response.status_code == 422


async def test_list_groups(client: AsyncClient, test_user, make_user, make_group, auth_headers_for):
    other = await make_user("other")
    await make_group(test_user, name="Mine")
    await make_group(other, name="Not mine")

    response = await client.get("/api/v1/groups/", headers=auth_headers_for(test_user))

    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["Mine"]


async def test_read_group_members_only(client: AsyncClient, staff, make_user, auth_headers_for):
    group, creator, *_ = staff
    outsider = await make_user("outsider")

    response = await client.get(f"/api/v1/groups/{group.id}", headers=auth_headers_for(creator))
    assert response.status_code == 200
    assert len(response.json()["members"]) == 5

    response = await client.get(f"/api/v1/groups/{group.id}", headers=auth_headers_for(outsider))
    assert response.status_code == 403

    response = await client.get("/api/v1/groups/99999", headers=auth_headers_for(creator))
    assert response.status_code == 404
    assert response.json() == {"detail": "Group not found", "code": "not_found"}


async def test_add_member_rules(client: AsyncClient, staff, make_user, auth_headers_for):
    group, _, _, _, mod, member = staff
    newcomer = await make_user("newcomer")
    url = f"/api/v1/groups/{group.id}/members"

    response = await client.post(url, json={"user_id": newcomer.id}, headers=auth_headers_for(member))
    assert response.status_code == 403

    response = await client.post(url, json={"user_id": 99999}, headers=auth_headers_for(mod))
    assert response.status_code == 404

    response = await client.post(url, json={"user_id": newcomer.id}, headers=auth_headers_for(mod))
    assert response.status_code == 200
    assert roles_of(response.json())[newcomer.id] == "member"

    response = await client.post(url, json={"user_id": newcomer.id}, headers=auth_headers_for(mod))
    assert response.status_code == 409


async def test_add_member_notifies(client: AsyncClient, staff, make_user, auth_headers_for):
    group, creator, *_ = staff
    newcomer = await make_user("newcomer")

    await client.post(
        f"/api/v1/groups/{group.id}/members",
        json={"user_id": newcomer.id},
        headers=auth_headers_for(creator),
    )

    response = await client.get("/api/v1/notifications/", headers=auth_headers_for(newcomer))
    assert response.status_code == 200
    notification = response.json()[0]
    assert notification["type"] == "group_added"
    assert notification["message"] == "You have been added to Climbers"
    assert notification["metadata"] == {"groupId": group.id, "groupName": "Climbers"}


async def test_leave_group(client: AsyncClient, staff, auth_headers_for):
    group, creator, _, _, _, member = staff

    response = await client.post(f"/api/v1/groups/{group.id}/leave", headers=auth_headers_for(creator))
    assert response.status_code == 400

    response = await client.post(f"/api/v1/groups/{group.id}/leave", headers=auth_headers_for(member))
    assert response.status_code == 200
    assert response.json() == {"message": "Left group successfully"}

    response = await client.get(f"/api/v1/groups/{group.id}", headers=auth_headers_for(member))
    assert response.status_code == 403


async def test_ban_respects_hierarchy(client: AsyncClient, staff, auth_headers_for):
    group, creator, admin, admin2, _, _ = staff
    url = f"/api/v1/groups/{group.id}/ban"

    response = await client.post(url, json={"user_id": admin2.id}, headers=auth_headers_for(admin))
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"

    response = await client.post(
        url, json={"user_id": admin2.id, "reason": "rogue"}, headers=auth_headers_for(creator)
    )
    assert response.status_code == 200
    assert response.json()["user_id"] == admin2.id
    assert response.json()["reason"] == "rogue"

    banned = await client.get(f"/api/v1/groups/{group.id}/banned", headers=auth_headers_for(admin))
    assert [b["user_id"] for b in banned.json()] == [admin2.id]

    group_after = await client.get(f"/api/v1/groups/{group.id}", headers=auth_headers_for(creator))
    assert admin2.id not in roles_of(group_after.json())


async def test_banned_user_cannot_be_re_added(client: AsyncClient, staff, auth_headers_for):
    group, creator, _, _, _, member = staff
    await client.post(
        f"/api/v1/groups/{group.id}/ban", json={"user_id": member.id}, headers=auth_headers_for(creator)
    )

    response = await client.post(
        f"/api/v1/groups/{group.id}/members",
        json={"user_id": member.id},
        headers=auth_headers_for(creator),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "moderated"

    response = await client.post(
        f"/api/v1/groups/{group.id}/unban", json={"user_id": member.id}, headers=auth_headers_for(creator)
    )
    assert response.status_code == 200

    response = await client.post(
        f"/api/v1/groups/{group.id}/members",
        json={"user_id": member.id},
        headers=auth_headers_for(creator),
    )
    assert response.status_code == 200


async def test_unban_requires_admin(client: AsyncClient, staff, auth_headers_for):
    group, creator, _, _, mod, member = staff
    await client.post(
        f"/api/v1/groups/{group.id}/ban", json={"user_id": member.id}, headers=auth_headers_for(creator)
    )

    response = await client.post(
        f"/api/v1/groups/{group.id}/unban", json={"user_id": member.id}, headers=auth_headers_for(mod)
    )
    assert response.status_code == 403


async def test_mute_and_unmute(client: AsyncClient, staff, auth_headers_for):
    group, _, _, _, mod, member = staff

    response = await client.post(
        f"/api/v1/groups/{group.id}/mute",
        json={"user_id": member.id, "duration": 30, "reason": "caps lock"},
        headers=auth_headers_for(mod),
    )
    assert response.status_code == 200
    assert response.json()["muted_until"] is not None

    muted = await client.get(f"/api/v1/groups/{group.id}/muted", headers=auth_headers_for(mod))
    assert [m["user_id"] for m in muted.json()] == [member.id]

    response = await client.post(
        f"/api/v1/groups/{group.id}/unmute", json={"user_id": member.id}, headers=auth_headers_for(mod)
    )
    assert response.status_code == 200

    muted = await client.get(f"/api/v1/groups/{group.id}/muted", headers=auth_headers_for(mod))
    assert muted.json() == []


async def test_mute_validates_duration(client: AsyncClient, staff, auth_headers_for):
    group, _, _, _, mod, member = staff
    response = await client.post(
        f"/api/v1/groups/{group.id}/mute",
        json={"user_id": member.id, "duration": 0},
        headers=auth_headers_for(mod),
    )
    assert response.status_code == 422


async def test_kick(client: AsyncClient, staff, auth_headers_for):
    group, _, _, _, mod, member = staff

    response = await client.post(
        f"/api/v1/groups/{group.id}/kick", json={"user_id": mod.id}, headers=auth_headers_for(member)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/groups/{group.id}/kick", json={"user_id": member.id}, headers=auth_headers_for(mod)
    )
    assert response.status_code == 200

    response = await client.get("/api/v1/notifications/", headers=auth_headers_for(member))
    assert response.json()[0]["type"] == "group_kicked"


async def test_promote_and_demote(client: AsyncClient, staff, auth_headers_for):
    group, creator, admin, _, _, member = staff

    response = await client.post(
        f"/api/v1/groups/{group.id}/promote",
        json={"user_id": member.id, "role": "admin"},
        headers=auth_headers_for(admin),
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/groups/{group.id}/promote",
        json={"user_id": member.id, "role": "admin"},
        headers=auth_headers_for(creator),
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    response = await client.post(
        f"/api/v1/groups/{group.id}/demote", json={"user_id": member.id}, headers=auth_headers_for(creator)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "member"


async def test_promote_rejects_creator_role(client: AsyncClient, staff, auth_headers_for):
    group, creator, _, _, _, member = staff
    response = await client.post(
        f"/api/v1/groups/{group.id}/promote",
        json={"user_id": member.id, "role": "creator"},
        headers=auth_headers_for(creator),
    )
    assert response.status_code == 422


async def test_discover_and_join_public_group(
    client: AsyncClient, make_user, make_group, auth_headers_for
):
    owner = await make_user("owner")
    hiker = await make_user("hiker")
    group = await make_group(owner, name="Trail runners", is_public=True)
    await make_group(owner, name="Trail secrets")

    response = await client.get(
        "/api/v1/groups/discover?search=trail", headers=auth_headers_for(hiker)
    )
    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["Trail runners"]
    assert response.json()[0]["member_count"] == 1

    response = await client.post(
        f"/api/v1/groups/{group.id}/join", headers=auth_headers_for(hiker)
    )
    assert response.status_code == 200
    assert response.json()["requires_approval"] is False
    assert hiker.id in roles_of(response.json()["group"])

    response = await client.post(
        f"/api/v1/groups/{group.id}/join", headers=auth_headers_for(hiker)
    )
    assert response.status_code == 409


async def test_join_request_review(
    client: AsyncClient, make_user, make_group, auth_headers_for
):
    owner = await make_user("owner")
    hiker = await make_user("hiker")
    group = await make_group(owner, is_public=True, require_approval=True)

    response = await client.post(
        f"/api/v1/groups/{group.id}/join",
        json={"message": "I bring snacks"},
        headers=auth_headers_for(hiker),
    )
    assert response.json() == {
        "message": "Join request sent",
        "requires_approval": True,
        "group": None,
    }

    response = await client.get(
        f"/api/v1/groups/{group.id}/join-requests", headers=auth_headers_for(owner)
    )
    assert [(r["user_id"], r["message"]) for r in response.json()] == [
        (hiker.id, "I bring snacks")
    ]

    response = await client.post(
        f"/api/v1/groups/{group.id}/join-requests/{hiker.id}/accept",
        headers=auth_headers_for(owner),
    )
    assert response.status_code == 200
    assert roles_of(response.json())[hiker.id] == "member"

    response = await client.post(
        f"/api/v1/groups/{group.id}/join-requests/{hiker.id}/reject",
        headers=auth_headers_for(owner),
    )
    assert response.status_code == 404


async def test_private_group_invitation_flow(
    client: AsyncClient, staff, make_user, auth_headers_for
):
    group, _, _, _, _, member = staff
    guest = await make_user("guest")

    response = await client.post(
        f"/api/v1/groups/{group.id}/join", headers=auth_headers_for(guest)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/groups/{group.id}/invite",
        json={"user_id": guest.id, "message": "join us"},
        headers=auth_headers_for(member),
    )
    assert response.json() == {"message": "Invitation sent successfully"}

    response = await client.get(
        "/api/v1/groups/my-invitations", headers=auth_headers_for(guest)
    )
    invitation = response.json()[0]
    assert invitation["group"]["id"] == group.id
    assert invitation["invited_by"] == member.id

    response = await client.post(
        f"/api/v1/groups/{group.id}/invitation/accept", headers=auth_headers_for(guest)
    )
    assert response.status_code == 200
    assert roles_of(response.json())[guest.id] == "member"


async def test_decline_invitation(client: AsyncClient, staff, make_user, auth_headers_for):
    group, creator, *_ = staff
    guest = await make_user("guest")
    await client.post(
        f"/api/v1/groups/{group.id}/invite",
        json={"user_id": guest.id},
        headers=auth_headers_for(creator),
    )

    response = await client.post(
        f"/api/v1/groups/{group.id}/invitation/decline", headers=auth_headers_for(guest)
    )
    assert response.json() == {"message": "Invitation declined"}

    response = await client.get(
        "/api/v1/groups/my-invitations", headers=auth_headers_for(guest)
    )
    assert response.json() == []


async def test_update_group(client: AsyncClient, staff, auth_headers_for):
    group, _, admin, _, mod, _ = staff
    url = f"/api/v1/groups/{group.id}"

    response = await client.patch(url, json={"name": "Boulderers"}, headers=auth_headers_for(mod))
    assert response.status_code == 403

    response = await client.patch(
        url,
        json={"name": "Boulderers", "require_approval": True},
        headers=auth_headers_for(admin),
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Boulderers"
    assert response.json()["require_approval"] is True

    response = await client.patch(url, json={"name": ""}, headers=auth_headers_for(admin))
    assert response.status_code == 422


async def test_delete_group(client: AsyncClient, staff, auth_headers_for):
    group, creator, admin, *_ = staff
    url = f"/api/v1/groups/{group.id}"

    response = await client.delete(url, headers=auth_headers_for(admin))
    assert response.status_code == 403

    response = await client.delete(url, headers=auth_headers_for(creator))
    assert response.json() == {"message": "Group deleted successfully"}

    response = await client.get(url, headers=auth_headers_for(creator))
    assert response.status_code == 404


async def test_remove_member(client: AsyncClient, staff, auth_headers_for):
    group, _, admin, admin2, mod, member = staff

    response = await client.delete(
        f"/api/v1/groups/{group.id}/members/{admin2.id}", headers=auth_headers_for(mod)
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/api/v1/groups/{group.id}/members/{member.id}", headers=auth_headers_for(admin)
    )
    assert response.status_code == 200
    assert member.id not in roles_of(response.json())

    response = await client.get("/api/v1/notifications/", headers=auth_headers_for(member))
    assert response.json()[0]["type"] == "group_removed"
